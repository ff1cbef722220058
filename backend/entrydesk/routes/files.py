from __future__ import annotations
import re
import uuid
from datetime import datetime, timezone as dt_tz
from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from entrydesk.db import get_session
from entrydesk.auth_deps import get_current_user
from entrydesk.errors import EntryNotFound, InvalidUpload, StorageUnavailable
from entrydesk.models.entry import Entry, EntryFile
from entrydesk.models.user import User
from entrydesk.schemas.entry import EntryFilePublic, FileUploaded
from entrydesk.services.deadlines import ensure_editable, local_today
from entrydesk.services.media import PURPOSE_STAGES, SINGLE_SLOT_PURPOSES, check_upload, ext_for_mime
from entrydesk.services.stage_store import current_entry, load_config, load_files, refresh_statuses
from entrydesk.services.storage import Storage, StorageError, get_storage

router = APIRouter(prefix="/entries/me/files", tags=["files"])
log = structlog.get_logger()

PURPOSE_RE = re.compile(r"^[a-z0-9_]{1,64}$")


def file_public(f: EntryFile, storage: Storage) -> EntryFilePublic:
    return EntryFilePublic(
        id=f.id, file_type=f.file_type, purpose=f.purpose, file_name=f.file_name, file_path=f.file_path,
        file_size=f.file_size, mime_type=f.mime_type, uploaded_at=f.uploaded_at,
        url=storage.signed_url(f.file_path),
    )

async def _entry_or_404(session: AsyncSession, user: User) -> Entry:
    entry = await current_entry(session, user.id)
    if entry is None:
        raise EntryNotFound("Please save your basic information first")
    return entry

async def _ensure_purpose_editable(session: AsyncSession, purpose: str, now: datetime) -> None:
    stage = PURPOSE_STAGES.get(purpose)
    if stage is not None:
        ensure_editable(stage, await load_config(session), now)

def _remove_quietly(storage: Storage, paths: list[str], warnings: list[str]) -> None:
    try:
        storage.remove(paths)
    except StorageError as e:
        log.warning("blob_remove_failed", error=str(e), count=len(paths))
        warnings.append("An old copy of this file could not be removed from storage")


@router.get("", response_model=list[EntryFilePublic])
async def list_files(
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    entry = await _entry_or_404(session, user)
    return [file_public(f, storage) for f in await load_files(session, entry.id)]

@router.post("", status_code=201, response_model=FileUploaded)
async def upload_file(
    file: UploadFile = File(...),
    file_type: str = Form(...),
    purpose: str = Form(...),
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    if not PURPOSE_RE.match(purpose):
        raise InvalidUpload(reasons=[f"Invalid purpose: {purpose}"])
    entry = await _entry_or_404(session, user)
    now = datetime.now(dt_tz.utc)
    await _ensure_purpose_editable(session, purpose, now)
    data = await file.read()
    mime = check_upload(data, file_type, file.content_type)

    path = f"entries/{entry.id}/{purpose}/{uuid.uuid4().hex}.{ext_for_mime(mime)}"
    try:
        storage.upload(path, data, mime)
    except StorageError as e:
        log.error("upload_failed", entry_id=str(entry.id), purpose=purpose, error=str(e))
        raise StorageUnavailable()

    row = EntryFile(
        entry_id=entry.id, file_type=file_type, purpose=purpose, file_name=file.filename or path.rsplit("/", 1)[-1],
        file_path=path, file_size=len(data), mime_type=mime,
    )
    session.add(row)
    await session.flush()

    old_paths: list[str] = []
    if purpose in SINGLE_SLOT_PURPOSES:
        older = select(EntryFile).where(
            EntryFile.entry_id == entry.id, EntryFile.purpose == purpose, EntryFile.id != row.id
        )
        old_paths = [f.file_path for f in (await session.execute(older)).scalars().all()]
        if old_paths:
            await session.execute(delete(EntryFile).where(
                EntryFile.entry_id == entry.id, EntryFile.purpose == purpose, EntryFile.id != row.id
            ))
    await refresh_statuses(session, entry, local_today(now))
    await session.commit()
    log.info("file_uploaded", entry_id=str(entry.id), purpose=purpose, size=len(data), replaced=len(old_paths))

    warnings: list[str] = []
    if old_paths:
        _remove_quietly(storage, old_paths, warnings)
    return FileUploaded(file=file_public(row, storage), replaced=len(old_paths), warnings=warnings)

@router.delete("/{file_id}")
async def delete_file(
    file_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    entry = await _entry_or_404(session, user)
    row = await session.get(EntryFile, file_id)
    if row is None or row.entry_id != entry.id:
        raise EntryNotFound("File not found")
    now = datetime.now(dt_tz.utc)
    await _ensure_purpose_editable(session, row.purpose, now)
    path = row.file_path
    await session.delete(row)
    await refresh_statuses(session, entry, local_today(now))
    await session.commit()
    warnings: list[str] = []
    _remove_quietly(storage, [path], warnings)
    return {"success": True, "warnings": warnings}
