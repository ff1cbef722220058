from __future__ import annotations
import uuid
from datetime import datetime, timezone as dt_tz
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from entrydesk.db import get_session
from entrydesk.auth_deps import require_admin
from entrydesk.errors import EntryNotFound, NothingSelected
from entrydesk.models.entry import Entry, Selection
from entrydesk.models.setting import Setting
from entrydesk.models.user import User
from entrydesk.schemas.admin import (
    AdminListing, AdminRowPublic, EntryDetail, MailIn, SelectionIn, SelectionPublic, SettingPublic,
    SettingsIn, StageBadge, StatusChangeIn, TargetsIn,
)
from entrydesk.routes.files import file_public
from entrydesk.services.aggregation import AdminFilters, AdminRow, bulk_delete, bulk_mail, genres, list_rows
from entrydesk.services.completion import StageCompletion, evaluate
from entrydesk.services.deadlines import local_today
from entrydesk.services.mailer import get_mail_queue
from entrydesk.services.stage_store import load_files, load_records, record_values
from entrydesk.services.stages import Stage
from entrydesk.services.storage import Storage, get_storage
from entrydesk.services.targets import parse_targets
from entrydesk.services.workflow import bulk_update_status, display_status, parse_status

router = APIRouter(prefix="/admin", tags=["admin"])
log = structlog.get_logger()


def _badges(stages: dict[Stage, StageCompletion]) -> dict[str, StageBadge]:
    return {s.value: StageBadge(exists=c.exists, complete=c.complete, status=c.status) for s, c in stages.items()}

def _row_public(row: AdminRow) -> AdminRowPublic:
    return AdminRowPublic(
        kind=row.kind,
        entry_id=getattr(row, "entry_id", None),
        user_id=row.user_id,
        email=row.email,
        name=row.name,
        status=row.status,
        display_status=row.display_status,
        genre=row.genre,
        created_at=row.created_at,
        file_count=getattr(row, "file_count", 0),
        stages=_badges(row.stages),
    )

def _selection_public(s: Selection) -> SelectionPublic:
    return SelectionPublic(
        id=s.id, entry_id=s.entry_id, admin_id=s.admin_id, score=s.score,
        comments=s.comments, status=s.status, created_at=s.created_at,
    )


@router.get("/entries", response_model=AdminListing)
async def list_entries(
    status: str | None = None,
    genre: str | None = None,
    has: list[Stage] = Query(default=[]),
    no: list[Stage] = Query(default=[]),
    complete: list[Stage] = Query(default=[]),
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
):
    filters = AdminFilters(
        status=parse_status(status) if status else None,
        genre=genre or None,
        has=tuple(has),
        no=tuple(no),
        complete=tuple(complete),
    )
    rows = await list_rows(session, filters, local_today(datetime.now(dt_tz.utc)))
    return AdminListing(total=len(rows), rows=[_row_public(r) for r in rows], genres=await genres(session))

@router.get("/entries/{entry_id}", response_model=EntryDetail)
async def entry_detail(
    entry_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    entry = await session.get(Entry, entry_id)
    if entry is None:
        raise EntryNotFound()
    user = await session.get(User, entry.user_id)
    records = record_values(await load_records(session, entry.id))
    files = await load_files(session, entry.id)
    history = (await session.execute(
        select(Selection).where(Selection.entry_id == entry.id).order_by(Selection.created_at.desc())
    )).scalars().all()
    return EntryDetail(
        entry_id=entry.id,
        user_id=entry.user_id,
        email=user.email if user else None,
        name=user.name if user else None,
        status=entry.status,
        display_status=display_status(entry.status, bool(user and user.has_seed)),
        created_at=entry.created_at,
        stages=_badges(evaluate(records, files, local_today(datetime.now(dt_tz.utc)))),
        records={s.value: v for s, v in records.items()},
        files=[file_public(f, storage) for f in files],
        selection=_selection_public(history[0]) if history else None,
        selection_history=[_selection_public(s) for s in history],
    )

@router.put("/entries/status")
async def change_status(
    payload: StatusChangeIn,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if not payload.entryIds:
        raise NothingSelected()
    status = parse_status(payload.status)
    targets, warnings = parse_targets(payload.entryIds, payload.participantIds)
    result = await bulk_update_status(session, targets, status)
    return {
        "success": True,
        "status": status.value,
        "updated": result.updated,
        "unchanged": result.unchanged,
        "warnings": warnings + result.warnings,
    }

@router.delete("/entries")
async def delete_entries(
    payload: TargetsIn,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    if not payload.entryIds and not payload.participantIds:
        raise NothingSelected()
    targets, warnings = parse_targets(payload.entryIds, payload.participantIds)
    result = await bulk_delete(session, storage, targets)
    log.info("admin_bulk_delete", admin_id=str(admin.id), deleted=len(result.deleted), failed=len(result.failed))
    return {
        "success": True,
        "deleted": [str(i) for i in result.deleted],
        "deleted_participants": [str(i) for i in result.deleted_participants],
        "failed": [str(i) for i in result.failed],
        "partial": bool(result.failed or result.warnings),
        "warnings": warnings + result.warnings,
    }

@router.post("/entries/mail")
async def mail_entries(
    payload: MailIn,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
    queue=Depends(get_mail_queue),
):
    if not payload.entryIds and not payload.participantIds:
        raise NothingSelected()
    targets, warnings = parse_targets(payload.entryIds, payload.participantIds)
    result = await bulk_mail(session, queue, targets, payload.subject, payload.body)
    return {"success": True, "queued": len(result.queued), "warnings": warnings + result.warnings}

@router.put("/entries/{entry_id}/selection", response_model=SelectionPublic)
async def record_selection(
    entry_id: uuid.UUID,
    payload: SelectionIn,
    session: AsyncSession = Depends(get_session),
    admin: User = Depends(require_admin),
):
    status = parse_status(payload.status)
    entry = await session.get(Entry, entry_id)
    if entry is None:
        raise EntryNotFound()
    selection = Selection(
        entry_id=entry.id, admin_id=admin.id, score=payload.score, comments=payload.comments, status=status.value,
    )
    session.add(selection)
    entry.status = status.value
    await session.commit()
    log.info("selection_recorded", entry_id=str(entry.id), admin_id=str(admin.id), status=status.value)
    return _selection_public(selection)

@router.get("/settings", response_model=list[SettingPublic])
async def get_settings(session: AsyncSession = Depends(get_session), admin: User = Depends(require_admin)):
    rows = (await session.execute(select(Setting).order_by(Setting.key))).scalars().all()
    return [SettingPublic(key=r.key, value=r.value, description=r.description) for r in rows]

@router.put("/settings", response_model=list[SettingPublic])
async def put_settings(payload: SettingsIn, session: AsyncSession = Depends(get_session), admin: User = Depends(require_admin)):
    for key, value in payload.settings.items():
        row = await session.get(Setting, key)
        if row is None:
            session.add(Setting(key=key, value=value))
        else:
            row.value = value
    await session.commit()
    log.info("settings_updated", admin_id=str(admin.id), keys=sorted(payload.settings))
    rows = (await session.execute(select(Setting).order_by(Setting.key))).scalars().all()
    return [SettingPublic(key=r.key, value=r.value, description=r.description) for r in rows]
