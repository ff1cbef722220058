from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone as dt_tz
from typing import Iterable, Literal, Union
from sqlalchemy import select, delete, exists
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from entrydesk.errors import BulkActionFailed
from entrydesk.jobs.send_mail import send_mail
from entrydesk.models.entry import Entry, EntryFile, Selection
from entrydesk.models.user import User, ROLE_PARTICIPANT
from entrydesk.services.completion import StageCompletion, evaluate
from entrydesk.services.stage_store import STAGE_MODELS, files_for_entries, records_for_entries
from entrydesk.services.stages import Stage, STAGE_ORDER
from entrydesk.services.storage import Storage, StorageError
from entrydesk.services.targets import Target, entry_ids_of, placeholder_ids_of
from entrydesk.services.workflow import EntryStatus, display_status

log = structlog.get_logger()

UNCLASSIFIED = "unclassified"


@dataclass
class EntryRow:
    entry_id: uuid.UUID
    user_id: uuid.UUID
    email: str | None
    name: str | None
    status: str
    display_status: str
    genre: str
    created_at: datetime
    stages: dict[Stage, StageCompletion]
    file_count: int = 0
    kind: Literal["entry"] = "entry"


@dataclass
class PlaceholderRow:
    """A participant who registered but has no entry; never a target for entry mutations."""
    user_id: uuid.UUID
    email: str | None
    name: str | None
    display_status: str
    created_at: datetime
    genre: str = UNCLASSIFIED
    status: str | None = None
    stages: dict[Stage, StageCompletion] = field(
        default_factory=lambda: {s: StageCompletion(exists=False, complete=False) for s in STAGE_ORDER}
    )
    kind: Literal["placeholder"] = "placeholder"


AdminRow = Union[EntryRow, PlaceholderRow]


@dataclass(frozen=True)
class AdminFilters:
    status: EntryStatus | None = None
    genre: str | None = None
    has: tuple[Stage, ...] = ()
    no: tuple[Stage, ...] = ()
    complete: tuple[Stage, ...] = ()


def matches(row: AdminRow, filters: AdminFilters) -> bool:
    """All filters must hold (AND). Placeholders never match a status filter."""
    if filters.status is not None and row.status != filters.status.value:
        return False
    if filters.genre and row.genre != filters.genre:
        return False
    if any(not row.stages[s].exists for s in filters.has):
        return False
    if any(row.stages[s].exists for s in filters.no):
        return False
    if any(not row.stages[s].complete for s in filters.complete):
        return False
    return True

def _instant(dt: datetime) -> float:
    # sqlite hands back naive UTC values
    return (dt if dt.tzinfo else dt.replace(tzinfo=dt_tz.utc)).timestamp()

def genre_of(basic_info: dict | None) -> str:
    style = (basic_info or {}).get("dance_style")
    return style.strip() if isinstance(style, str) and style.strip() else UNCLASSIFIED


async def list_rows(session: AsyncSession, filters: AdminFilters, today: date) -> list[AdminRow]:
    entries = (await session.execute(select(Entry).order_by(Entry.created_at.desc()))).scalars().all()
    users = {u.id: u for u in (await session.execute(select(User))).scalars().all()}
    records = await records_for_entries(session, [e.id for e in entries])
    files = await files_for_entries(session, [e.id for e in entries])

    rows: list[AdminRow] = []
    for e in entries:
        user = users.get(e.user_id)
        rows.append(EntryRow(
            entry_id=e.id,
            user_id=e.user_id,
            email=user.email if user else None,
            name=user.name if user else None,
            status=e.status,
            display_status=display_status(e.status, bool(user and user.has_seed)),
            genre=genre_of(records[e.id][Stage.BASIC_INFO]),
            created_at=e.created_at,
            stages=evaluate(records[e.id], files[e.id], today),
            file_count=len(files[e.id]),
        ))
    with_entry = {e.user_id for e in entries}
    for user in users.values():
        if user.role == ROLE_PARTICIPANT and user.id not in with_entry:
            rows.append(PlaceholderRow(
                user_id=user.id, email=user.email, name=user.name,
                display_status=display_status(None, user.has_seed), created_at=user.created_at,
            ))
    rows.sort(key=lambda r: _instant(r.created_at), reverse=True)
    return [r for r in rows if matches(r, filters)]

async def genres(session: AsyncSession) -> list[str]:
    model = STAGE_MODELS[Stage.BASIC_INFO]
    values = (await session.execute(select(model.dance_style).distinct())).scalars().all()
    return sorted({genre_of({"dance_style": v}) for v in values})


@dataclass
class DeleteResult:
    deleted: list[uuid.UUID] = field(default_factory=list)
    deleted_participants: list[uuid.UUID] = field(default_factory=list)
    failed: list[uuid.UUID] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


async def _delete_entry_rows(session: AsyncSession, entry_id: uuid.UUID) -> list[str]:
    paths = list((await session.execute(
        select(EntryFile.file_path).where(EntryFile.entry_id == entry_id)
    )).scalars().all())
    await session.execute(delete(EntryFile).where(EntryFile.entry_id == entry_id))
    for model in STAGE_MODELS.values():
        await session.execute(delete(model).where(model.entry_id == entry_id))
    await session.execute(delete(Selection).where(Selection.entry_id == entry_id))
    await session.execute(delete(Entry).where(Entry.id == entry_id))
    return paths

async def bulk_delete(session: AsyncSession, storage: Storage, targets: Iterable[Target]) -> DeleteResult:
    """
    Delete each targeted entry with everything hanging off it.

    Each entry is its own transaction, so one failure does not stop the batch.
    Blobs are removed only after the rows are gone; a storage failure leaves
    a leaked blob and a warning, never a dangling file record.
    Raises BulkActionFailed when nothing at all could be deleted.
    """
    targets = list(targets)
    result = DeleteResult()
    attempted = 0
    for entry_id in entry_ids_of(targets):
        if await session.get(Entry, entry_id) is None:
            result.warnings.append(f"Entry {entry_id} not found")
            continue
        attempted += 1
        try:
            paths = await _delete_entry_rows(session, entry_id)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            log.error("entry_delete_failed", entry_id=str(entry_id), error=str(e))
            result.failed.append(entry_id)
            continue
        result.deleted.append(entry_id)
        try:
            storage.remove(paths)
        except StorageError as e:
            log.warning("blob_remove_failed", entry_id=str(entry_id), error=str(e), count=len(paths))
            result.warnings.append(f"Files of entry {entry_id} could not be removed from storage")

    for user_id in placeholder_ids_of(targets):
        user = await session.get(User, user_id)
        has_entry = await session.scalar(select(exists().where(Entry.user_id == user_id)))
        if user is None or user.role != ROLE_PARTICIPANT or has_entry:
            result.warnings.append(f"Participant {user_id} skipped: not a participant without an entry")
            continue
        attempted += 1
        try:
            await session.delete(user)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            log.error("participant_delete_failed", user_id=str(user_id), error=str(e))
            result.failed.append(user_id)
            continue
        result.deleted_participants.append(user_id)

    if attempted and not result.deleted and not result.deleted_participants:
        raise BulkActionFailed("Failed to delete entries")
    log.info(
        "bulk_delete_done", deleted=len(result.deleted), participants=len(result.deleted_participants),
        failed=len(result.failed), warnings=len(result.warnings),
    )
    return result


@dataclass
class MailResult:
    queued: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


async def recipients(session: AsyncSession, targets: Iterable[Target]) -> tuple[list[str], list[str]]:
    targets = list(targets)
    warnings: list[str] = []
    user_ids: list[uuid.UUID] = list(placeholder_ids_of(targets))
    entry_ids = entry_ids_of(targets)
    if entry_ids:
        found = {r.id: r.user_id for r in (await session.execute(
            select(Entry.id, Entry.user_id).where(Entry.id.in_(entry_ids))
        )).all()}
        for i in entry_ids:
            if i in found:
                user_ids.append(found[i])
            else:
                warnings.append(f"Entry {i} not found")
    emails: list[str] = []
    if user_ids:
        users = (await session.execute(select(User).where(User.id.in_(user_ids)))).scalars().all()
        for u in users:
            if u.email and u.email not in emails:
                emails.append(u.email)
    return emails, warnings

async def bulk_mail(session: AsyncSession, queue, targets: Iterable[Target], subject: str, body: str) -> MailResult:
    emails, warnings = await recipients(session, targets)
    result = MailResult(warnings=warnings)
    for to in emails:
        queue.enqueue(send_mail, to, subject, body)
        result.queued.append(to)
    log.info("mail_enqueued", count=len(result.queued), subject=subject)
    return result
