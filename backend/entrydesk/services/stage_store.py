from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable
from sqlalchemy import select, inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from entrydesk.db import utcnow
from entrydesk.errors import EntryConflict, EntryNotFound
from entrydesk.models.entry import Entry, EntryFile
from entrydesk.models.setting import Setting
from entrydesk.models.stages import (
    StageRecordMixin, BasicInfo, PreliminaryInfo, ProgramInfo, SemifinalsInfo, FinalsInfo, SnsInfo, ApplicationsInfo,
)
from entrydesk.services.completion import StageCompletion, evaluate
from entrydesk.services.stages import Stage, STAGE_ORDER
from entrydesk.services.sync import SyncLink, SyncMappingError, plan_sync, sync_order

log = structlog.get_logger()

STAGE_MODELS: dict[Stage, type[StageRecordMixin]] = {
    Stage.BASIC_INFO: BasicInfo,
    Stage.PRELIMINARY: PreliminaryInfo,
    Stage.PROGRAM: ProgramInfo,
    Stage.SEMIFINALS: SemifinalsInfo,
    Stage.FINALS: FinalsInfo,
    Stage.SNS: SnsInfo,
    Stage.APPLICATIONS: ApplicationsInfo,
}

STATUS_COLUMNS: dict[Stage, str] = {stage: f"{stage.value}_status" for stage in STAGE_ORDER}

SYNC_APPLIED = "applied"
SYNC_FAILED = "failed"
SYNC_NONE = "none"


# --- reads ------------------------------------------------------------------

async def load_config(session: AsyncSession) -> dict[str, str | None]:
    rows = (await session.execute(select(Setting.key, Setting.value))).all()
    return {r.key: r.value for r in rows}

async def current_entry(session: AsyncSession, user_id: uuid.UUID) -> Entry | None:
    """The participant's working entry: the newest one if several exist."""
    return (await session.execute(
        select(Entry).where(Entry.user_id == user_id).order_by(Entry.created_at.desc()).limit(1)
    )).scalars().first()

async def load_stage(session: AsyncSession, stage: Stage, entry_id: uuid.UUID) -> StageRecordMixin | None:
    """Zero or one record; the unique entry_id column rules out more."""
    model = STAGE_MODELS[stage]
    return (await session.execute(select(model).where(model.entry_id == entry_id))).scalars().first()

async def load_records(session: AsyncSession, entry_id: uuid.UUID) -> dict[Stage, StageRecordMixin | None]:
    return {stage: await load_stage(session, stage, entry_id) for stage in STAGE_ORDER}

async def load_files(session: AsyncSession, entry_id: uuid.UUID) -> list[EntryFile]:
    return list((await session.execute(
        select(EntryFile).where(EntryFile.entry_id == entry_id).order_by(EntryFile.uploaded_at.desc())
    )).scalars().all())

def record_values(records: dict[Stage, StageRecordMixin | None]) -> dict[Stage, dict | None]:
    return {stage: (rec.values() if rec is not None else None) for stage, rec in records.items()}

async def completion_for(session: AsyncSession, entry: Entry, today: date) -> dict[Stage, StageCompletion]:
    records = await load_records(session, entry.id)
    files = await load_files(session, entry.id)
    return evaluate(record_values(records), files, today)

async def refresh_statuses(session: AsyncSession, entry: Entry, today: date) -> dict[Stage, StageCompletion]:
    """Recompute completion and cache the per-stage status strings on the entry (caller commits)."""
    snapshot = await completion_for(session, entry, today)
    for stage, completion in snapshot.items():
        setattr(entry, STATUS_COLUMNS[stage], completion.status)
    return snapshot


# --- writes -----------------------------------------------------------------

async def create_entry(session: AsyncSession, user_id: uuid.UUID) -> Entry:
    if await current_entry(session, user_id) is not None:
        raise EntryConflict()
    entry = Entry(user_id=user_id)
    session.add(entry)
    await session.commit()
    log.info("entry_created", entry_id=str(entry.id), user_id=str(user_id))
    return entry

def _apply(record: StageRecordMixin, values: dict[str, Any]) -> None:
    for name, value in values.items():
        setattr(record, name, value)
    record.updated_at = utcnow()

async def upsert_stage(session: AsyncSession, stage: Stage, entry_id: uuid.UUID, values: dict[str, Any]) -> StageRecordMixin:
    """
    Check-then-write: update the entry's record for `stage`, or insert it.

    Two first saves racing each other hit the unique entry_id constraint; the
    loser retries as an update of the winner's row.
    """
    record = await load_stage(session, stage, entry_id)
    if record is not None:
        _apply(record, values)
        await session.flush()
        return record
    model = STAGE_MODELS[stage]
    record = model(entry_id=entry_id, **values)
    session.add(record)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        record = await load_stage(session, stage, entry_id)
        if record is None:
            raise
        _apply(record, values)
        await session.flush()
    return record


@dataclass
class SyncReport:
    status: str = SYNC_NONE
    targets: list[str] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)
    error: str | None = None

    def as_dict(self) -> dict:
        return {"status": self.status, "targets": self.targets, "fields": self.fields, "error": self.error}


@dataclass
class SaveResult:
    record: StageRecordMixin
    completion: dict[Stage, StageCompletion]
    sync: SyncReport


async def _sync_link(session: AsyncSession, link: SyncLink, entry_id: uuid.UUID) -> list[str] | None:
    source = await load_stage(session, link.source, entry_id)
    target = await load_stage(session, link.target, entry_id)
    if source is None or target is None:
        return None
    plan = plan_sync(source.values(), target.values(), link.groups)
    if plan.updates:
        _apply(target, plan.updates)
    log.info(
        "sync_planned", source=link.source.value, target=link.target.value,
        synced=plan.synced, skipped=plan.skipped, changed=len(plan.updates),
    )
    return list(plan.updates)

async def run_sync(session: AsyncSession, entry: Entry, stage: Stage, today: date) -> SyncReport:
    """
    Copy unchanged groups forward from a freshly committed `stage` save.

    Runs in its own transaction after the source commit: a failure here is
    rolled back alone and reported, the source save stands.
    """
    links = sync_order(stage)
    report = SyncReport()
    if not links:
        return report
    entry_id = entry.id
    try:
        for link in links:
            changed = await _sync_link(session, link, entry_id)
            if changed is None:
                continue
            report.targets.append(link.target.value)
            report.fields.extend(f"{link.target.value}.{name}" for name in changed)
        if report.targets:
            await refresh_statuses(session, entry, today)
            await session.commit()
            report.status = SYNC_APPLIED
    except (SQLAlchemyError, SyncMappingError) as e:
        await session.rollback()
        log.error("sync_failed", entry_id=str(entry_id), source=stage.value, error=str(e))
        return SyncReport(status=SYNC_FAILED, error=str(e))
    if report.targets:
        log.info("sync_applied", entry_id=str(entry_id), source=stage.value, targets=report.targets, fields=len(report.fields))
    return report

async def _reload(session: AsyncSession, obj: Any) -> None:
    # a rollback expires everything; reload before touching attributes again
    if inspect(obj).expired_attributes:
        await session.refresh(obj)

async def save_stage(session: AsyncSession, entry: Entry, stage: Stage, values: dict[str, Any], today: date) -> SaveResult:
    record = await upsert_stage(session, stage, entry.id, values)
    await _reload(session, entry)
    await refresh_statuses(session, entry, today)
    await session.commit()
    log.info("stage_saved", entry_id=str(entry.id), stage=stage.value, fields=len(values))
    sync = await run_sync(session, entry, stage, today)
    await _reload(session, entry)
    await _reload(session, record)
    completion = await completion_for(session, entry, today)
    return SaveResult(record=record, completion=completion, sync=sync)

async def entry_for_save(session: AsyncSession, user_id: uuid.UUID, stage: Stage) -> Entry:
    """Saving basic information starts an entry; every other stage needs one already."""
    entry = await current_entry(session, user_id)
    if entry is not None:
        return entry
    if stage != Stage.BASIC_INFO:
        raise EntryNotFound("Please save your basic information first")
    try:
        return await create_entry(session, user_id)
    except EntryConflict:
        # created concurrently between the two reads
        entry = await current_entry(session, user_id)
        if entry is None:
            raise
        return entry

async def files_for_entries(session: AsyncSession, entry_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, list[EntryFile]]:
    ids = list(entry_ids)
    out: dict[uuid.UUID, list[EntryFile]] = {i: [] for i in ids}
    if not ids:
        return out
    rows = (await session.execute(select(EntryFile).where(EntryFile.entry_id.in_(ids)))).scalars().all()
    for f in rows:
        out[f.entry_id].append(f)
    return out

async def records_for_entries(session: AsyncSession, entry_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, dict[Stage, dict | None]]:
    """Stage values for many entries, one query per stage table."""
    ids = list(entry_ids)
    out: dict[uuid.UUID, dict[Stage, dict | None]] = {i: {stage: None for stage in STAGE_ORDER} for i in ids}
    if not ids:
        return out
    for stage, model in STAGE_MODELS.items():
        rows = (await session.execute(select(model).where(model.entry_id.in_(ids)))).scalars().all()
        for rec in rows:
            out[rec.entry_id][stage] = rec.values()
    return out
