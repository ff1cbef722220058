from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from typing import Any
from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from entrydesk.db import get_session
from entrydesk.auth_deps import get_current_user
from entrydesk.errors import InvalidPayload, describe_validation_errors
from entrydesk.models.entry import Entry
from entrydesk.models.user import User
from entrydesk.schemas.entry import Dashboard, EntryPublic, StageSaved, StageState, StageView, SyncStatus
from entrydesk.schemas.stages import STAGE_PAYLOADS
from entrydesk.services.completion import StageCompletion
from entrydesk.services.deadlines import deadline_info, ensure_editable, is_editable, is_open, local_today
from entrydesk.services.stage_store import (
    SYNC_FAILED, completion_for, create_entry, current_entry, entry_for_save, load_config, load_stage, save_stage,
)
from entrydesk.services.stages import Stage, STAGE_LABELS, STAGE_ORDER, DEADLINE_KEYS
from entrydesk.services.validators import describe
from entrydesk.services.workflow import display_status

router = APIRouter(prefix="/entries", tags=["entries"])


def stage_state(stage: Stage, completion: StageCompletion, config: dict, now: datetime) -> StageState:
    info = deadline_info(DEADLINE_KEYS[stage], config, now)
    opened = is_open(stage, config, now)
    return StageState(
        exists=completion.exists,
        complete=completion.complete,
        status=completion.status,
        missing=list(completion.missing),
        missing_labels=describe(stage, completion.missing),
        open=opened,
        editable=opened and is_editable(DEADLINE_KEYS[stage], config, now),
        deadline=info.as_dict() if info else None,
    )

def entry_public(entry: Entry, user: User) -> EntryPublic:
    return EntryPublic(
        id=entry.id, status=entry.status, display_status=display_status(entry.status, user.has_seed),
        created_at=entry.created_at, updated_at=entry.updated_at,
    )


@router.post("", status_code=201, response_model=EntryPublic)
async def create(session: AsyncSession = Depends(get_session), user: User = Depends(get_current_user)):
    entry = await create_entry(session, user.id)
    return entry_public(entry, user)

@router.get("/me", response_model=Dashboard)
async def dashboard(session: AsyncSession = Depends(get_session), user: User = Depends(get_current_user)):
    now = datetime.now(dt_tz.utc)
    config = await load_config(session)
    entry = await current_entry(session, user.id)
    if entry is None:
        snapshot = {s: StageCompletion(exists=False, complete=False) for s in STAGE_ORDER}
    else:
        snapshot = await completion_for(session, entry, local_today(now))
    return Dashboard(
        entry=entry_public(entry, user) if entry else None,
        stages={s.value: stage_state(s, snapshot[s], config, now) for s in STAGE_ORDER},
    )

@router.get("/me/stages/{stage}", response_model=StageView)
async def get_stage(stage: Stage, session: AsyncSession = Depends(get_session), user: User = Depends(get_current_user)):
    now = datetime.now(dt_tz.utc)
    config = await load_config(session)
    entry = await current_entry(session, user.id)
    record = await load_stage(session, stage, entry.id) if entry else None
    if entry is None:
        completion = StageCompletion(exists=False, complete=False)
    else:
        completion = (await completion_for(session, entry, local_today(now)))[stage]
    return StageView(
        stage=stage.value,
        record=record.values() if record else None,
        state=stage_state(stage, completion, config, now),
    )

@router.put("/me/stages/{stage}", response_model=StageSaved)
async def put_stage(
    stage: Stage,
    payload: dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    try:
        values = STAGE_PAYLOADS[stage].model_validate(payload).changes()
    except ValidationError as e:
        raise InvalidPayload(reasons=describe_validation_errors(e.errors()))

    now = datetime.now(dt_tz.utc)
    config = await load_config(session)
    ensure_editable(stage, config, now)

    entry = await entry_for_save(session, user.id, stage)
    result = await save_stage(session, entry, stage, values, local_today(now))

    warnings = []
    if result.sync.status == SYNC_FAILED:
        warnings.append(
            f"Your {STAGE_LABELS[stage].lower()} was saved, but copying it to the next stage failed. "
            "Please review the next stage before its deadline."
        )
    return StageSaved(
        entry_id=entry.id,
        stage=stage.value,
        record=result.record.values(),
        state=stage_state(stage, result.completion[stage], config, now),
        sync=SyncStatus(**result.sync.as_dict()),
        warnings=warnings,
    )
