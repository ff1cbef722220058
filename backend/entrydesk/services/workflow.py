from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from entrydesk.db import utcnow
from entrydesk.errors import InvalidStatus, BulkActionFailed
from entrydesk.models.entry import Entry
from entrydesk.services.targets import Target, entry_ids_of, placeholder_ids_of

log = structlog.get_logger()


class EntryStatus(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    SELECTED = "selected"
    REJECTED = "rejected"


# what participants see
DISPLAY_SEED = "seed"
DISPLAY_LABELS = {
    EntryStatus.PENDING: "before_selection",
    EntryStatus.SUBMITTED: "before_selection",
    EntryStatus.SELECTED: "passed",
    EntryStatus.REJECTED: "failed",
}

def parse_status(value: str | None) -> EntryStatus:
    try:
        return EntryStatus(value)
    except ValueError:
        raise InvalidStatus()

def display_status(status: str | None, has_seed: bool) -> str:
    """Seeded participants always show as passing; the stored status is untouched."""
    if has_seed:
        return DISPLAY_SEED
    try:
        return DISPLAY_LABELS[EntryStatus(status)]
    except ValueError:
        return DISPLAY_LABELS[EntryStatus.PENDING]


@dataclass
class BulkStatusResult:
    updated: int = 0
    unchanged: int = 0
    warnings: list[str] = field(default_factory=list)


async def bulk_update_status(session: AsyncSession, targets: Iterable[Target], status: EntryStatus) -> BulkStatusResult:
    """
    Move the targeted entries to `status`.

    Entries already in `status` are left alone, so repeating a request is a
    no-op. Placeholder targets never reach the entries table.
    """
    targets = list(targets)
    result = BulkStatusResult()
    for user_id in placeholder_ids_of(targets):
        result.warnings.append(f"Participant {user_id} has no entry yet; status not changed")

    ids = entry_ids_of(targets)
    if not ids:
        return result
    try:
        rows = (await session.execute(select(Entry.id, Entry.status).where(Entry.id.in_(ids)))).all()
        found = {r.id: r.status for r in rows}
        for missing in (i for i in ids if i not in found):
            result.warnings.append(f"Entry {missing} not found")
        changing = [i for i, current in found.items() if current != status.value]
        result.unchanged = len(found) - len(changing)
        if changing:
            await session.execute(
                update(Entry).where(Entry.id.in_(changing)).values(status=status.value, updated_at=utcnow())
            )
            await session.commit()
        result.updated = len(changing)
    except SQLAlchemyError as e:
        await session.rollback()
        log.error("bulk_status_update_failed", error=str(e), count=len(ids))
        raise BulkActionFailed("Failed to update entries")
    log.info("bulk_status_updated", status=status.value, updated=result.updated, unchanged=result.unchanged)
    return result
