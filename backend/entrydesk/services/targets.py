from __future__ import annotations
import uuid
from dataclasses import dataclass
from typing import Iterable, Union


@dataclass(frozen=True)
class EntryRef:
    entry_id: uuid.UUID


@dataclass(frozen=True)
class PlaceholderRef:
    """A registered participant who never created an entry."""
    user_id: uuid.UUID


Target = Union[EntryRef, PlaceholderRef]


def parse_targets(entry_ids: Iterable[str], participant_ids: Iterable[str] = ()) -> tuple[list[Target], list[str]]:
    """
    Turn the ids posted by the admin UI into typed targets.

    Ids that are not UUIDs are dropped with a warning; duplicates collapse.
    """
    targets: list[Target] = []
    warnings: list[str] = []
    seen: set[Target] = set()
    for raw, kind in [(i, EntryRef) for i in entry_ids] + [(i, PlaceholderRef) for i in participant_ids]:
        try:
            ref = kind(uuid.UUID(str(raw)))
        except ValueError:
            warnings.append(f"Skipped invalid id: {raw}")
            continue
        if ref not in seen:
            seen.add(ref)
            targets.append(ref)
    return targets, warnings

def entry_ids_of(targets: Iterable[Target]) -> list[uuid.UUID]:
    return [t.entry_id for t in targets if isinstance(t, EntryRef)]

def placeholder_ids_of(targets: Iterable[Target]) -> list[uuid.UUID]:
    return [t.user_id for t in targets if isinstance(t, PlaceholderRef)]
