from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping
from entrydesk.services.stages import (
    Stage, STAGE_ORDER, STATUS_NOT_STARTED, STATUS_IN_PROGRESS, STATUS_COMPLETE,
)
from entrydesk.services.validators import validate

# fact name -> (file_type or None for any, purpose)
FILE_FACTS: dict[str, tuple[str | None, str]] = {
    "preliminary_video": ("video", "preliminary"),
    "sns_practice_video": ("video", "sns_practice_video"),
    "sns_introduction_highlight": ("video", "sns_introduction_highlight"),
    "semifinals_payment_slip": (None, "semifinals_payment_slip"),
}


@dataclass(frozen=True)
class StageCompletion:
    exists: bool
    complete: bool
    missing: tuple[str, ...] = ()

    @property
    def status(self) -> str:
        if not self.exists:
            return STATUS_NOT_STARTED
        return STATUS_COMPLETE if self.complete else STATUS_IN_PROGRESS

    def as_dict(self) -> dict:
        return {"exists": self.exists, "complete": self.complete, "status": self.status, "missing": list(self.missing)}


def facts_from_files(files: Iterable[Any]) -> frozenset[str]:
    """Facts that hold for an entry given its uploaded files (objects with file_type/purpose)."""
    facts = set()
    for f in files:
        for fact, (file_type, purpose) in FILE_FACTS.items():
            if f.purpose == purpose and (file_type is None or f.file_type == file_type):
                facts.add(fact)
    return frozenset(facts)

def evaluate_stage(stage: Stage, record: Mapping[str, Any] | None, facts: frozenset[str], today: date) -> StageCompletion:
    if record is None:
        return StageCompletion(exists=False, complete=False)
    missing = validate(stage, record, facts, today)
    return StageCompletion(exists=True, complete=not missing, missing=tuple(missing))

def evaluate(records: Mapping[Stage, Mapping[str, Any] | None], files: Iterable[Any], today: date) -> dict[Stage, StageCompletion]:
    """
    Completion snapshot across every stage of one entry.

    `records` maps a stage to its record values, or None (or no key) when
    the stage has not been started. Absence is the normal case and never an
    error.
    """
    facts = facts_from_files(files)
    return {stage: evaluate_stage(stage, records.get(stage), facts, today) for stage in STAGE_ORDER}
