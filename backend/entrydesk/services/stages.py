from __future__ import annotations
from enum import Enum


class Stage(str, Enum):
    BASIC_INFO = "basic_info"
    PRELIMINARY = "preliminary"
    PROGRAM = "program"
    SEMIFINALS = "semifinals"
    FINALS = "finals"
    SNS = "sns"
    APPLICATIONS = "applications"


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)

STAGE_LABELS: dict[Stage, str] = {
    Stage.BASIC_INFO: "Basic information",
    Stage.PRELIMINARY: "Preliminary video",
    Stage.PROGRAM: "Program information",
    Stage.SEMIFINALS: "Semifinals information",
    Stage.FINALS: "Finals information",
    Stage.SNS: "SNS assets",
    Stage.APPLICATIONS: "Applications",
}

# settings key holding each stage's editing deadline
DEADLINE_KEYS: dict[Stage, str] = {
    Stage.BASIC_INFO: "basic_info_deadline",
    Stage.PRELIMINARY: "music_info_deadline",
    Stage.PROGRAM: "program_info_deadline",
    Stage.SEMIFINALS: "semifinals_deadline",
    Stage.FINALS: "finals_deadline",
    Stage.SNS: "sns_deadline",
    Stage.APPLICATIONS: "optional_request_deadline",
}

# stages that only open once the advanced round starts
ADVANCED_START_KEY = "advanced_start_date"
ADVANCED_STAGES: frozenset[Stage] = frozenset({Stage.SEMIFINALS, Stage.FINALS, Stage.SNS, Stage.APPLICATIONS})

SCENE_COUNT = 5
SCENE_FIELDS = ("time", "trigger", "color_type", "color_other", "image", "image_path", "notes")

# Semifinals stores the short token, finals stores the wording shown on the cue sheet.
CHASER_DESIGNATIONS: dict[str, str] = {
    "included": "Included in performance music",
    "required": "Separate chaser song required",
    "not_required": "No chaser song",
}
CHASER_REQUIRED = "required"
CHASER_REQUIRED_LABEL = CHASER_DESIGNATIONS[CHASER_REQUIRED]

def scene_prefixes() -> list[str]:
    return [f"scene{i}" for i in range(1, SCENE_COUNT + 1)] + ["chaser_exit"]

STATUS_NOT_STARTED = "not_started"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETE = "complete"

def parse_stage(value: str) -> Stage | None:
    try:
        return Stage(value)
    except ValueError:
        return None
