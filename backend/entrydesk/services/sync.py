from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping
from entrydesk.services.stages import Stage, CHASER_DESIGNATIONS, SCENE_FIELDS, scene_prefixes

Mapper = Callable[[Any], Any]


class SyncMappingError(ValueError):
    """A source value has no counterpart in the target stage's vocabulary."""


@dataclass(frozen=True)
class SyncGroup:
    """
    One flag-gated block of fields copied from a source stage to a target stage.

    `flag` lives on the target record. Only an explicit False means "keep
    following the source"; True marks the target's values as independently
    authored and None means the participant has not answered yet.
    """
    name: str
    flag: str
    fields: tuple[tuple[str, str], ...]
    mappers: Mapping[str, Mapper] = field(default_factory=dict)


@dataclass(frozen=True)
class SyncLink:
    source: Stage
    target: Stage
    groups: tuple[SyncGroup, ...]


@dataclass
class SyncPlan:
    updates: dict[str, Any] = field(default_factory=dict)
    synced: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def _same(*names: str) -> tuple[tuple[str, str], ...]:
    return tuple((n, n) for n in names)

def _copy_value(value: Any) -> Any:
    return "" if value is None else value

def map_chaser_designation(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return ""
    try:
        return CHASER_DESIGNATIONS[value]
    except (KeyError, TypeError):
        raise SyncMappingError(f"Unknown chaser song designation: {value!r}")

# preliminary rights status -> semifinals copyright permission
RIGHTS_PERMISSIONS = {"A": "commercial", "B": "licensed", "C": "original"}

def map_rights_clearance(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return ""
    try:
        return RIGHTS_PERMISSIONS[value]
    except (KeyError, TypeError):
        raise SyncMappingError(f"Unknown music rights status: {value!r}")


MUSIC_FIELDS = (
    "work_title", "work_title_kana", "work_character_story", "copyright_permission",
    "music_title", "cd_title", "artist", "record_number", "jasrac_code", "music_type",
    "music_data_path", "music_usage_method",
)
SOUND_FIELDS = (
    "sound_start_timing", "chaser_song_designation", "chaser_song",
    "fade_out_start_time", "fade_out_complete_time",
)
LIGHTING_FIELDS = ("dance_start_timing",) + tuple(
    f"{prefix}_{part}" for prefix in scene_prefixes() for part in SCENE_FIELDS
)

SEMIFINALS_TO_FINALS = SyncLink(
    source=Stage.SEMIFINALS,
    target=Stage.FINALS,
    groups=(
        SyncGroup("music", "music_change", _same(*MUSIC_FIELDS)),
        SyncGroup(
            "sound", "sound_change_from_semifinals", _same(*SOUND_FIELDS),
            mappers={"chaser_song_designation": map_chaser_designation},
        ),
        SyncGroup("lighting", "lighting_change_from_semifinals", _same(*LIGHTING_FIELDS)),
        SyncGroup(
            "choreographer", "choreographer_change",
            (
                ("choreographer_name", "choreographer_name"),
                ("choreographer_name_kana", "choreographer_furigana"),
                ("choreographer2_name", "choreographer2_name"),
                ("choreographer2_name_kana", "choreographer2_furigana"),
            ),
        ),
    ),
)

PRELIMINARY_TO_SEMIFINALS = SyncLink(
    source=Stage.PRELIMINARY,
    target=Stage.SEMIFINALS,
    groups=(
        SyncGroup(
            "music", "music_change_from_preliminary",
            _same("work_title", "work_title_kana")
            + (("work_story", "work_character_story"), ("music_rights_cleared", "copyright_permission"))
            + _same("music_title", "cd_title", "artist", "record_number", "jasrac_code", "music_type"),
            mappers={"music_rights_cleared": map_rights_clearance},
        ),
        SyncGroup(
            "choreographer", "choreographer_change_from_preliminary",
            (
                ("choreographer1_name", "choreographer_name"),
                ("choreographer1_furigana", "choreographer_name_kana"),
                ("choreographer2_name", "choreographer2_name"),
                ("choreographer2_furigana", "choreographer2_name_kana"),
            ),
        ),
    ),
)

LINKS: tuple[SyncLink, ...] = (PRELIMINARY_TO_SEMIFINALS, SEMIFINALS_TO_FINALS)

def links_from(stage: Stage) -> list[SyncLink]:
    return [link for link in LINKS if link.source == stage]

def cascade(stage: Stage) -> list[SyncLink]:
    """Links to run, in order, after `stage` is saved (preliminary also feeds finals through semifinals)."""
    out: list[SyncLink] = []
    pending = [stage]
    while pending:
        for link in links_from(pending.pop(0)):
            out.append(link)
            pending.append(link.target)
    return out

def sync_order(stage: Stage) -> list[SyncLink]:
    """
    Links to run after `stage` is saved.

    Links feeding `stage` run first so a target saved after its source still
    picks up the groups it follows, then the save cascades onward.
    """
    return [link for link in LINKS if link.target == stage] + cascade(stage)


def plan_sync(source: Mapping[str, Any], target: Mapping[str, Any], groups: tuple[SyncGroup, ...]) -> SyncPlan:
    """
    Work out which target fields change when the source is copied forward.

    Pure: nothing is written. `updates` only lists fields whose value differs,
    so applying a plan and planning again yields an empty update set.

    Raises SyncMappingError before producing any update when a mapped value
    cannot be translated, so a plan is never applied halfway.
    """
    plan = SyncPlan()
    for group in groups:
        if target.get(group.flag) is not False:
            plan.skipped.append(group.name)
            continue
        for src_field, dst_field in group.fields:
            mapper = group.mappers.get(src_field, _copy_value)
            value = mapper(source.get(src_field))
            if target.get(dst_field) != value:
                plan.updates[dst_field] = value
        plan.synced.append(group.name)
    return plan
