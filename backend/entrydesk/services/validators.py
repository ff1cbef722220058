from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_tz
from enum import Enum
from typing import Any, Callable, Iterable, Mapping
from entrydesk.services.stages import Stage, CHASER_REQUIRED, CHASER_REQUIRED_LABEL, SCENE_COUNT
from entrydesk.services.deadlines import local_today

Record = Mapping[str, Any]
Predicate = Callable[[Record, date], bool]


class Check(str, Enum):
    TEXT = "text"        # non-blank value
    CHECKED = "checked"  # must be exactly True
    CHOSEN = "chosen"    # any answer, False included
    FACT = "fact"        # supplied by the caller, e.g. "a preliminary video was uploaded"


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False

def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class Rule:
    field: str
    label: str
    check: Check = Check.TEXT
    when: Predicate | None = None
    max_length: int | None = None

    def applies(self, record: Record, today: date) -> bool:
        return self.when is None or self.when(record, today)

    def fails(self, record: Record, facts: frozenset[str]) -> bool:
        if self.check is Check.FACT:
            return self.field not in facts
        value = record.get(self.field)
        if self.check is Check.CHECKED:
            return value is not True
        if self.check is Check.CHOSEN:
            return _blank(value)
        if _blank(value):
            return True
        return self.max_length is not None and isinstance(value, str) and len(value.strip()) > self.max_length


# --- predicates -------------------------------------------------------------

def is_true(field: str) -> Predicate:
    return lambda r, _today: r.get(field) is True

def equals(field: str, value: Any) -> Predicate:
    return lambda r, _today: r.get(field) == value

def present(field: str) -> Predicate:
    return lambda r, _today: not _blank(r.get(field))

def at_least(field: str, n: int) -> Predicate:
    return lambda r, _today: _as_int(r.get(field)) >= n

def all_of(*preds: Predicate) -> Predicate:
    return lambda r, today: all(p(r, today) for p in preds)

def any_of(*preds: Predicate) -> Predicate:
    return lambda r, today: any(p(r, today) for p in preds)

def minor(birth_field: str) -> Predicate:
    return lambda r, today: is_minor(r.get(birth_field), today)


# --- age --------------------------------------------------------------------

def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None

def eighteenth_birthday(born: date) -> date:
    try:
        return born.replace(year=born.year + 18)
    except ValueError:
        # born on Feb 29, celebrated on Feb 28 in common years
        return born.replace(year=born.year + 18, day=28)

def is_minor(birthdate: Any, today: date) -> bool:
    """
    True while `today` is on or before the 18th birthday.

    The birthday itself still counts as a minor, so guardian details are
    required through that day. Missing, unparseable or future dates never
    make someone a minor.

    Examples:
        >>> is_minor("2008-10-19", date(2026, 10, 19))
        True
        >>> is_minor("2008-10-19", date(2026, 10, 20))
        False
    """
    born = parse_date(birthdate)
    if born is None or born > today:
        return False
    return today <= eighteenth_birthday(born)


# --- rule tables ------------------------------------------------------------

def _scene_rules(prefixes: Iterable[tuple[str, str]], when: Predicate | None = None) -> list[Rule]:
    parts = [
        ("time", "time"), ("trigger", "trigger"), ("color_type", "color type"),
        ("color_other", "color details"), ("image", "image description"), ("image_path", "image file"),
    ]
    return [
        Rule(f"{prefix}_{part}", f"{label} {part_label}", when=when)
        for prefix, label in prefixes
        for part, part_label in parts
    ]

_SCENE1_AND_EXIT = [("scene1", "Scene 1"), ("chaser_exit", "Chaser/exit")]
_ALL_SCENES = [(f"scene{i}", f"Scene {i}") for i in range(1, SCENE_COUNT + 1)] + [("chaser_exit", "Chaser/exit")]

_has_partner = is_true("has_partner")

BASIC_INFO_RULES: tuple[Rule, ...] = (
    Rule("dance_style", "Dance style"),
    Rule("category_division", "Category"),
    Rule("representative_name", "Representative name"),
    Rule("representative_furigana", "Representative name (kana)"),
    Rule("representative_romaji", "Representative name (romaji)"),
    Rule("representative_birthdate", "Representative date of birth"),
    Rule("representative_email", "Representative email"),
    Rule("phone_number", "Phone number"),
    Rule("emergency_contact_name_1", "Emergency contact name"),
    Rule("emergency_contact_phone_1", "Emergency contact phone"),
    Rule("partner_name", "Partner name", when=_has_partner),
    Rule("partner_furigana", "Partner name (kana)", when=_has_partner),
    Rule("partner_romaji", "Partner name (romaji)", when=_has_partner),
    Rule("partner_birthdate", "Partner date of birth", when=_has_partner),
    Rule("guardian_name", "Guardian name", when=minor("representative_birthdate")),
    Rule("guardian_phone", "Guardian phone", when=minor("representative_birthdate")),
    Rule("guardian_email", "Guardian email", when=minor("representative_birthdate")),
    Rule("partner_guardian_name", "Partner's guardian name", when=all_of(_has_partner, minor("partner_birthdate"))),
    Rule("partner_guardian_phone", "Partner's guardian phone", when=all_of(_has_partner, minor("partner_birthdate"))),
    Rule("partner_guardian_email", "Partner's guardian email", when=all_of(_has_partner, minor("partner_birthdate"))),
    Rule("agreement_checked", "Agreement to the entry terms", Check.CHECKED),
    Rule("privacy_policy_checked", "Agreement to the privacy policy", Check.CHECKED),
    Rule("media_consent_checked", "Consent to media use", Check.CHECKED),
)

PRELIMINARY_RULES: tuple[Rule, ...] = (
    Rule("work_title", "Work title"),
    Rule("work_title_kana", "Work title (kana)"),
    Rule("work_story", "Work story", max_length=50),
    Rule("music_title", "Music title"),
    Rule("cd_title", "CD title"),
    Rule("artist", "Artist"),
    Rule("record_number", "Record number"),
    Rule("jasrac_code", "JASRAC work code"),
    Rule("music_type", "Music type"),
    Rule("music_rights_cleared", "Music rights status"),
    Rule("choreographer1_name", "Choreographer name"),
    Rule("choreographer1_furigana", "Choreographer name (kana)"),
    Rule("preliminary_video", "Preliminary video", Check.FACT),
)

_two_songs = equals("song_count", 2)

PROGRAM_RULES: tuple[Rule, ...] = (
    Rule("player_photo_path", "Player photo"),
    Rule("semifinal_story", "Semifinal story", max_length=100),
    Rule("semifinal_highlight", "Semifinal highlight", max_length=50),
    *(Rule(f"semifinal_image{i}_path", f"Semifinal image {i}") for i in range(1, 5)),
    Rule("final_player_photo_path", "Final player photo", when=_two_songs),
    Rule("final_story", "Final story", when=_two_songs, max_length=100),
    Rule("final_highlight", "Final highlight", when=_two_songs, max_length=50),
    *(Rule(f"final_image{i}_path", f"Final image {i}", when=_two_songs) for i in range(1, 5)),
)

SEMIFINALS_RULES: tuple[Rule, ...] = (
    Rule("music_change_from_preliminary", "Music change from preliminary", Check.CHOSEN),
    Rule("work_title", "Work title"),
    Rule("work_character_story", "Work story", max_length=50),
    Rule("copyright_permission", "Copyright status"),
    Rule("jasrac_code", "JASRAC work code", when=equals("copyright_permission", "commercial")),
    Rule("music_title", "Music title"),
    Rule("music_type", "Music type"),
    Rule("music_data_path", "Music data"),
    Rule("sound_start_timing", "Sound start timing"),
    Rule("chaser_song_designation", "Chaser song designation"),
    Rule("chaser_song", "Chaser song", when=equals("chaser_song_designation", CHASER_REQUIRED)),
    Rule("fade_out_start_time", "Fade-out start time"),
    Rule("fade_out_complete_time", "Fade-out complete time"),
    Rule("dance_start_timing", "Dance start timing"),
    *_scene_rules(_SCENE1_AND_EXIT),
    Rule("props_usage", "Props usage"),
    Rule("props_details", "Props details", when=equals("props_usage", "yes")),
    Rule("bank_name", "Bank name"),
    Rule("branch_name", "Branch name"),
    Rule("account_type", "Account type"),
    Rule("account_number", "Account number"),
    Rule("account_holder", "Account holder"),
    Rule("semifinals_payment_slip", "Semifinals payment slip", Check.FACT),
)

_music_changed = is_true("music_change")

FINALS_RULES: tuple[Rule, ...] = (
    Rule("music_change", "Music change from semifinals", Check.CHOSEN),
    Rule("sound_change_from_semifinals", "Sound change from semifinals", Check.CHOSEN),
    Rule("lighting_change_from_semifinals", "Lighting change from semifinals", Check.CHOSEN),
    Rule("choreographer_change", "Choreographer change from semifinals", Check.CHOSEN),
    Rule("work_title", "Work title", when=_music_changed),
    Rule("work_character_story", "Work story", when=_music_changed, max_length=50),
    Rule("copyright_permission", "Copyright status", when=_music_changed),
    Rule("jasrac_code", "JASRAC work code", when=all_of(_music_changed, equals("copyright_permission", "commercial"))),
    Rule("music_title", "Music title", when=_music_changed),
    Rule("music_type", "Music type", when=_music_changed),
    Rule("music_data_path", "Music data", when=_music_changed),
    Rule("sound_start_timing", "Sound start timing"),
    Rule("chaser_song_designation", "Chaser song designation"),
    Rule("chaser_song", "Chaser song", when=equals("chaser_song_designation", CHASER_REQUIRED_LABEL)),
    Rule("fade_out_start_time", "Fade-out start time"),
    Rule("fade_out_complete_time", "Fade-out complete time"),
    Rule("dance_start_timing", "Dance start timing"),
    *_scene_rules(_ALL_SCENES),
    Rule("choreographer_name", "Choreographer name", when=is_true("choreographer_change")),
    Rule("choreographer_furigana", "Choreographer name (kana)", when=is_true("choreographer_change")),
    Rule("props_usage", "Props usage"),
    Rule("props_details", "Props details", when=equals("props_usage", "yes")),
    Rule("choreographer_attendance", "Choreographer attendance"),
    Rule("choreographer_photo_permission", "Choreographer photo permission"),
    Rule("choreographer_photo_path", "Choreographer photo"),
)

SNS_RULES: tuple[Rule, ...] = (
    Rule("sns_practice_video", "Practice video", Check.FACT),
    Rule("sns_introduction_highlight", "Introduction highlight video", Check.FACT),
)

RELATED_TICKET_MAX = 5
COMPANION_MAX = 3

def _application_rules() -> tuple[Rule, ...]:
    rules: list[Rule] = []
    for i in range(1, RELATED_TICKET_MAX + 1):
        wanted = at_least("related_ticket_count", i)
        rules += [
            Rule(f"related{i}_relationship", f"Related person {i} relationship", when=wanted),
            Rule(f"related{i}_name", f"Related person {i} name", when=wanted),
            Rule(f"related{i}_furigana", f"Related person {i} name (kana)", when=wanted),
        ]
    for i in range(1, COMPANION_MAX + 1):
        named = present(f"companion{i}_name")
        rules += [
            Rule(f"companion{i}_furigana", f"Companion {i} name (kana)", when=named),
            Rule(f"companion{i}_purpose", f"Companion {i} purpose", when=named),
        ]
    requested = any_of(at_least("related_ticket_count", 1), *(present(f"companion{i}_name") for i in range(1, COMPANION_MAX + 1)))
    rules.append(Rule("payment_slip_path", "Payment slip", when=requested))
    stylist = present("makeup_preferred_stylist")
    rules += [
        Rule("makeup_name", "Makeup applicant name", when=stylist),
        Rule("makeup_email", "Makeup applicant email", when=stylist),
        Rule("makeup_phone", "Makeup applicant phone", when=stylist),
    ]
    return tuple(rules)

APPLICATIONS_RULES = _application_rules()

RULES: dict[Stage, tuple[Rule, ...]] = {
    Stage.BASIC_INFO: BASIC_INFO_RULES,
    Stage.PRELIMINARY: PRELIMINARY_RULES,
    Stage.PROGRAM: PROGRAM_RULES,
    Stage.SEMIFINALS: SEMIFINALS_RULES,
    Stage.FINALS: FINALS_RULES,
    Stage.SNS: SNS_RULES,
    Stage.APPLICATIONS: APPLICATIONS_RULES,
}


# --- evaluation -------------------------------------------------------------

def required_rules(stage: Stage, record: Record | None, today: date) -> list[Rule]:
    rec = record or {}
    return [r for r in RULES[stage] if r.applies(rec, today)]

def failing_rules(stage: Stage, record: Record | None, facts: Iterable[str] = (), today: date | None = None) -> list[Rule]:
    today = today or local_today(datetime.now(dt_tz.utc))
    rec = record or {}
    known = frozenset(facts)
    return [r for r in required_rules(stage, rec, today) if r.fails(rec, known)]

def validate(stage: Stage, record: Record | None, facts: Iterable[str] = (), today: date | None = None) -> list[str]:
    """
    Return the missing or invalid field names of one stage record, in rule-table order.

    `facts` names the auxiliary facts that hold for the entry (see
    `completion.facts_from_files`); `today` drives the age-dependent rules.
    """
    return [r.field for r in failing_rules(stage, record, facts, today)]

def describe(stage: Stage, fields: Iterable[str]) -> list[str]:
    labels = {r.field: r.label for r in RULES[stage]}
    return [labels.get(f, f) for f in fields]
