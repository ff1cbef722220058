from __future__ import annotations
from datetime import date
import pytest
from entrydesk.services.stages import Stage
from entrydesk.services import validators
from entrydesk.services.validators import (
    RULES, Check, describe, eighteenth_birthday, is_minor, required_rules, validate,
)
from records import basic_info, preliminary, semifinals, finals

TODAY = date(2026, 10, 19)
GUARDIAN = ["guardian_name", "guardian_phone", "guardian_email"]


def test_complete_basic_info_has_nothing_missing():
    assert validate(Stage.BASIC_INFO, basic_info(), today=TODAY) == []


def test_seventeen_year_old_representative_needs_guardian():
    rec = basic_info(representative_birthdate="2009-01-15")
    missing = validate(Stage.BASIC_INFO, rec, today=TODAY)
    assert missing == GUARDIAN


def test_guardian_still_required_on_eighteenth_birthday():
    rec = basic_info(representative_birthdate="2008-10-19")
    assert validate(Stage.BASIC_INFO, rec, today=TODAY) == GUARDIAN
    # one day later the guardian rules drop away
    assert validate(Stage.BASIC_INFO, rec, today=date(2026, 10, 20)) == []


def test_default_today_is_the_local_contest_date(monkeypatch):
    seen = []

    def fake_local_today(now, tz_name=None):
        seen.append(now)
        return TODAY

    monkeypatch.setattr(validators, "local_today", fake_local_today)
    rec = basic_info(representative_birthdate="2008-10-19")
    assert validate(Stage.BASIC_INFO, rec) == GUARDIAN
    assert seen and seen[0].tzinfo is not None


def test_leap_day_birthday_turns_eighteen_on_feb_28():
    assert eighteenth_birthday(date(2008, 2, 29)) == date(2026, 2, 28)
    assert is_minor("2008-02-29", date(2026, 2, 28))
    assert not is_minor("2008-02-29", date(2026, 3, 1))


@pytest.mark.parametrize("value", [None, "", "not-a-date", "2099-01-01"])
def test_unusable_birthdate_never_makes_a_minor(value):
    assert not is_minor(value, TODAY)


def test_guardian_supplied_satisfies_minor_rule():
    rec = basic_info(
        representative_birthdate="2010-05-05",
        guardian_name="Yuko Tanaka", guardian_phone="090-2222-2222", guardian_email="yuko@example.com",
    )
    assert validate(Stage.BASIC_INFO, rec, today=TODAY) == []


def test_partner_fields_only_when_partnered():
    assert validate(Stage.BASIC_INFO, basic_info(has_partner=False), today=TODAY) == []
    missing = validate(Stage.BASIC_INFO, basic_info(has_partner=True), today=TODAY)
    assert missing == ["partner_name", "partner_furigana", "partner_romaji", "partner_birthdate"]


def test_minor_partner_needs_partner_guardian():
    rec = basic_info(
        has_partner=True, partner_name="Ren", partner_furigana="レン", partner_romaji="Ren",
        partner_birthdate="2012-03-03",
    )
    assert validate(Stage.BASIC_INFO, rec, today=TODAY) == [
        "partner_guardian_name", "partner_guardian_phone", "partner_guardian_email",
    ]


def test_unchecked_consents_and_blank_text_are_missing():
    rec = basic_info(agreement_checked=False, media_consent_checked=None, phone_number="   ")
    assert validate(Stage.BASIC_INFO, rec, today=TODAY) == [
        "phone_number", "agreement_checked", "media_consent_checked",
    ]


def test_preliminary_requires_uploaded_video():
    assert validate(Stage.PRELIMINARY, preliminary(), today=TODAY) == ["preliminary_video"]
    assert validate(Stage.PRELIMINARY, preliminary(), {"preliminary_video"}, TODAY) == []
    rec = preliminary(music_rights_cleared=None)
    assert validate(Stage.PRELIMINARY, rec, {"preliminary_video"}, TODAY) == ["music_rights_cleared"]


def test_overlong_story_is_reported():
    rec = preliminary(work_story="x" * 51)
    assert validate(Stage.PRELIMINARY, rec, {"preliminary_video"}, TODAY) == ["work_story"]


def test_program_second_song_fields_follow_song_count():
    rec = {
        "song_count": 1,
        "player_photo_path": "p.jpg",
        "semifinal_story": "story",
        "semifinal_highlight": "highlight",
        **{f"semifinal_image{i}_path": f"s{i}.jpg" for i in range(1, 5)},
    }
    assert validate(Stage.PROGRAM, rec, today=TODAY) == []
    rec["song_count"] = 2
    assert validate(Stage.PROGRAM, rec, today=TODAY) == [
        "final_player_photo_path", "final_story", "final_highlight",
        "final_image1_path", "final_image2_path", "final_image3_path", "final_image4_path",
    ]


def test_semifinals_conditional_fields():
    facts = {"semifinals_payment_slip"}
    assert validate(Stage.SEMIFINALS, semifinals(), facts, TODAY) == []
    rec = semifinals(chaser_song_designation="required", copyright_permission="commercial", props_usage="yes")
    assert validate(Stage.SEMIFINALS, rec, facts, TODAY) == ["jasrac_code", "chaser_song", "props_details"]
    assert validate(Stage.SEMIFINALS, semifinals(), (), TODAY) == ["semifinals_payment_slip"]


def test_semifinals_change_flag_false_is_an_answer():
    rec = semifinals(music_change_from_preliminary=False)
    assert validate(Stage.SEMIFINALS, rec, {"semifinals_payment_slip"}, TODAY) == []
    rec = semifinals(music_change_from_preliminary=None)
    assert validate(Stage.SEMIFINALS, rec, {"semifinals_payment_slip"}, TODAY) == ["music_change_from_preliminary"]


def test_finals_complete_and_music_only_when_changed():
    assert validate(Stage.FINALS, finals(), today=TODAY) == []
    rec = finals(music_change=False, work_title=None, music_title=None, music_data_path=None)
    assert validate(Stage.FINALS, rec, today=TODAY) == []
    rec = finals(work_title=None, music_title=None, music_data_path=None)
    assert validate(Stage.FINALS, rec, today=TODAY) == ["work_title", "music_title", "music_data_path"]


def test_finals_lighting_scenes_always_required():
    rec = finals(scene4_trigger=None, chaser_exit_image_path="")
    assert validate(Stage.FINALS, rec, today=TODAY) == ["scene4_trigger", "chaser_exit_image_path"]


def test_finals_chaser_song_uses_finals_wording():
    rec = finals(chaser_song_designation="Separate chaser song required")
    assert validate(Stage.FINALS, rec, today=TODAY) == ["chaser_song"]
    # the semifinals token is not the finals trigger
    rec = finals(chaser_song_designation="required")
    assert "chaser_song" not in validate(Stage.FINALS, rec, today=TODAY)


def test_finals_choreographer_names_when_changed():
    rec = finals(choreographer_change=True)
    assert validate(Stage.FINALS, rec, today=TODAY) == ["choreographer_name", "choreographer_furigana"]


def test_empty_applications_record_is_complete():
    assert validate(Stage.APPLICATIONS, {}, today=TODAY) == []


def test_applications_tickets_and_companions():
    rec = {"related_ticket_count": 2, "related1_relationship": "mother", "related1_name": "Yuko", "related1_furigana": "ユウコ",
           "companion2_name": "Sho"}
    assert validate(Stage.APPLICATIONS, rec, today=TODAY) == [
        "related2_relationship", "related2_name", "related2_furigana",
        "companion2_furigana", "companion2_purpose",
        "payment_slip_path",
    ]


def test_makeup_contact_required_when_stylist_chosen():
    rec = {"makeup_preferred_stylist": "Studio M", "makeup_name": "Aiko"}
    assert validate(Stage.APPLICATIONS, rec, today=TODAY) == ["makeup_email", "makeup_phone"]


def test_sns_needs_both_videos():
    assert validate(Stage.SNS, {}, today=TODAY) == ["sns_practice_video", "sns_introduction_highlight"]
    assert validate(Stage.SNS, {}, {"sns_practice_video", "sns_introduction_highlight"}, TODAY) == []


@pytest.mark.parametrize("stage", list(Stage))
def test_missing_equals_required_minus_present(stage):
    """Dropping any subset of required fields reports exactly that subset, in table order."""
    rules = [r for r in required_rules(stage, {}, TODAY) if r.check is not Check.FACT]
    # False answers every yes/no question without switching on conditional fields
    full = {r.field: {Check.CHECKED: True, Check.CHOSEN: False}.get(r.check, "value") for r in rules}
    facts = {r.field for r in RULES[stage] if r.check is Check.FACT}
    for dropped in (rules[::2], rules[1::3], rules):
        rec = {k: v for k, v in full.items() if k not in {r.field for r in dropped}}
        assert validate(stage, rec, facts, TODAY) == [r.field for r in dropped]


def test_output_is_deterministic_and_labelled():
    rec = basic_info(representative_name=None, agreement_checked=False)
    first = validate(Stage.BASIC_INFO, rec, today=TODAY)
    assert first == validate(Stage.BASIC_INFO, dict(reversed(list(rec.items()))), today=TODAY)
    assert describe(Stage.BASIC_INFO, first) == ["Representative name", "Agreement to the entry terms"]
