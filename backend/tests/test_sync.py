from __future__ import annotations
import pytest
from entrydesk.services.stages import Stage
from entrydesk.services.sync import (
    PRELIMINARY_TO_SEMIFINALS, SEMIFINALS_TO_FINALS, SyncMappingError,
    cascade, map_chaser_designation, map_rights_clearance, plan_sync, sync_order,
)
from records import preliminary, semifinals, finals

FINALS_GROUPS = SEMIFINALS_TO_FINALS.groups


def test_false_flag_copies_source_values():
    target = finals(music_change=False, choreographer_change=True, work_title="Old title")
    plan = plan_sync(semifinals(), target, FINALS_GROUPS)
    assert "music" in plan.synced
    assert plan.updates["work_title"] == "Blue Hour"
    assert plan.updates["music_data_path"] == "entries/x/semifinals_music.mp3"
    # sound and lighting stay independently authored
    assert "sound_start_timing" not in plan.updates
    assert set(plan.skipped) == {"sound", "lighting", "choreographer"}

def test_true_flag_leaves_target_alone():
    plan = plan_sync(semifinals(), finals(choreographer_change=True), FINALS_GROUPS)
    assert plan.synced == []
    assert plan.updates == {}

def test_unanswered_flag_is_skipped():
    target = finals(music_change=None, sound_change_from_semifinals=None,
                    lighting_change_from_semifinals=None, choreographer_change=None)
    plan = plan_sync(semifinals(), target, FINALS_GROUPS)
    assert plan.updates == {} and plan.synced == []

def test_missing_source_values_clear_the_target():
    target = finals(music_change=False)
    plan = plan_sync(semifinals(cd_title=None), target, FINALS_GROUPS)
    assert plan.updates["cd_title"] == ""

def test_applying_a_plan_makes_it_idempotent():
    target = finals(music_change=False, sound_change_from_semifinals=False, lighting_change_from_semifinals=False)
    plan = plan_sync(semifinals(), target, FINALS_GROUPS)
    assert plan.updates
    target.update(plan.updates)
    assert plan_sync(semifinals(), target, FINALS_GROUPS).updates == {}

def test_designation_is_translated_for_finals():
    target = finals(sound_change_from_semifinals=False)
    plan = plan_sync(semifinals(chaser_song_designation="required"), target, FINALS_GROUPS)
    assert plan.updates["chaser_song_designation"] == "Separate chaser song required"

@pytest.mark.parametrize("token,label", [
    ("included", "Included in performance music"),
    ("required", "Separate chaser song required"),
    ("not_required", "No chaser song"),
    (None, ""),
    ("", ""),
])
def test_map_chaser_designation(token, label):
    assert map_chaser_designation(token) == label

def test_unknown_designation_aborts_the_whole_plan():
    target = finals(music_change=False, sound_change_from_semifinals=False, work_title="Keep me")
    with pytest.raises(SyncMappingError):
        plan_sync(semifinals(chaser_song_designation="maybe"), target, FINALS_GROUPS)
    assert target["work_title"] == "Keep me"

def test_choreographer_kana_maps_to_furigana():
    source = semifinals(choreographer_name="Mika Sato", choreographer_name_kana="サトウ ミカ")
    plan = plan_sync(source, finals(), FINALS_GROUPS)
    assert plan.updates == {
        "choreographer_name": "Mika Sato",
        "choreographer_furigana": "サトウ ミカ",
        "choreographer2_name": "",
        "choreographer2_furigana": "",
    }
    target = finals(**plan.updates)
    assert plan_sync(source, target, FINALS_GROUPS).updates == {}

def test_preliminary_story_feeds_semifinals_story():
    target = semifinals(music_change_from_preliminary=False)
    plan = plan_sync(preliminary(), target, PRELIMINARY_TO_SEMIFINALS.groups)
    assert plan.updates["work_character_story"] == "Two dancers chase the last light."
    assert plan.updates["work_title_kana"] == "ブルーアワー"
    assert plan.updates["copyright_permission"] == "commercial"

@pytest.mark.parametrize("status,permission", [
    ("A", "commercial"),
    ("B", "licensed"),
    ("C", "original"),
    (None, ""),
])
def test_map_rights_clearance(status, permission):
    assert map_rights_clearance(status) == permission

def test_unknown_rights_status_aborts_the_plan():
    target = semifinals(music_change_from_preliminary=False)
    with pytest.raises(SyncMappingError):
        plan_sync(preliminary(music_rights_cleared="D"), target, PRELIMINARY_TO_SEMIFINALS.groups)

def test_preliminary_choreographer_renamed_fields():
    target = semifinals(choreographer_change_from_preliminary=False)
    plan = plan_sync(preliminary(), target, PRELIMINARY_TO_SEMIFINALS.groups)
    assert plan.updates["choreographer_name"] == "Mika Sato"
    assert plan.updates["choreographer_name_kana"] == "サトウ ミカ"


def test_cascade_order():
    assert cascade(Stage.PRELIMINARY) == [PRELIMINARY_TO_SEMIFINALS, SEMIFINALS_TO_FINALS]
    assert cascade(Stage.SEMIFINALS) == [SEMIFINALS_TO_FINALS]
    assert cascade(Stage.FINALS) == []
    assert cascade(Stage.BASIC_INFO) == []

def test_sync_order_pulls_before_pushing():
    assert sync_order(Stage.FINALS) == [SEMIFINALS_TO_FINALS]
    assert sync_order(Stage.SEMIFINALS) == [PRELIMINARY_TO_SEMIFINALS, SEMIFINALS_TO_FINALS]
    assert sync_order(Stage.PRELIMINARY) == [PRELIMINARY_TO_SEMIFINALS, SEMIFINALS_TO_FINALS]
    assert sync_order(Stage.SNS) == []
