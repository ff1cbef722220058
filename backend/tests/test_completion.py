from __future__ import annotations
from datetime import date
from types import SimpleNamespace
from entrydesk.services.completion import evaluate, facts_from_files
from entrydesk.services.stages import Stage, STAGE_ORDER
from records import basic_info, preliminary

TODAY = date(2026, 10, 19)


def _file(file_type, purpose):
    return SimpleNamespace(file_type=file_type, purpose=purpose)


def test_facts_need_matching_type_and_purpose():
    facts = facts_from_files([
        _file("video", "preliminary"),
        _file("photo", "sns_practice_video"),
        _file("photo", "semifinals_payment_slip"),
    ])
    assert facts == {"preliminary_video", "semifinals_payment_slip"}

def test_nothing_started():
    result = evaluate({}, [], TODAY)
    assert list(result) == list(STAGE_ORDER)
    assert all(c.status == "not_started" and not c.exists for c in result.values())

def test_statuses_across_stages():
    records = {
        Stage.BASIC_INFO: basic_info(),
        Stage.PRELIMINARY: preliminary(),
        Stage.APPLICATIONS: {},
        Stage.SNS: None,
    }
    result = evaluate(records, [], TODAY)
    assert result[Stage.BASIC_INFO].status == "complete"
    assert result[Stage.PRELIMINARY].status == "in_progress"
    assert result[Stage.PRELIMINARY].missing == ("preliminary_video",)
    assert result[Stage.APPLICATIONS].status == "complete"
    assert result[Stage.SNS].status == "not_started"

def test_upload_completes_preliminary():
    result = evaluate({Stage.PRELIMINARY: preliminary()}, [_file("video", "preliminary")], TODAY)
    assert result[Stage.PRELIMINARY].complete
    assert result[Stage.PRELIMINARY].as_dict() == {
        "exists": True, "complete": True, "status": "complete", "missing": [],
    }
