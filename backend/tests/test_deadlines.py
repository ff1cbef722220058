from __future__ import annotations
from datetime import date, datetime, timedelta, timezone
import pytest
from entrydesk.errors import DeadlinePassed, StageNotOpen
from entrydesk.services.deadlines import (
    deadline_info, ensure_editable, is_editable, is_open, local_today, parse_instant,
)
from entrydesk.services.stages import Stage

UTC = timezone.utc
KEY = "finals_deadline"


def test_offset_is_respected():
    assert parse_instant("2026-11-30T23:59:00+09:00") == datetime(2026, 11, 30, 14, 59, tzinfo=UTC)
    assert parse_instant("2026-11-30T14:59:00Z") == datetime(2026, 11, 30, 14, 59, tzinfo=UTC)

def test_naive_value_is_canonical_wall_clock():
    assert parse_instant("2026-11-30T23:59:00", "Asia/Tokyo") == datetime(2026, 11, 30, 14, 59, tzinfo=UTC)

def test_bare_date_allows_the_whole_day():
    assert parse_instant("2026-11-30", "Asia/Tokyo") == datetime(2026, 11, 30, 14, 59, 59, tzinfo=UTC)

@pytest.mark.parametrize("value", [None, "", "   ", "next friday", "2026-13-45"])
def test_empty_or_garbage_means_no_deadline(value):
    assert parse_instant(value) is None
    assert is_editable(KEY, {KEY: value}, datetime(2030, 1, 1, tzinfo=UTC))


def test_deadline_is_inclusive():
    cfg = {KEY: "2026-11-30T23:59:00+09:00"}
    at = datetime(2026, 11, 30, 14, 59, tzinfo=UTC)
    assert is_editable(KEY, cfg, at)
    assert not is_editable(KEY, cfg, at + timedelta(seconds=1))

def test_missing_key_is_editable():
    assert is_editable(KEY, {}, datetime(2030, 1, 1, tzinfo=UTC))

def test_naive_now_is_treated_as_utc():
    cfg = {KEY: "2026-11-30T14:59:00Z"}
    assert is_editable(KEY, cfg, datetime(2026, 11, 30, 14, 59))
    assert not is_editable(KEY, cfg, datetime(2026, 11, 30, 15, 0))


def test_advanced_stages_wait_for_start_date():
    cfg = {"advanced_start_date": "2026-12-01T00:00:00+09:00"}
    before = datetime(2026, 11, 30, 14, 59, tzinfo=UTC)
    assert not is_open(Stage.FINALS, cfg, before)
    assert is_open(Stage.FINALS, cfg, before + timedelta(minutes=1))
    assert is_open(Stage.PRELIMINARY, cfg, before)
    assert is_open(Stage.FINALS, {}, before)

def test_ensure_editable_raises_the_matching_error():
    now = datetime(2026, 11, 1, tzinfo=UTC)
    with pytest.raises(StageNotOpen):
        ensure_editable(Stage.SNS, {"advanced_start_date": "2026-12-01"}, now)
    with pytest.raises(DeadlinePassed) as exc:
        ensure_editable(Stage.BASIC_INFO, {"basic_info_deadline": "2026-10-31"}, now)
    assert exc.value.status_code == 403
    ensure_editable(Stage.BASIC_INFO, {"basic_info_deadline": "2026-11-01"}, now)


def test_deadline_info_counts_partial_days_up():
    cfg = {KEY: "2026-11-30T12:00:00Z"}
    info = deadline_info(KEY, cfg, datetime(2026, 11, 27, 13, 0, tzinfo=UTC), "Asia/Tokyo")
    assert info.days_left == 3
    assert info.urgent and not info.expired
    assert info.display == "2026-11-30 21:00"

def test_deadline_info_far_and_expired():
    cfg = {KEY: "2026-11-30T12:00:00Z"}
    far = deadline_info(KEY, cfg, datetime(2026, 11, 1, tzinfo=UTC))
    assert far.days_left == 30 and not far.urgent
    gone = deadline_info(KEY, cfg, datetime(2026, 12, 2, tzinfo=UTC))
    assert gone.expired and not gone.urgent
    assert gone.days_left < 0
    assert deadline_info(KEY, {}, datetime(2026, 12, 2, tzinfo=UTC)) is None

def test_as_dict_shape():
    info = deadline_info(KEY, {KEY: "2026-11-30T12:00:00Z"}, datetime(2026, 11, 1, tzinfo=UTC))
    assert info.as_dict()["deadline"] == "2026-11-30T12:00:00+00:00"
    assert set(info.as_dict()) == {"key", "deadline", "display", "days_left", "expired", "urgent"}

def test_local_today_uses_canonical_zone():
    # 20:00 UTC is already the next day in Tokyo
    assert local_today(datetime(2026, 10, 18, 20, 0, tzinfo=UTC), "Asia/Tokyo") == date(2026, 10, 19)
