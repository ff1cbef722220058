from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone as dt_tz
from typing import Mapping
from zoneinfo import ZoneInfo
import structlog
from entrydesk.config import settings
from entrydesk.errors import DeadlinePassed, StageNotOpen
from entrydesk.services.stages import Stage, DEADLINE_KEYS, ADVANCED_START_KEY, ADVANCED_STAGES

log = structlog.get_logger()

URGENT_DAYS = 3

DeadlineConfig = Mapping[str, "str | None"]


def _aware(now: datetime) -> datetime:
    return now if now.tzinfo else now.replace(tzinfo=dt_tz.utc)

def parse_instant(value: str | None, tz_name: str | None = None) -> datetime | None:
    """
    Parse a configured ISO timestamp into an aware UTC instant.

    Values without an offset are wall-clock times in the canonical deadline
    timezone. A bare date means the end of that day is still allowed, so
    "2026-11-30" is read as 2026-11-30 23:59:59 local.

    Returns None for absent or empty values. Unparseable values are logged and
    also return None, which callers treat as "no deadline".

    Examples:
        >>> parse_instant("2026-11-30T23:59:00+09:00").isoformat()
        '2026-11-30T14:59:00+00:00'
        >>> parse_instant("2026-11-30T23:59:00", "Asia/Tokyo").hour
        14
        >>> parse_instant("") is None
        True
    """
    if value is None or not str(value).strip():
        return None
    raw = str(value).strip()
    tz = ZoneInfo(tz_name or settings.deadline_timezone)
    try:
        if len(raw) == 10:
            d = date.fromisoformat(raw)
            parsed = datetime(d.year, d.month, d.day, 23, 59, 59, tzinfo=tz)
        else:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        log.warning("deadline_unparseable", value=raw)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(dt_tz.utc)

def is_editable(key: str, config: DeadlineConfig, now: datetime) -> bool:
    """Editable iff no deadline is configured for `key` or `now <= deadline` (inclusive)."""
    deadline = parse_instant(config.get(key))
    if deadline is None:
        return True
    return _aware(now) <= deadline

def is_open(stage: Stage, config: DeadlineConfig, now: datetime) -> bool:
    """Advanced-round stages stay closed until the configured start date."""
    if stage not in ADVANCED_STAGES:
        return True
    start = parse_instant(config.get(ADVANCED_START_KEY))
    if start is None:
        return True
    return _aware(now) >= start

def ensure_editable(stage: Stage, config: DeadlineConfig, now: datetime) -> None:
    if not is_open(stage, config, now):
        raise StageNotOpen()
    if not is_editable(DEADLINE_KEYS[stage], config, now):
        raise DeadlinePassed()


@dataclass(frozen=True)
class DeadlineInfo:
    key: str
    deadline: datetime
    display: str
    days_left: int
    expired: bool
    urgent: bool

    def as_dict(self) -> dict:
        return {
            "key": self.key,
            "deadline": self.deadline.isoformat(),
            "display": self.display,
            "days_left": self.days_left,
            "expired": self.expired,
            "urgent": self.urgent,
        }

def deadline_info(key: str, config: DeadlineConfig, now: datetime, tz_name: str | None = None) -> DeadlineInfo | None:
    """
    Display data for one deadline, or None when no deadline is configured.

    `days_left` is ceil((deadline - now) / 1 day), so any fraction of a day
    counts as a whole day. `expired` mirrors the gate; `urgent` is only set
    while the deadline is still open.
    """
    deadline = parse_instant(config.get(key), tz_name)
    if deadline is None:
        return None
    now = _aware(now)
    tz = ZoneInfo(tz_name or settings.deadline_timezone)
    days_left = math.ceil((deadline - now).total_seconds() / 86400)
    expired = not is_editable(key, config, now)
    return DeadlineInfo(
        key=key,
        deadline=deadline,
        display=deadline.astimezone(tz).strftime("%Y-%m-%d %H:%M"),
        days_left=days_left,
        expired=expired,
        urgent=(not expired) and days_left <= URGENT_DAYS,
    )

def local_today(now: datetime, tz_name: str | None = None) -> date:
    """Calendar date in the canonical timezone, used for age checks."""
    return _aware(now).astimezone(ZoneInfo(tz_name or settings.deadline_timezone)).date()
