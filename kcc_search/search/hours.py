"""
Open-now check against structured weekly hours.

Fail-closed: absent days, free-text notes and malformed times are treated as
closed. A service is never reported open on bad data.
"""

from datetime import datetime
from typing import Any, Mapping, Optional

from ..models import WEEKDAYS, DayHours


def _to_minutes(value: Any) -> Optional[int]:
    """'HH:MM' -> minutes since midnight, None if malformed"""
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        return None
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 24 or minutes > 59 or (hours == 24 and minutes != 0):
        return None
    return hours * 60 + minutes


def _day_bounds(entry: Any):
    if isinstance(entry, DayHours):
        return entry.open, entry.close
    if isinstance(entry, Mapping):
        return entry.get("open"), entry.get("close")
    return None, None


def is_open_now(hours: Optional[Mapping[str, Any]], now: Optional[datetime] = None) -> bool:
    """
    Check whether a service is open at the given local time.

    Args:
        hours: weekday -> DayHours / {"open", "close"} dict / free-text note
        now: Local time to check (defaults to datetime.now())

    Returns:
        True iff now falls in [open, close). Overnight spans (close < open)
        wrap past midnight: 22:00-06:00 is open at 23:30 and at 02:00.
    """
    if not hours:
        return False

    now = now or datetime.now()
    today = hours.get(WEEKDAYS[now.weekday()])
    if not today or isinstance(today, str):
        return False

    open_raw, close_raw = _day_bounds(today)
    open_minutes = _to_minutes(open_raw)
    close_minutes = _to_minutes(close_raw)
    if open_minutes is None or close_minutes is None:
        return False

    current = now.hour * 60 + now.minute

    if close_minutes < open_minutes:
        return current >= open_minutes or current < close_minutes

    return open_minutes <= current < close_minutes
