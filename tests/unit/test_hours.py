"""
Unit tests for the open-now check.
"""

from datetime import datetime

import pytest

from kcc_search.models import DayHours
from kcc_search.search.hours import is_open_now

pytestmark = pytest.mark.unit

# 2026-10-19 is a Monday
MONDAY = (2026, 10, 19)


def monday_at(hour: int, minute: int = 0) -> datetime:
    return datetime(*MONDAY, hour, minute)


class TestRegularHours:
    HOURS = {"monday": {"open": "09:00", "close": "17:00"}}

    def test_open_during_hours(self):
        assert is_open_now(self.HOURS, monday_at(10)) is True

    def test_closed_after_hours(self):
        assert is_open_now(self.HOURS, monday_at(20)) is False

    def test_interval_is_half_open(self):
        """Open at the opening minute, closed at the closing minute"""
        assert is_open_now(self.HOURS, monday_at(9, 0)) is True
        assert is_open_now(self.HOURS, monday_at(17, 0)) is False

    def test_other_day_absent(self):
        """A day with no entry is closed"""
        tuesday = datetime(2026, 10, 20, 10, 0)
        assert is_open_now(self.HOURS, tuesday) is False

    def test_day_hours_model(self):
        hours = {"monday": DayHours(open="09:00", close="17:00")}
        assert is_open_now(hours, monday_at(12)) is True


class TestOvernightHours:
    HOURS = {"monday": {"open": "22:00", "close": "06:00"}}

    def test_open_late_evening(self):
        assert is_open_now(self.HOURS, monday_at(23, 30)) is True

    def test_open_early_morning(self):
        assert is_open_now(self.HOURS, monday_at(2, 0)) is True

    def test_closed_midday(self):
        assert is_open_now(self.HOURS, monday_at(12, 0)) is False


class TestFailClosed:
    """Bad data never reports open"""

    @pytest.mark.parametrize("hours", [
        None,
        {},
        {"monday": "By appointment"},
        {"monday": {"open": "9am", "close": "5pm"}},
        {"monday": {"open": "09:00"}},
        {"monday": {"open": "25:00", "close": "26:00"}},
        {"monday": {"open": None, "close": "17:00"}},
    ])
    def test_malformed_is_closed(self, hours):
        assert is_open_now(hours, monday_at(12)) is False
