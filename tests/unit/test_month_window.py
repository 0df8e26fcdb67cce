"""Calendar-month eligibility window tests."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from wander.eligibility.periods import as_utc, get_period_key, month_window

UTC = timezone.utc


class TestMonthWindow:
    """Month windows are half-open [first instant, first instant of next month)."""

    def test_mid_month(self):
        window = month_window(datetime(2026, 5, 17, 13, 45, tzinfo=UTC))
        assert window.start == datetime(2026, 5, 1, tzinfo=UTC)
        assert window.end == datetime(2026, 6, 1, tzinfo=UTC)
        assert window.period_key == "2026-05"

    def test_december_rolls_into_next_year(self):
        window = month_window(datetime(2026, 12, 31, 23, 59, tzinfo=UTC))
        assert window.start == datetime(2026, 12, 1, tzinfo=UTC)
        assert window.end == datetime(2027, 1, 1, tzinfo=UTC)
        assert window.period_key == "2026-12"

    def test_last_instant_and_first_instant_are_different_months(self):
        last = datetime(2026, 1, 31, 23, 59, 59, 999999, tzinfo=UTC)
        first = last + timedelta(microseconds=1)
        assert month_window(last).period_key == "2026-01"
        assert month_window(first).period_key == "2026-02"

    def test_end_is_exclusive(self):
        window = month_window(datetime(2026, 2, 10, tzinfo=UTC))
        assert window.contains(window.start)
        assert not window.contains(window.end)
        assert window.contains(window.end - timedelta(microseconds=1))

    def test_leap_february(self):
        window = month_window(datetime(2028, 2, 29, 12, tzinfo=UTC))
        assert window.end - window.start == timedelta(days=29)

    def test_naive_input_taken_as_utc(self):
        assert month_window(datetime(2026, 3, 1, 0, 0)).period_key == "2026-03"

    def test_default_is_now(self):
        window = month_window()
        assert window.period_key == get_period_key()


class TestEligibilityTimezone:
    """Months are evaluated in the configured zone, boundaries returned in UTC."""

    def test_zone_shifts_the_month(self):
        tz = ZoneInfo("America/New_York")
        moment = datetime(2026, 3, 1, 3, 0, tzinfo=UTC)  # Feb 28, 22:00 in New York
        window = month_window(moment, tz=tz)
        assert window.period_key == "2026-02"
        assert window.start == datetime(2026, 2, 1, 5, 0, tzinfo=UTC)
        assert window.end == datetime(2026, 3, 1, 5, 0, tzinfo=UTC)

    def test_boundaries_follow_dst_offsets(self):
        tz = ZoneInfo("America/New_York")
        window = month_window(datetime(2026, 3, 15, tzinfo=UTC), tz=tz)
        # EST (UTC-5) at the start of March, EDT (UTC-4) at the start of April
        assert window.start == datetime(2026, 3, 1, 5, 0, tzinfo=UTC)
        assert window.end == datetime(2026, 4, 1, 4, 0, tzinfo=UTC)

    def test_setting_controls_default_zone(self, monkeypatch):
        from wander.config import get_settings

        monkeypatch.setenv("WANDER_ELIGIBILITY_TIMEZONE", "Asia/Jakarta")
        get_settings.cache_clear()
        # 2026-01-31 18:00 UTC is already February 1st in Jakarta (UTC+7)
        assert get_period_key(datetime(2026, 1, 31, 18, 0, tzinfo=UTC)) == "2026-02"


class TestAsUtc:
    def test_converts_offsets(self):
        moment = datetime(2026, 1, 1, 7, 0, tzinfo=timezone(timedelta(hours=7)))
        assert as_utc(moment) == datetime(2026, 1, 1, 0, 0, tzinfo=UTC)
        assert as_utc(moment).tzinfo is UTC

    def test_none_is_now(self):
        before = datetime.now(UTC)
        assert as_utc(None) >= before

    @pytest.mark.parametrize(
        "moment,expected",
        [
            (datetime(2026, 7, 1, 0, 0, tzinfo=UTC), "2026-07"),
            (datetime(2026, 6, 30, 23, 59, tzinfo=UTC), "2026-06"),
            (datetime(1999, 12, 31, 12, 0, tzinfo=UTC), "1999-12"),
        ],
    )
    def test_period_key_format(self, moment, expected):
        assert get_period_key(moment) == expected
