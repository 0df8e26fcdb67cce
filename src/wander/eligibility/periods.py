"""Calendar-month boundary utilities for eligibility windows.

All boundaries are returned as aware UTC datetimes. The month itself is
evaluated in the configured eligibility timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from wander.config import get_settings


@dataclass(frozen=True)
class MonthWindow:
    """Half-open UTC interval [start, end) covering one calendar month."""

    start: datetime
    end: datetime
    period_key: str

    def contains(self, moment: datetime) -> bool:
        return self.start <= as_utc(moment) < self.end


def as_utc(moment: datetime | None) -> datetime:
    """Return ``moment`` (default: now) as an aware UTC datetime. Naive input is taken as UTC."""
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def eligibility_tz() -> ZoneInfo:
    """Timezone in which calendar months are evaluated."""
    return ZoneInfo(get_settings().eligibility_timezone)


def get_period_key(moment: datetime | None = None, tz: ZoneInfo | None = None) -> str:
    """Get the 'YYYY-MM' key of the month containing ``moment``."""
    local = as_utc(moment).astimezone(tz or eligibility_tz())
    return f"{local.year:04d}-{local.month:02d}"


def month_window(moment: datetime | None = None, tz: ZoneInfo | None = None) -> MonthWindow:
    """Get the calendar-month window containing ``moment``."""
    tz = tz or eligibility_tz()
    local = as_utc(moment).astimezone(tz)

    if local.month == 12:
        next_year, next_month = local.year + 1, 1
    else:
        next_year, next_month = local.year, local.month + 1

    # Build each boundary in the zone so DST offsets are resolved per boundary.
    start = datetime(local.year, local.month, 1, tzinfo=tz).astimezone(timezone.utc)
    end = datetime(next_year, next_month, 1, tzinfo=tz).astimezone(timezone.utc)
    return MonthWindow(start=start, end=end, period_key=f"{local.year:04d}-{local.month:02d}")
