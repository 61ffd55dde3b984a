"""Date helpers shared by the lifecycle rules."""

import calendar
from datetime import date, datetime, time, timezone
from typing import Optional, TypeVar

DateT = TypeVar("DateT", date, datetime)


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps (SQLite drops tzinfo on read)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def add_months(value: DateT, months: int) -> DateT:
    """
    Add calendar months, clamping the day to the end of the target month.

    2024-01-31 + 1 month is 2024-02-29; 2024-01-01 + 3 months is 2024-04-01.
    Works for both dates and datetimes, keeping the time of day.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time(23, 59, 59), tzinfo=timezone.utc)
