"""
Timezone utilities for the studio client.

The schedule is browsed by local calendar day, while the store keeps
``start_time`` in UTC.
"""

from datetime import date, datetime, time, timedelta

import pytz

# Last representable instant of a day at the store's millisecond resolution.
END_OF_DAY = time(23, 59, 59, 999000)


def get_timezone(name: str) -> pytz.BaseTzInfo:
    return pytz.timezone(name)


def local_today(tz_name: str) -> date:
    """Today's date in ``tz_name``."""
    return datetime.now(get_timezone(tz_name)).date()


def day_bounds(day: date, tz_name: str) -> tuple[datetime, datetime]:
    """
    Return the inclusive UTC bounds of a local calendar day.

    Args:
        day: Local calendar date
        tz_name: IANA timezone name

    Returns:
        ``(start, end)`` where start is local 00:00:00.000 and end is local
        23:59:59.999, both converted to UTC
    """
    tz = get_timezone(tz_name)
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day, END_OF_DAY))
    return start.astimezone(pytz.UTC), end.astimezone(pytz.UTC)


def to_local(dt: datetime, tz_name: str) -> datetime:
    """Convert ``dt`` to ``tz_name``; naive values are treated as UTC."""
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(get_timezone(tz_name))


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def days_from(day: date, count: int) -> list[date]:
    """``count`` consecutive dates starting at ``day``, for a calendar strip."""
    return [day + timedelta(days=offset) for offset in range(count)]
