"""Date manipulation utilities"""

import math
from datetime import date, datetime, time, timezone

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def to_utc_datetime(value: date | datetime) -> datetime:
    """Promote a date to midnight UTC; naive datetimes are assumed UTC"""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole days from start to end, rounded up (negative when end is earlier)"""
    delta = to_utc_datetime(end) - to_utc_datetime(start)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def days_until(target: date | datetime, now: datetime) -> int:
    """ceil((target - now) / 1 day)"""
    return days_between(now, target)


def parse_date(value: str | date) -> date:
    """Parse an ISO calendar date, accepting full timestamps too"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def parse_datetime(value: str | datetime) -> datetime:
    """Parse an ISO timestamp into an aware UTC datetime"""
    if isinstance(value, datetime):
        return to_utc_datetime(value)
    return to_utc_datetime(datetime.fromisoformat(value.replace("Z", "+00:00")))
