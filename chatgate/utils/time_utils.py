"""Clock and calendar-day helpers.

All timestamps handled by the service are naive datetimes in UTC, which is
how they are stored. The usage "day" is derived from a UTC instant by
converting it into the deployment's configured timezone.
"""

import time
from datetime import date, datetime, time as dt_time, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current instant as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalize an aware or naive datetime to naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def usage_day(now: datetime, tz: ZoneInfo) -> date:
    """Calendar day that ``now`` (naive UTC) falls on in ``tz``."""
    return now.replace(tzinfo=timezone.utc).astimezone(tz).date()


def next_reset_at(day: date, tz: ZoneInfo) -> datetime:
    """Naive UTC instant of the midnight that ends ``day`` in ``tz``."""
    local_midnight = datetime.combine(day + timedelta(days=1), dt_time.min, tzinfo=tz)
    return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)


def elapsed_ms(start_time: float) -> float:
    """Milliseconds elapsed since ``start_time`` (a ``time.time()`` value)."""
    return (time.time() - start_time) * 1000
