"""Scheduling types.

Public types:
- ExpireCallback: synchronous callback invoked when a key expires
- When: anything ``schedule`` accepts as an expiry moment
"""

from collections.abc import Callable
from datetime import datetime, timedelta

from expiry.timestamps import Timestamp

# on_expire(time, key); runs inside the scheduler loop and must not block
ExpireCallback = Callable[[Timestamp, str], None]

# Absolute (Timestamp, datetime) or relative (timedelta, seconds)
When = Timestamp | datetime | timedelta | int | float


def resolve_when(when: When, now: Timestamp | None = None) -> Timestamp:
    """Turn an absolute or relative expiry moment into a Timestamp.

    Naive datetimes are interpreted as UTC.
    """
    if isinstance(when, Timestamp):
        return when
    if isinstance(when, datetime):
        return Timestamp.from_datetime(when)
    if isinstance(when, bool):
        raise TypeError("expiry time must not be a bool")
    if isinstance(when, int | float):
        when = timedelta(seconds=when)
    if isinstance(when, timedelta):
        return (now or Timestamp.now()) + when
    raise TypeError(f"unsupported expiry time: {type(when).__name__}")
