"""Scheduling subsystem: deferred key expiry.

Public API:
- ExpiryScheduler: single-loop scheduler over caller-supplied tables
- new_scheduler: factory taking the data store first

Types:
- ExpireCallback: ``on_expire(time, key)`` signature
- When: absolute or relative expiry moment
"""

from expiry.scheduling.index import KeyIndex, TimeIndex
from expiry.scheduling.scheduler import (
    DEFAULT_RENEWAL_INTERVAL,
    ExpiryScheduler,
    new_scheduler,
)
from expiry.scheduling.types import ExpireCallback, When, resolve_when

__all__ = [
    "DEFAULT_RENEWAL_INTERVAL",
    "ExpireCallback",
    "ExpiryScheduler",
    "KeyIndex",
    "TimeIndex",
    "When",
    "new_scheduler",
    "resolve_when",
]
