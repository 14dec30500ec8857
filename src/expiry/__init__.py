"""expiry - deferred key expiry over pluggable ordered tables.

Example:
    from datetime import timedelta

    from expiry import ExpiryScheduler, SortedTable

    data = {"session": "token"}
    scheduler = ExpiryScheduler(SortedTable(), {}, data=data)
    await scheduler.start()
    scheduler.schedule("session", timedelta(minutes=20))
"""

from expiry.errors import DecodeError, ExpiryError, NotFoundError
from expiry.scheduling import ExpireCallback, ExpiryScheduler, new_scheduler
from expiry.stores import (
    DirectoryTable,
    OrderedTable,
    SortedTable,
    SqliteTable,
    Table,
)
from expiry.timestamps import Timestamp, decode, encode

__version__ = "0.1.0"

__all__ = [
    "DecodeError",
    "DirectoryTable",
    "ExpireCallback",
    "ExpiryError",
    "ExpiryScheduler",
    "NotFoundError",
    "OrderedTable",
    "SortedTable",
    "SqliteTable",
    "Table",
    "Timestamp",
    "decode",
    "encode",
    "new_scheduler",
]
