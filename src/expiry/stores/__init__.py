"""Table implementations the scheduler can run on.

Public API:
- Table / OrderedTable: capability protocols
- SortedTable: in-memory ordered table
- SqliteTable: SQLite-backed byte table
- DirectoryTable: one-file-per-key byte table
"""

from expiry.stores.directory import DirectoryTable
from expiry.stores.memory import SortedTable
from expiry.stores.protocols import OrderedTable, Table, first_key
from expiry.stores.sqlite import SqliteTable, create_sqlite_engine

__all__ = [
    "DirectoryTable",
    "OrderedTable",
    "SortedTable",
    "SqliteTable",
    "Table",
    "create_sqlite_engine",
    "first_key",
]
