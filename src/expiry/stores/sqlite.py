"""SQLite-backed byte table.

Each table is a two-column ``(key BLOB PRIMARY KEY, value BLOB)`` SQL table.
SQLite compares BLOBs with ``memcmp``, so ``ORDER BY key`` is byte order and
the table can serve as a time index for encoded timestamps.

Several tables can share one database file (and one engine); each statement
runs in its own transaction, which makes the file safe to share between
processes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from sqlalchemy import (
    Column,
    Engine,
    LargeBinary,
    MetaData,
    create_engine,
    delete,
    func,
    select,
)
from sqlalchemy import Table as SQLTable
from sqlalchemy.dialects.sqlite import insert

from expiry.errors import NotFoundError

logger = logging.getLogger(__name__)


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def create_sqlite_engine(database_path: Path) -> Engine:
    """Create an engine for a SQLite file, creating parent directories."""
    database_path = Path(database_path).expanduser()
    database_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{database_path}")


class SqliteTable:
    """Byte table stored in SQLite.

    Keys and values may be given as ``str`` (UTF-8 encoded) or ``bytes``;
    they are always returned as ``bytes``.

    Every operation is a blocking call on a sync engine. Used by a scheduler,
    peeks, fires and deletes run on the event loop thread and stall it for
    the length of the statement.

    Example:
        engine = create_sqlite_engine(Path("~/.expiry/expiry.db"))
        data = SqliteTable(engine, "data")
        data["session:1"] = "payload"
    """

    def __init__(self, engine: Engine, name: str) -> None:
        self._engine = engine
        self._name = name
        metadata = MetaData()
        self._table = SQLTable(
            name,
            metadata,
            Column("key", LargeBinary, primary_key=True),
            Column("value", LargeBinary, nullable=False),
        )
        metadata.create_all(engine)

    @property
    def name(self) -> str:
        return self._name

    def __getitem__(self, key: str | bytes) -> bytes:
        stmt = select(self._table.c.value).where(self._table.c.key == _to_bytes(key))
        with self._engine.connect() as conn:
            value = conn.execute(stmt).scalar_one_or_none()
        if value is None:
            raise NotFoundError(key)
        return bytes(value)

    def __setitem__(self, key: str | bytes, value: str | bytes) -> None:
        stmt = insert(self._table).values(key=_to_bytes(key), value=_to_bytes(value))
        stmt = stmt.on_conflict_do_update(
            index_elements=[self._table.c.key],
            set_={"value": stmt.excluded.value},
        )
        with self._engine.begin() as conn:
            conn.execute(stmt)

    def __delitem__(self, key: str | bytes) -> None:
        stmt = delete(self._table).where(self._table.c.key == _to_bytes(key))
        with self._engine.begin() as conn:
            result = conn.execute(stmt)
        if result.rowcount == 0:
            raise NotFoundError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str | bytes):
            return False
        stmt = select(self._table.c.key).where(self._table.c.key == _to_bytes(key))
        with self._engine.connect() as conn:
            return conn.execute(stmt).first() is not None

    def __len__(self) -> int:
        stmt = select(func.count()).select_from(self._table)
        with self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one()

    def __iter__(self) -> Iterator[bytes]:
        return self.keys()

    def __repr__(self) -> str:
        return f"SqliteTable({self._name!r})"

    def keys(self) -> Iterator[bytes]:
        stmt = select(self._table.c.key).order_by(self._table.c.key)
        with self._engine.connect() as conn:
            keys = [bytes(k) for k in conn.execute(stmt).scalars()]
        return iter(keys)

    def items(self) -> Iterator[tuple[bytes, bytes]]:
        stmt = select(self._table.c.key, self._table.c.value).order_by(
            self._table.c.key
        )
        with self._engine.connect() as conn:
            rows = [(bytes(k), bytes(v)) for k, v in conn.execute(stmt)]
        return iter(rows)

    def first(self) -> bytes:
        stmt = select(self._table.c.key).order_by(self._table.c.key).limit(1)
        with self._engine.connect() as conn:
            key = conn.execute(stmt).scalar_one_or_none()
        if key is None:
            raise NotFoundError(f"{self._name} is empty")
        return bytes(key)

    def clear(self) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(delete(self._table))
        logger.debug(
            "sqlite_table_cleared",
            extra={"store.table": self._name, "store.removed": result.rowcount},
        )
        return result.rowcount
