"""Build tables and schedulers from configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Engine

from expiry.config.models import ExpiryConfig, StoreConfig
from expiry.scheduling import ExpireCallback, ExpiryScheduler
from expiry.stores import (
    DirectoryTable,
    OrderedTable,
    SortedTable,
    SqliteTable,
    Table,
    create_sqlite_engine,
)

logger = logging.getLogger(__name__)

DATA_TABLE = "data"
TIME_INDEX_TABLE = "expiry_t2k"
KEY_INDEX_TABLE = "expiry_k2t"


@dataclass
class Tables:
    """The three tables a scheduler runs on."""

    data: Table[Any, Any]
    t2k: OrderedTable[Any, Any]
    k2t: Table[Any, Any]
    engine: Engine | None = None

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None


def open_tables(config: StoreConfig) -> Tables:
    """Open (creating if needed) the tables for the configured backend."""
    path = config.resolved_path()
    if config.backend == "memory":
        tables = Tables(data={}, t2k=SortedTable(), k2t={})
    elif config.backend == "sqlite":
        assert path is not None
        engine = create_sqlite_engine(path)
        tables = Tables(
            data=SqliteTable(engine, DATA_TABLE),
            t2k=SqliteTable(engine, TIME_INDEX_TABLE),
            k2t=SqliteTable(engine, KEY_INDEX_TABLE),
            engine=engine,
        )
    else:
        assert path is not None
        tables = Tables(
            data=DirectoryTable(path / DATA_TABLE),
            t2k=DirectoryTable(path / TIME_INDEX_TABLE),
            k2t=DirectoryTable(path / KEY_INDEX_TABLE),
        )
    logger.debug(
        "tables_opened",
        extra={"store.backend": config.backend, "file.path": str(path)},
    )
    return tables


def build_scheduler(
    config: ExpiryConfig,
    tables: Tables,
    on_expire: ExpireCallback | None = None,
    max_wait: float | None = None,
) -> ExpiryScheduler:
    """Build a scheduler over ``tables``; ``max_wait`` overrides the config."""
    return ExpiryScheduler(
        tables.t2k,
        tables.k2t,
        data=tables.data,
        on_expire=on_expire,
        renewal_interval=config.renewal_interval,
        max_wait=max_wait if max_wait is not None else config.max_wait,
    )
