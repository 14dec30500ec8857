"""CLI runtime helpers: config loading and table lifecycle."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import typer

from expiry.cli.console import error, warning
from expiry.config import ConfigError, ExpiryConfig, load_config
from expiry.runtime import Tables, build_scheduler, open_tables
from expiry.scheduling import ExpireCallback, ExpiryScheduler


@dataclass
class CLIContext:
    config: ExpiryConfig
    tables: Tables
    scheduler: ExpiryScheduler


def load_config_or_exit(config_path: Path | None) -> ExpiryConfig:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ConfigError) as e:
        error(str(e))
        raise typer.Exit(1) from None


@contextmanager
def cli_context(
    config_path: Path | None,
    on_expire: ExpireCallback | None = None,
    max_wait: float | None = None,
) -> Iterator[CLIContext]:
    """Open the configured tables and a scheduler bound to them."""
    config = load_config_or_exit(config_path)
    if config.store.backend == "memory":
        warning("Memory backend: nothing persists between commands")
    tables = open_tables(config.store)
    try:
        scheduler = build_scheduler(
            config, tables, on_expire=on_expire, max_wait=max_wait
        )
        yield CLIContext(config=config, tables=tables, scheduler=scheduler)
    finally:
        tables.close()
