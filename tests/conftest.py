"""Shared test fixtures and factories."""

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from expiry.config.paths import ENV_VAR, get_expiry_home
from expiry.stores import DirectoryTable, SortedTable, SqliteTable, create_sqlite_engine

# =============================================================================
# Table Fixtures
# =============================================================================


@pytest.fixture(params=["memory", "sqlite", "directory"])
def table_factory(request, tmp_path: Path) -> Callable[[str], Any]:
    """Factory for empty ordered byte tables of each backend."""
    engines = []

    def make(name: str) -> Any:
        if request.param == "memory":
            return SortedTable()
        if request.param == "sqlite":
            if not engines:
                engines.append(create_sqlite_engine(tmp_path / "tables.db"))
            return SqliteTable(engines[0], name)
        return DirectoryTable(tmp_path / name)

    make.backend = request.param  # type: ignore[attr-defined]
    yield make

    for engine in engines:
        engine.dispose()


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture
def expiry_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point EXPIRY_HOME at a temporary directory and isolate the cwd."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv(ENV_VAR, str(home))
    monkeypatch.chdir(work)
    for env_var in (
        "EXPIRY_STORE_BACKEND",
        "EXPIRY_STORE_PATH",
        "EXPIRY_RENEWAL_INTERVAL",
        "EXPIRY_MAX_WAIT",
        "EXPIRY_LOG_LEVEL",
    ):
        monkeypatch.delenv(env_var, raising=False)
    get_expiry_home.cache_clear()
    yield home
    get_expiry_home.cache_clear()


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})


# =============================================================================
# Async helpers
# =============================================================================


async def _wait_until(
    predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01
) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or a timeout elapses."""
    return _wait_until
