"""Centralized path management for expiry.

All state (config, database, store directory, logs) lives under a single
base directory, overridable with the EXPIRY_HOME environment variable.

Default location: ~/.expiry
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "EXPIRY_HOME"


@lru_cache(maxsize=1)
def get_expiry_home() -> Path:
    """Get the base directory for all expiry data.

    Resolution order:
    1. EXPIRY_HOME environment variable (if set)
    2. ~/.expiry
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".expiry"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_expiry_home() / "config.toml"


def get_database_path() -> Path:
    """Get the default SQLite database path."""
    return get_expiry_home() / "expiry.db"


def get_store_dir() -> Path:
    """Get the default directory for the directory-backed store."""
    return get_expiry_home() / "store"


def get_logs_path() -> Path:
    """Get the JSONL log directory."""
    return get_expiry_home() / "logs"


def get_all_paths() -> dict[str, Path]:
    return {
        "home": get_expiry_home(),
        "config": get_config_path(),
        "database": get_database_path(),
        "store": get_store_dir(),
        "logs": get_logs_path(),
    }
