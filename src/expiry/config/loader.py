"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from expiry.config.models import ConfigError, ExpiryConfig
from expiry.config.paths import get_config_path

# env var -> (section or None for top level, key)
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "EXPIRY_STORE_BACKEND": ("store", "backend"),
    "EXPIRY_STORE_PATH": ("store", "path"),
    "EXPIRY_RENEWAL_INTERVAL": (None, "renewal_interval"),
    "EXPIRY_MAX_WAIT": (None, "max_wait"),
    "EXPIRY_LOG_LEVEL": ("logging", "level"),
}


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("expiry.toml"),  # Current directory
        get_config_path(),  # ~/.expiry/config.toml (or EXPIRY_HOME)
        Path("/etc/expiry/config.toml"),  # System-wide
    ]


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Environment variables win over values from the file."""
    for env_var, (section_name, key) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if not value:
            continue
        if section_name is None:
            config[key] = value
            continue
        section = config.get(section_name)
        if not isinstance(section, dict):
            section = {}
            config[section_name] = section
        section[key] = value.upper() if key == "level" else value
    return config


def find_config_path(path: Path | None = None) -> Path | None:
    """Locate the config file, or None if no default location has one.

    Raises:
        FileNotFoundError: If an explicit ``path`` does not exist.
    """
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return config_path

    for default_path in _get_default_config_paths():
        expanded = default_path.expanduser()
        if expanded.exists():
            return expanded
    return None


def load_config(path: Path | None = None, *, required: bool = False) -> ExpiryConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default locations.
        required: Raise if no config file is found instead of using defaults.

    Returns:
        Validated ExpiryConfig instance.

    Raises:
        FileNotFoundError: If the config file is missing (explicit path or
            ``required``).
        ConfigError: If the config file is invalid.
    """
    config_path = find_config_path(path)
    if config_path is None:
        if required:
            searched = ", ".join(str(p) for p in _get_default_config_paths())
            raise FileNotFoundError(f"No config file found. Searched: {searched}")
        raw_config: dict[str, Any] = {}
    else:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    raw_config = _apply_env_overrides(raw_config)

    try:
        return ExpiryConfig.model_validate(raw_config)
    except ValidationError as e:
        source = config_path or "environment"
        raise ConfigError(f"Invalid configuration ({source}): {e}") from e


def get_default_config() -> ExpiryConfig:
    """Get a default configuration for development/testing."""
    return ExpiryConfig()
