"""Configuration module."""

from expiry.config.loader import find_config_path, get_default_config, load_config
from expiry.config.models import ConfigError, ExpiryConfig, LoggingConfig, StoreConfig
from expiry.config.paths import (
    get_config_path,
    get_database_path,
    get_expiry_home,
    get_logs_path,
    get_store_dir,
)

__all__ = [
    "ConfigError",
    "ExpiryConfig",
    "LoggingConfig",
    "StoreConfig",
    "find_config_path",
    "get_config_path",
    "get_database_path",
    "get_default_config",
    "get_expiry_home",
    "get_logs_path",
    "get_store_dir",
    "load_config",
]
