"""Tests for configuration loading."""

from pathlib import Path

import pytest

from expiry.config import (
    ConfigError,
    ExpiryConfig,
    get_database_path,
    get_default_config,
    get_store_dir,
    load_config,
)
from expiry.config.models import StoreConfig


class TestExpiryConfig:
    def test_defaults(self, expiry_home: Path):
        config = get_default_config()
        assert config.renewal_interval == 3.0
        assert config.max_wait is None
        assert config.store.backend == "sqlite"
        assert config.store.resolved_path() == expiry_home / "expiry.db"
        assert config.logging.level == "INFO"

    def test_directory_default_path(self, expiry_home: Path):
        store = StoreConfig(backend="directory")
        assert store.resolved_path() == get_store_dir()
        assert get_store_dir() == expiry_home / "store"

    def test_memory_has_no_path(self):
        assert StoreConfig(backend="memory").resolved_path() is None

    def test_explicit_path_expanded(self, expiry_home: Path):
        store = StoreConfig(path=Path("~/data.db"))
        assert store.resolved_path() == Path("~/data.db").expanduser()

    def test_rejects_non_positive_intervals(self):
        with pytest.raises(ValueError):
            ExpiryConfig(renewal_interval=0)
        with pytest.raises(ValueError):
            ExpiryConfig(max_wait=-1)

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValueError):
            StoreConfig(backend="redis")  # type: ignore[arg-type]


class TestLoadConfig:
    def test_no_file_uses_defaults(self, expiry_home: Path):
        config = load_config()
        assert config == ExpiryConfig()

    def test_required_without_file_raises(self, expiry_home: Path):
        with pytest.raises(FileNotFoundError):
            load_config(required=True)

    def test_explicit_missing_path_raises(self, expiry_home: Path, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_loads_explicit_file(self, expiry_home: Path, tmp_path: Path):
        path = tmp_path / "custom.toml"
        path.write_text(
            """
renewal_interval = 1.5
max_wait = 0.5

[store]
backend = "directory"
path = "/tmp/expiry-store"

[logging]
level = "DEBUG"
log_to_file = true
"""
        )
        config = load_config(path)
        assert config.renewal_interval == 1.5
        assert config.max_wait == 0.5
        assert config.store.backend == "directory"
        assert config.store.path == Path("/tmp/expiry-store")
        assert config.logging.level == "DEBUG"
        assert config.logging.log_to_file is True

    def test_finds_home_config(self, expiry_home: Path):
        (expiry_home / "config.toml").write_text("renewal_interval = 7\n")
        assert load_config().renewal_interval == 7

    def test_cwd_config_wins(self, expiry_home: Path):
        (expiry_home / "config.toml").write_text("renewal_interval = 7\n")
        Path("expiry.toml").write_text("renewal_interval = 9\n")
        assert load_config().renewal_interval == 9

    def test_env_overrides(self, expiry_home: Path, monkeypatch: pytest.MonkeyPatch):
        (expiry_home / "config.toml").write_text(
            '[store]\nbackend = "sqlite"\n\n[logging]\nlevel = "INFO"\n'
        )
        monkeypatch.setenv("EXPIRY_STORE_BACKEND", "memory")
        monkeypatch.setenv("EXPIRY_RENEWAL_INTERVAL", "0.25")
        monkeypatch.setenv("EXPIRY_LOG_LEVEL", "debug")
        config = load_config()
        assert config.store.backend == "memory"
        assert config.renewal_interval == 0.25
        assert config.logging.level == "DEBUG"

    def test_env_store_path(self, expiry_home: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("EXPIRY_STORE_PATH", "/tmp/elsewhere.db")
        assert load_config().store.resolved_path() == Path("/tmp/elsewhere.db")

    def test_invalid_toml(self, expiry_home: Path, tmp_path: Path):
        path = tmp_path / "bad.toml"
        path.write_text("not valid toml [[[")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_values(self, expiry_home: Path, tmp_path: Path):
        path = tmp_path / "bad.toml"
        path.write_text('[store]\nbackend = "redis"\n')
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path)


class TestPaths:
    def test_home_from_env(self, expiry_home: Path):
        assert get_database_path() == expiry_home / "expiry.db"
