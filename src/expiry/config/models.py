"""Configuration models using Pydantic."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from expiry.config.paths import get_database_path, get_store_dir

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration error."""

    pass


class StoreConfig(BaseModel):
    """Where the data, time index and key index tables live.

    - sqlite: three tables in one SQLite file (``path`` is the file)
    - directory: three subdirectories of ``path``
    - memory: in-process only, nothing persisted
    """

    backend: Literal["sqlite", "directory", "memory"] = "sqlite"
    path: Path | None = None

    def resolved_path(self) -> Path | None:
        if self.backend == "memory":
            return None
        if self.path is not None:
            return self.path.expanduser()
        if self.backend == "sqlite":
            return get_database_path()
        return get_store_dir()


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_to_file: bool = False
    retention_days: int = Field(default=7, ge=1)


class ExpiryConfig(BaseModel):
    """Root configuration model."""

    # Re-check period while nothing is pending (seconds)
    renewal_interval: float = Field(default=3.0, gt=0)
    # Cap on a single wait; lets a shared store's earlier insertions be seen
    max_wait: float | None = Field(default=None, gt=0)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _check_store_path(self) -> "ExpiryConfig":
        if self.store.backend == "memory" and self.store.path is not None:
            logger.warning(
                "store_path_ignored",
                extra={"store.backend": "memory", "file.path": str(self.store.path)},
            )
        return self
