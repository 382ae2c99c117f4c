"""
Logger configuration, from code or env.
"""
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Optional

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class LoggerConfig:
    """
    Configuration for the project logger.

    Use LoggerConfig.from_env() for env-based config, or build explicitly.
    """

    level: str = "INFO"
    # Rotating file is skipped when log_dir is None
    log_dir: Optional[str] = None
    log_file_basename: str = "salonbook"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    # Handlers are attached to this logger; children inherit
    root_name: str = "salonbook"
    console: bool = True
    file_rotating: bool = True

    def __post_init__(self) -> None:
        if self.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level {self.level!r}")
        if self.max_bytes < 1:
            raise ValueError("max_bytes must be >= 1")
        if self.backup_count < 0:
            raise ValueError("backup_count must be >= 0")

    @classmethod
    def from_env(cls, prefix: str = "LOG_") -> "LoggerConfig":
        """Build config from LOG_* environment variables."""

        def _get(name: str, default: str) -> str:
            return os.environ.get(f"{prefix}{name}", default)

        return cls(
            level=_get("LEVEL", "INFO").upper(),
            log_dir=_get("DIR", "") or None,
            log_file_basename=_get("FILE_BASENAME", "salonbook"),
            max_bytes=int(_get("MAX_BYTES", "5242880")),
            backup_count=int(_get("BACKUP_COUNT", "5")),
            root_name=_get("ROOT_NAME", "salonbook"),
            console=_get("CONSOLE", "true").lower() in _TRUTHY,
            file_rotating=_get("FILE_ROTATING", "true").lower() in _TRUTHY,
        )

    def with_overrides(self, **overrides: Any) -> "LoggerConfig":
        """Return a new config with the non-None overrides applied."""
        return dataclasses.replace(
            self, **{k: v for k, v in overrides.items() if v is not None}
        )
