"""
Configuration management for JSONVault.

All configuration is done via environment variables - no config files.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Retention counts are always >= 1 so the newest snapshot survives pruning
    - Schedule delays are seconds; intervals are strictly positive

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep retention defaults in sync with operator documentation
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class StorageBackend(Enum):
    """Supported storage backends."""

    LOCAL = "local"
    MEMORY = "memory"


@dataclass(frozen=True)
class StorageConfig:
    """Storage location configuration.

    Attributes:
        data_dir: Directory holding the live collection files
        backup_dir: Snapshot root directory (defaults to <data_dir>/backups)
        backend: Storage backend to use
    """

    data_dir: str = "./data"
    backup_dir: str | None = None
    backend: StorageBackend = StorageBackend.LOCAL

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser().resolve()

    @property
    def backup_path(self) -> Path:
        if self.backup_dir:
            return Path(self.backup_dir).expanduser().resolve()
        return self.data_path / "backups"

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Load configuration from environment variables."""
        backend_str = os.getenv("STORAGE_BACKEND", "local").lower()
        try:
            backend = StorageBackend(backend_str)
        except ValueError:
            raise ValueError(
                f"Invalid STORAGE_BACKEND '{backend_str}'. Must be one of: local, memory"
            )

        return cls(
            data_dir=os.getenv("DATA_DIR", "./data"),
            backup_dir=os.getenv("BACKUP_DIR") or None,
            backend=backend,
        )


@dataclass(frozen=True)
class RetentionConfig:
    """Snapshot retention counts per class.

    Attributes:
        hourly: Hourly snapshots to keep
        daily: Daily snapshots to keep
        weekly: Weekly snapshots to keep
        default: Retention for any other class label
    """

    hourly: int = 24
    daily: int = 30
    weekly: int = 12
    default: int = 24

    def for_class(self, snapshot_class: str) -> int:
        """Get the retention count for a snapshot class."""
        return {
            "hourly": self.hourly,
            "daily": self.daily,
            "weekly": self.weekly,
        }.get(snapshot_class, self.default)

    @classmethod
    def from_env(cls) -> RetentionConfig:
        """Load configuration from environment variables."""
        return cls(
            hourly=int(os.getenv("RETENTION_HOURLY", "24")),
            daily=int(os.getenv("RETENTION_DAILY", "30")),
            weekly=int(os.getenv("RETENTION_WEEKLY", "12")),
            default=int(os.getenv("RETENTION_DEFAULT", "24")),
        )


@dataclass(frozen=True)
class ScheduleConfig:
    """Backup schedule configuration.

    Attributes:
        enabled: Whether the process-lifetime schedule runs
        hourly_interval_seconds: Interval between hourly snapshots
        daily_interval_seconds: Interval between daily snapshots (after first midnight)
        weekly_interval_seconds: Interval between weekly snapshots
        weekly_initial_delay_seconds: Delay before the first weekly snapshot
        startup_audit_delay_seconds: Delay before the startup audit + baseline snapshot
    """

    enabled: bool = True
    hourly_interval_seconds: float = 60 * 60
    daily_interval_seconds: float = 24 * 60 * 60
    weekly_interval_seconds: float = 7 * 24 * 60 * 60
    weekly_initial_delay_seconds: float = 5
    startup_audit_delay_seconds: float = 3

    @classmethod
    def from_env(cls) -> ScheduleConfig:
        """Load configuration from environment variables."""
        return cls(
            enabled=os.getenv("SCHEDULE_ENABLED", "true").lower() == "true",
            hourly_interval_seconds=float(os.getenv("HOURLY_INTERVAL_SECONDS", "3600")),
            daily_interval_seconds=float(os.getenv("DAILY_INTERVAL_SECONDS", "86400")),
            weekly_interval_seconds=float(os.getenv("WEEKLY_INTERVAL_SECONDS", "604800")),
            weekly_initial_delay_seconds=float(os.getenv("WEEKLY_INITIAL_DELAY_SECONDS", "5")),
            startup_audit_delay_seconds=float(os.getenv("STARTUP_AUDIT_DELAY_SECONDS", "3")),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class EngineConfig:
    """Complete engine configuration.

    Attributes:
        storage: Storage location configuration
        retention: Retention counts per snapshot class
        schedule: Backup schedule configuration
        observability: Logging configuration
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load complete configuration from environment variables.

        Returns:
            EngineConfig with all sections populated from environment.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            storage=StorageConfig.from_env(),
            retention=RetentionConfig.from_env(),
            schedule=ScheduleConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        for name in ("hourly", "daily", "weekly", "default"):
            if getattr(self.retention, name) < 1:
                raise ValueError(f"RETENTION_{name.upper()} must be at least 1")

        for name in (
            "hourly_interval_seconds",
            "daily_interval_seconds",
            "weekly_interval_seconds",
        ):
            if getattr(self.schedule, name) <= 0:
                raise ValueError(f"{name.upper()} must be positive")

        for name in ("weekly_initial_delay_seconds", "startup_audit_delay_seconds"):
            if getattr(self.schedule, name) < 0:
                raise ValueError(f"{name.upper()} must not be negative")

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        if (
            self.storage.backend == StorageBackend.LOCAL
            and not self.storage.data_path.exists()
        ):
            logger.warning(
                f"Data directory does not exist: {self.storage.data_path}. "
                "It will be created on startup."
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Engine configuration loaded",
            extra={
                "data_dir": str(self.storage.data_path),
                "backup_dir": str(self.storage.backup_path),
                "storage_backend": self.storage.backend.value,
                "retention_hourly": self.retention.hourly,
                "retention_daily": self.retention.daily,
                "retention_weekly": self.retention.weekly,
                "schedule_enabled": self.schedule.enabled,
                "log_level": self.observability.log_level,
            },
        )
