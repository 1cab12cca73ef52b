"""
Process-lifetime backup schedule.

On start() the scheduler arms four timers:
    - hourly: every hourly_interval_seconds
    - daily: at the next local midnight, then every daily_interval_seconds
    - weekly: after weekly_initial_delay_seconds, then every weekly_interval_seconds
    - startup: once, after startup_audit_delay_seconds; runs an integrity
      audit and then an out-of-cycle hourly snapshot as a fresh baseline

The staggered startup delays keep the timers from all firing during boot
and guarantee a verified snapshot exists early in the process lifetime.

Invariants:
    - start() is idempotent; stop() cancels every armed timer
    - A failing job is logged and never stops its cadence or the host process
    - Recurring timers are re-armed before their job runs

How to change safely:
    - Test cadence changes with ManualTimerService
    - Keep startup delays short but non-zero
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, time, timedelta
from typing import Any

from ..audit import Issue, unresolved
from ..config import ScheduleConfig
from ..snapshot import SnapshotClass
from .timers import TimerHandle, TimerService

logger = logging.getLogger(__name__)


def seconds_until_midnight(now: datetime) -> float:
    """Seconds from now until the next local midnight."""
    midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    return max((midnight - now).total_seconds(), 0.0)


class BackupScheduler:
    """Drives snapshot creation and the startup integrity audit.

    Attributes:
        timers: Timer source
        config: Schedule delays and intervals

    Example:
        >>> scheduler = BackupScheduler(service.create_backup, service.verify_integrity, timers)
        >>> scheduler.start()
        >>> scheduler.stop()
    """

    def __init__(
        self,
        create_snapshot: Callable[[str], Any],
        run_audit: Callable[[], list[Issue]],
        timers: TimerService,
        config: ScheduleConfig | None = None,
        prepare: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            create_snapshot: Creates a snapshot of the given class
            run_audit: Runs a full integrity audit
            timers: Timer source
            config: Schedule configuration
            prepare: Ensures the snapshot root exists; called on start()
        """
        self.create_snapshot = create_snapshot
        self.run_audit = run_audit
        self.timers = timers
        self.config = config or ScheduleConfig()
        self.prepare = prepare

        self._handles: dict[str, TimerHandle] = {}
        self._running = False
        self._snapshot_count = 0
        self._failure_count = 0
        self._last_audit: list[Issue] = []

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Arm every timer. Calling start() twice does nothing."""
        if self._running:
            logger.warning("Backup schedule already running")
            return

        if self.prepare is not None:
            try:
                self.prepare()
            except Exception as e:
                logger.error(f"Failed to prepare snapshot root: {e}", exc_info=True)

        self._running = True

        self._arm_recurring(
            SnapshotClass.HOURLY.value,
            self.config.hourly_interval_seconds,
            self.config.hourly_interval_seconds,
        )
        self._arm_recurring(
            SnapshotClass.DAILY.value,
            seconds_until_midnight(self.timers.now()),
            self.config.daily_interval_seconds,
        )
        self._arm_recurring(
            SnapshotClass.WEEKLY.value,
            self.config.weekly_initial_delay_seconds,
            self.config.weekly_interval_seconds,
        )
        self._handles["startup"] = self.timers.call_later(
            self.config.startup_audit_delay_seconds, self._startup
        )

        logger.info(
            "Backup schedule started",
            extra={
                "hourly_interval_seconds": self.config.hourly_interval_seconds,
                "daily_interval_seconds": self.config.daily_interval_seconds,
                "weekly_interval_seconds": self.config.weekly_interval_seconds,
            },
        )

    def stop(self) -> None:
        """Cancel every armed timer."""
        if not self._running:
            return

        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
        self._running = False
        logger.info("Backup schedule stopped")

    def _arm_recurring(self, snapshot_class: str, delay: float, interval: float) -> None:
        def fire() -> None:
            self._handles[snapshot_class] = self.timers.call_later(interval, fire)
            self._snapshot(snapshot_class)

        self._handles[snapshot_class] = self.timers.call_later(delay, fire)

    def _snapshot(self, snapshot_class: str) -> None:
        try:
            self.create_snapshot(snapshot_class)
        except Exception as e:
            self._failure_count += 1
            logger.error(f"Scheduled {snapshot_class} snapshot failed: {e}", exc_info=True)
            return
        self._snapshot_count += 1

    def _startup(self) -> None:
        self._handles.pop("startup", None)

        try:
            self._last_audit = self.run_audit()
        except Exception as e:
            self._failure_count += 1
            logger.error(f"Startup integrity audit failed: {e}", exc_info=True)
        else:
            if self._last_audit:
                logger.warning(
                    "Data integrity issues found at startup",
                    extra={"issues": [issue.to_dict() for issue in self._last_audit]},
                )
            lost = unresolved(self._last_audit)
            if lost:
                logger.critical(
                    "UNRECOVERED DATA: "
                    + ", ".join(f"{i.collection} ({i.description})" for i in lost)
                    + " could not be restored from any snapshot",
                    extra={"collections": [i.collection for i in lost]},
                )

        self._snapshot(SnapshotClass.HOURLY.value)
        logger.info(
            "Startup backup complete",
            extra={"snapshot_count": self._snapshot_count},
        )

    @property
    def stats(self) -> dict[str, Any]:
        """Get scheduler statistics."""
        return {
            "running": self._running,
            "snapshot_count": self._snapshot_count,
            "failure_count": self._failure_count,
            "last_audit_issues": [issue.to_dict() for issue in self._last_audit],
        }
