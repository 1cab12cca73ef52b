"""
Backup schedule for JSONVault.

A cooperative, timer-driven driver: each timer callback runs one full
operation (snapshot + prune, or audit) to completion before returning.
"""

from .scheduler import BackupScheduler, seconds_until_midnight
from .timers import (
    AsyncioTimerService,
    ManualTimerHandle,
    ManualTimerService,
    TimerHandle,
    TimerService,
)

__all__ = [
    "BackupScheduler",
    "seconds_until_midnight",
    "TimerService",
    "TimerHandle",
    "AsyncioTimerService",
    "ManualTimerService",
    "ManualTimerHandle",
]
