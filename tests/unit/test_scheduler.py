"""
Unit tests for the backup schedule.

Tests cover:
- Cadence of hourly, daily (midnight-aligned) and weekly snapshots
- Startup audit followed by a baseline hourly snapshot
- Failure isolation
- Timer services
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import pytest

from vault.jsonvault.audit import Issue, IssueKind
from vault.jsonvault.config import ScheduleConfig
from vault.jsonvault.schedule import (
    AsyncioTimerService,
    BackupScheduler,
    ManualTimerService,
    seconds_until_midnight,
)

START = datetime(2026, 10, 19, 22, 0, tzinfo=timezone.utc)
HOUR = 3600


class Recorder:
    """Stands in for the service: records snapshot classes and audit calls."""

    def __init__(self, issues=None):
        self.snapshots = []
        self.audits = 0
        self.prepared = 0
        self.issues = issues or []
        self.fail_classes = set()

    def create_snapshot(self, snapshot_class):
        if snapshot_class in self.fail_classes:
            raise RuntimeError(f"{snapshot_class} failed")
        self.snapshots.append(snapshot_class)

    def run_audit(self):
        self.audits += 1
        return self.issues

    def prepare(self):
        self.prepared += 1


class TestSecondsUntilMidnight:
    def test_evening(self):
        assert seconds_until_midnight(START) == 2 * HOUR

    def test_exactly_midnight_waits_a_full_day(self):
        midnight = datetime(2026, 10, 20, 0, 0, tzinfo=timezone.utc)
        assert seconds_until_midnight(midnight) == 24 * HOUR

    def test_respects_local_offset(self):
        plus_two = timezone(timedelta(hours=2))
        assert seconds_until_midnight(datetime(2026, 10, 19, 23, 30, tzinfo=plus_two)) == 1800


class TestBackupScheduler:
    """Tests for BackupScheduler with a manual clock."""

    @pytest.fixture
    def timers(self):
        return ManualTimerService(START)

    @pytest.fixture
    def recorder(self):
        return Recorder()

    @pytest.fixture
    def scheduler(self, timers, recorder):
        return BackupScheduler(
            create_snapshot=recorder.create_snapshot,
            run_audit=recorder.run_audit,
            timers=timers,
            config=ScheduleConfig(),
            prepare=recorder.prepare,
        )

    def test_start_arms_four_timers(self, scheduler, timers, recorder):
        scheduler.start()

        assert scheduler.running
        assert recorder.prepared == 1
        assert timers.pending() == [3, 5, HOUR, 2 * HOUR]

    def test_startup_audits_then_snapshots(self, scheduler, timers, recorder):
        scheduler.start()

        timers.advance(3)

        assert recorder.audits == 1
        assert recorder.snapshots == ["hourly"]

    def test_weekly_runs_after_five_seconds(self, scheduler, timers, recorder):
        scheduler.start()

        timers.advance(5)

        assert recorder.snapshots == ["hourly", "weekly"]

    def test_first_day_cadence(self, scheduler, timers, recorder):
        """Over 24h: startup baseline, 24 hourly, 1 midnight daily, 1 weekly."""
        scheduler.start()

        timers.advance(24 * HOUR)

        assert recorder.audits == 1
        assert recorder.snapshots.count("hourly") == 1 + 24
        assert recorder.snapshots.count("daily") == 1
        assert recorder.snapshots.count("weekly") == 1

    def test_daily_at_midnight_then_every_day(self, scheduler, timers, recorder):
        scheduler.start()
        timers.advance(2 * HOUR - 1)
        assert "daily" not in recorder.snapshots

        timers.advance(1)
        assert recorder.snapshots.count("daily") == 1

        timers.advance(24 * HOUR)
        assert recorder.snapshots.count("daily") == 2

    def test_weekly_repeats_every_seven_days(self, scheduler, timers, recorder):
        scheduler.start()

        timers.advance(5 + 7 * 24 * HOUR)

        assert recorder.snapshots.count("weekly") == 2

    def test_startup_runs_once(self, scheduler, timers, recorder):
        scheduler.start()

        timers.advance(3 * 24 * HOUR)

        assert recorder.audits == 1

    def test_failed_snapshot_keeps_cadence(self, scheduler, timers, recorder):
        recorder.fail_classes.add("hourly")
        scheduler.start()

        timers.advance(3 * HOUR)

        assert scheduler.stats["failure_count"] == 4
        assert "hourly" not in recorder.snapshots
        assert timers.pending()[0] == HOUR

    def test_failed_audit_still_takes_baseline(self, timers, recorder):
        def broken_audit():
            raise RuntimeError("audit exploded")

        scheduler = BackupScheduler(recorder.create_snapshot, broken_audit, timers)
        scheduler.start()

        timers.advance(3)

        assert recorder.snapshots == ["hourly"]
        assert scheduler.stats["failure_count"] == 1

    def test_failed_prepare_does_not_block_start(self, timers, recorder):
        def broken_prepare():
            raise OSError("read-only filesystem")

        scheduler = BackupScheduler(
            recorder.create_snapshot, recorder.run_audit, timers, prepare=broken_prepare
        )
        scheduler.start()

        assert scheduler.running
        assert len(timers.pending()) == 4

    def test_unrecovered_data_logged_critical(self, timers, caplog):
        lost = Issue(collection="quotes", kind=IssueKind.MISSING, restored=False)
        recorder = Recorder(issues=[lost])
        scheduler = BackupScheduler(recorder.create_snapshot, recorder.run_audit, timers)
        scheduler.start()

        with caplog.at_level(logging.WARNING):
            timers.advance(3)

        critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
        assert len(critical) == 1
        assert "UNRECOVERED DATA" in critical[0].getMessage()
        assert "quotes" in critical[0].getMessage()
        assert scheduler.stats["last_audit_issues"][0]["file"] == "quotes"

    def test_restored_issues_not_critical(self, timers, caplog):
        fixed = Issue(collection="quotes", kind=IssueKind.MISSING, restored=True)
        recorder = Recorder(issues=[fixed])
        scheduler = BackupScheduler(recorder.create_snapshot, recorder.run_audit, timers)
        scheduler.start()

        with caplog.at_level(logging.WARNING):
            timers.advance(3)

        assert not [r for r in caplog.records if r.levelno == logging.CRITICAL]

    def test_start_twice_is_noop(self, scheduler, timers):
        scheduler.start()
        scheduler.start()

        assert len(timers.pending()) == 4

    def test_stop_cancels_everything(self, scheduler, timers, recorder):
        scheduler.start()
        timers.advance(HOUR)

        scheduler.stop()
        fired = timers.advance(30 * 24 * HOUR)

        assert fired == 0
        assert timers.pending() == []
        assert not scheduler.running

    def test_stop_before_startup_skips_audit(self, scheduler, timers, recorder):
        scheduler.start()
        scheduler.stop()

        timers.advance(10)

        assert recorder.audits == 0
        assert recorder.snapshots == []

    def test_stats(self, scheduler, timers):
        scheduler.start()
        timers.advance(5)

        stats = scheduler.stats

        assert stats["running"] is True
        assert stats["snapshot_count"] == 2
        assert stats["failure_count"] == 0
        assert stats["last_audit_issues"] == []


class TestAsyncioTimerService:
    """Tests for AsyncioTimerService."""

    @pytest.mark.asyncio
    async def test_call_later_fires(self):
        timers = AsyncioTimerService()
        fired = asyncio.Event()

        timers.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_cancel(self):
        timers = AsyncioTimerService(asyncio.get_running_loop())
        calls = []

        handle = timers.call_later(0.01, lambda: calls.append(1))
        handle.cancel()
        await asyncio.sleep(0.05)

        assert calls == []

    def test_now_is_aware(self):
        assert AsyncioTimerService().now().tzinfo is not None
