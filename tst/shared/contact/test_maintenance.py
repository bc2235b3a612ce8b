"""Maintenance tests: rate limit pruning, log rotation and the scheduler."""

import os
from datetime import datetime, timezone

from src.shared.contact.maintenance import MAINTENANCE_JOB_ID, ContactMaintenance
from src.shared.contact.rate_limit import InMemoryRateLimitStore

NOW = 1_700_000_000.0
DAY = 86_400


def test_run_once_prunes_entries_older_than_retention(settings, submission_log):
    store = InMemoryRateLimitStore()
    store.hit("stale", NOW - DAY - 1, 60)
    store.hit("recent", NOW - DAY + 1, 60)
    maintenance = ContactMaintenance(settings, store, submission_log)

    assert maintenance.run_once(NOW) == 1
    assert store.snapshot() == {"recent": NOW - DAY + 1}


def test_run_once_uses_clock_by_default(settings, submission_log, clock):
    store = InMemoryRateLimitStore()
    store.hit("stale", clock.now - 2 * DAY, 60)
    maintenance = ContactMaintenance(settings, store, submission_log, clock=clock)
    assert maintenance.run_once() == 1


def test_run_once_prunes_file_store(settings, submission_log, store):
    store.hit("203.0.113.5", NOW - 3 * DAY, 60)
    store.hit("203.0.113.6", NOW, 60)
    ContactMaintenance(settings, store, submission_log).run_once(NOW)
    assert set(store.snapshot()) == {"203.0.113.6"}


def test_stale_logs_are_rotated(settings, submission_log):
    settings.log_dir.mkdir(parents=True)
    stale = settings.contact_log_file
    fresh = settings.newsletter_log_file
    stale.write_text("old line\n")
    fresh.write_text("new line\n")
    old_mtime = NOW - 31 * DAY
    os.utime(stale, (old_mtime, old_mtime))
    os.utime(fresh, (NOW, NOW))

    now = datetime.fromtimestamp(NOW, tz=timezone.utc)
    rotated = submission_log.rotate_old_logs(now)

    backup = stale.with_name(f"contact_submissions.log.backup.{now.strftime('%Y-%m-%d')}")
    assert rotated == [backup]
    assert backup.read_text() == "old line\n"
    assert stale.exists() and stale.read_text() == ""
    assert fresh.read_text() == "new line\n"


def test_scheduler_registers_interval_job(settings, submission_log):
    maintenance = ContactMaintenance(settings, InMemoryRateLimitStore(), submission_log)
    scheduler = maintenance.start()
    try:
        assert maintenance.start() is scheduler
        job = scheduler.get_job(MAINTENANCE_JOB_ID)
        assert job is not None
        assert job.trigger.interval.total_seconds() == settings.maintenance_interval_seconds
    finally:
        maintenance.shutdown()
    assert maintenance.scheduler is None
