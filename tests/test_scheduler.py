"""Tests for the scheduled scrape job."""

from unittest.mock import MagicMock

from catalog_scraper.ingest.base import ScrapeRun
from catalog_scraper.worker.run_guard import SingleFlightGuard
from catalog_scraper.worker.scheduler import scheduled_scrape, setup_scheduler


def test_scheduled_scrape_runs_and_releases():
    guard = SingleFlightGuard()
    runner = MagicMock()
    runner.run_all.return_value = ScrapeRun(errors=["A: timeout"])

    scheduled_scrape(runner, guard)

    runner.run_all.assert_called_once()
    assert guard.is_running is False


def test_scheduled_scrape_skips_when_busy():
    guard = SingleFlightGuard()
    guard.try_acquire()
    runner = MagicMock()

    scheduled_scrape(runner, guard)

    runner.run_all.assert_not_called()
    assert guard.is_running is True


def test_scheduled_scrape_never_raises():
    guard = SingleFlightGuard()
    runner = MagicMock()
    runner.run_all.side_effect = RuntimeError("unexpected")

    scheduled_scrape(runner, guard)

    assert guard.is_running is False


def test_setup_scheduler_registers_cron_job(settings):
    settings.schedule_enabled = True
    settings.schedule_cron = "30 2 * * *"

    scheduler = setup_scheduler(MagicMock(), SingleFlightGuard(), settings)

    jobs = scheduler.get_jobs()
    assert [job.id for job in jobs] == ["full_scrape"]
    assert jobs[0].max_instances == 1
    assert "hour='2'" in str(jobs[0].trigger)
    assert "minute='30'" in str(jobs[0].trigger)


def test_setup_scheduler_disabled(settings):
    settings.schedule_enabled = False

    scheduler = setup_scheduler(MagicMock(), SingleFlightGuard(), settings)

    assert scheduler.get_jobs() == []
