"""APScheduler job definitions for the recurring full scrape."""

import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from catalog_scraper import metrics
from catalog_scraper.config import Settings
from catalog_scraper.worker.run_guard import SingleFlightGuard
from catalog_scraper.worker.runner import ScrapeRunner

logger = logging.getLogger(__name__)


def scheduled_scrape(runner: ScrapeRunner, guard: SingleFlightGuard) -> None:
    """
    Scheduled full scrape.

    Skips when another run holds the guard. Never raises, so a failed run
    cannot stop future scheduled runs.
    """
    if not guard.try_acquire():
        metrics.record_rejected("scheduled")
        logger.warning("Scraping is already in progress; skipping scheduled run")
        return

    try:
        logger.info("Starting scheduled scraping task")
        result = runner.run_all()

        logger.info(
            "Scheduled scraping completed. Products: %d, Errors: %d, Duration: %ds",
            len(result.products),
            len(result.errors),
            result.duration_seconds,
        )
        if result.errors:
            logger.warning(f"Scraping completed with {len(result.errors)} errors:")
            for error in result.errors:
                logger.warning(f" - {error}")

    except Exception as e:
        logger.error(f"Scheduled scraping failed with exception: {e}", exc_info=True)
    finally:
        guard.release()


def setup_scheduler(
    runner: ScrapeRunner,
    guard: SingleFlightGuard,
    settings: Settings,
) -> BackgroundScheduler:
    """
    Setup and configure APScheduler.

    Returns:
        Configured (not yet started) scheduler instance
    """
    scheduler = BackgroundScheduler()

    if not settings.schedule_enabled:
        logger.info("Scheduler configured: scheduled scraping disabled")
        return scheduler

    scheduler.add_job(
        scheduled_scrape,
        CronTrigger.from_crontab(settings.schedule_cron),
        args=[runner, guard],
        id="full_scrape",
        name="Scrape all categories",
        max_instances=1,  # Prevent overlapping runs
        coalesce=True,
        misfire_grace_time=600,
        replace_existing=True,
    )

    logger.info("Scheduler configured: full scrape on cron '%s'", settings.schedule_cron)
    return scheduler
