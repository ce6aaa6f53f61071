"""Scrape run controller: discovery -> crawl -> persistence -> teardown."""

import logging
import time
from typing import Callable, ContextManager, List, Optional

from catalog_scraper import metrics
from catalog_scraper.config import Settings
from catalog_scraper.ingest.base import Category, ScrapeRun, utcnow
from catalog_scraper.ingest.browser import BrowserDriver, open_browser_session
from catalog_scraper.ingest.category_discovery import CategoryDiscoverer
from catalog_scraper.ingest.pacing import RequestPacer
from catalog_scraper.ingest.pagination import PaginationCrawler
from catalog_scraper.ingest.persistence import PersistenceBatcher
from catalog_scraper.ingest.product_parser import ProductParser

logger = logging.getLogger(__name__)

DriverFactory = Callable[[], ContextManager[BrowserDriver]]


class ScrapeRunner:
    """
    Owns one browser session per run and sequences the whole pipeline.

    Categories are crawled one after another on the same session. A failing
    category is recorded and skipped; any other failure is recorded as
    critical. Both entry points always return a ScrapeRun and never raise.
    """

    def __init__(
        self,
        settings: Settings,
        batcher: PersistenceBatcher,
        driver_factory: Optional[DriverFactory] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize runner.

        Args:
            settings: Application settings
            batcher: Persistence batcher for the run's products
            driver_factory: Opens a browser session usable as a context
                manager (defaults to a Playwright Chromium session)
            sleep: Sleep function used for pacing and scroll probes
        """
        self.settings = settings
        self.batcher = batcher
        self.driver_factory = driver_factory or (lambda: open_browser_session(settings))
        self.parser = ProductParser(settings.base_url)
        self.pacer = RequestPacer(settings.min_delay_ms, settings.max_delay_ms, sleep=sleep)
        self._sleep = sleep

    def run_all(self) -> ScrapeRun:
        """Discover every category and scrape them all."""
        logger.info(f"Starting full scrape of {self.settings.base_url}")
        return self._run("all", self._discover)

    def run_category(self, url: str, name: str) -> ScrapeRun:
        """Scrape one caller-supplied category, skipping discovery."""
        logger.info(f"Starting scrape of category: {name}")
        category = Category(name=name, url=url)
        return self._run("category", lambda driver: [category])

    def _discover(self, driver: BrowserDriver) -> List[Category]:
        categories = CategoryDiscoverer(driver, self.settings, self.pacer).discover()
        logger.info(f"Found {len(categories)} categories to scrape")
        return categories

    def _run(
        self,
        operation: str,
        resolve_categories: Callable[[BrowserDriver], List[Category]],
    ) -> ScrapeRun:
        run = ScrapeRun(start_time=utcnow())

        try:
            with self.driver_factory() as driver:
                crawler = PaginationCrawler(
                    driver, self.settings, self.pacer, self.parser, sleep=self._sleep
                )
                for category in resolve_categories(driver):
                    self._crawl_category(crawler, category, run)

                if run.products:
                    self.batcher.save_all(run.products)

        except Exception as e:
            logger.error(f"Critical error during scraping: {e}", exc_info=True)
            run.add_error(f"Critical: {e}")
        finally:
            run.end_time = utcnow()

        logger.info(
            "Scraping completed. Total products: %d, Errors: %d, Duration: %ds",
            len(run.products),
            len(run.errors),
            run.duration_seconds,
        )
        metrics.record_run(operation, len(run.products), len(run.errors), run.duration_seconds)
        return run

    @staticmethod
    def _crawl_category(crawler: PaginationCrawler, category: Category, run: ScrapeRun) -> None:
        logger.info(f"Scraping category: {category.name}")
        try:
            products = crawler.crawl(category)
        except Exception as e:
            logger.error(f"Error scraping category {category.name}: {e}")
            metrics.category_errors_total.inc()
            run.add_error(f"{category.name}: {e}")
            return

        run.add_products(products)
        logger.info(f"Scraped {len(products)} products from category: {category.name}")
