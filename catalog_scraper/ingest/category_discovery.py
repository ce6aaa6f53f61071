"""Category discovery from the site's category index page."""

import logging
from typing import List, Optional, Set

from catalog_scraper.config import Settings
from catalog_scraper.ingest.base import Category
from catalog_scraper.ingest.browser import (
    BrowserDriver,
    ElementWaitTimeout,
    StaleElementError,
)
from catalog_scraper.ingest.dom import DomNode
from catalog_scraper.ingest.extraction import first_text
from catalog_scraper.ingest.pacing import RequestPacer
from catalog_scraper.ingest.product_parser import resolve_url

logger = logging.getLogger(__name__)

CATEGORY_LINK_READY_SELECTOR = "a[href*='/c/']"
CATEGORY_LINK_SELECTOR = ".category-tile a, .category-card a, a[href*='/c/']"
CATEGORY_PATH_MARKER = "/c/"
INDEX_PATH_MARKER = "/all-categories"
PARENT_CONTAINER_SELECTOR = "[class*='category']"
PARENT_HEADING_SELECTORS = ["h2", "h3", ".category-title"]


class CategoryDiscoverer:
    """Harvests category links, names and parent labels from the index page."""

    def __init__(self, driver: BrowserDriver, settings: Settings, pacer: RequestPacer):
        self.driver = driver
        self.settings = settings
        self.pacer = pacer

    def discover(self) -> List[Category]:
        """
        Collect every distinct category on the index page.

        Returns:
            Categories in first-seen order; empty if the page never rendered
            category links
        """
        categories: List[Category] = []
        index_url = self.settings.category_index_url

        try:
            logger.info(f"Navigating to categories page: {index_url}")
            self.driver.navigate(index_url)
            self.pacer.wait()

            try:
                self.driver.wait_for_selector(
                    CATEGORY_LINK_READY_SELECTOR,
                    self.settings.element_wait_seconds,
                )
            except ElementWaitTimeout:
                logger.warning("Category links never appeared on %s", index_url)
                return categories

            seen_urls: Set[str] = set()
            for link in self.driver.find_all(CATEGORY_LINK_SELECTOR):
                try:
                    category = self._read_link(link, seen_urls)
                except StaleElementError:
                    logger.warning("Stale element, skipping category link")
                    continue
                if category:
                    categories.append(category)
                    logger.debug(f"Found category: {category.name} - {category.url}")

        except Exception as e:
            logger.error(f"Error scraping categories: {e}")

        return categories

    def _read_link(self, link: DomNode, seen_urls: Set[str]) -> Optional[Category]:
        url = resolve_url(self.settings.base_url, link.attribute("href"))
        if not url or not self.is_category_url(url) or url in seen_urls:
            return None
        seen_urls.add(url)

        name = (link.text() or "").strip()
        if not name:
            name = (link.attribute("alt", "img") or "").strip()
        if not name:
            return None

        return Category(name=name, url=url, parent_category=self._parent_label(link))

    @staticmethod
    def is_category_url(url: str) -> bool:
        return CATEGORY_PATH_MARKER in url and INDEX_PATH_MARKER not in url

    @staticmethod
    def _parent_label(link: DomNode) -> Optional[str]:
        container = link.closest(PARENT_CONTAINER_SELECTOR)
        if container is None:
            return None
        return first_text(container, PARENT_HEADING_SELECTORS)
