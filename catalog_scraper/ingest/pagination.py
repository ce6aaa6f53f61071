"""Paginated crawl of one category's product grid."""

import logging
import time
from typing import Callable, List

from catalog_scraper.config import Settings
from catalog_scraper.ingest.base import Category, Product
from catalog_scraper.ingest.browser import (
    BrowserDriver,
    ElementWaitTimeout,
    NavigationError,
    StaleElementError,
)
from catalog_scraper.ingest.pacing import RequestPacer
from catalog_scraper.ingest.product_parser import ProductParser, resolve_url

logger = logging.getLogger(__name__)

PRODUCT_SELECTOR = ".product-tile, .product-card, .product-item, [data-product-id]"
NEXT_PAGE_SELECTOR = (
    ".pagination .next:not(.disabled), "
    "a[aria-label='Next'], "
    "button[aria-label='Next page']:not([disabled]), "
    ".page-next:not(.disabled)"
)

PAGE_HEIGHT_SCRIPT = "document.body.scrollHeight"
SCROLL_BOTTOM_SCRIPT = "window.scrollTo(0, document.body.scrollHeight)"
SCROLL_TOP_SCRIPT = "window.scrollTo(0, 0)"


def build_page_url(category_url: str, page: int) -> str:
    """Bare URL for page 1, ?page=N (or &page=N) afterwards."""
    if page <= 1:
        return category_url
    separator = "&" if "?" in category_url else "?"
    return f"{category_url}{separator}page={page}"


class PaginationCrawler:
    """
    Walks a category page by page until it runs out of products.

    Termination, checked each iteration: product grid never appears,
    no product elements, max_pages exhausted, no enabled "next" control,
    or a navigation failure. Products gathered before termination are kept.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        settings: Settings,
        pacer: RequestPacer,
        parser: ProductParser,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.driver = driver
        self.settings = settings
        self.pacer = pacer
        self.parser = parser
        self._sleep = sleep

    def crawl(self, category: Category) -> List[Product]:
        """
        Scrape every product of a category.

        Args:
            category: Category to crawl

        Returns:
            Products in page order
        """
        products: List[Product] = []
        category_url = resolve_url(self.settings.base_url, category.url)
        page = 1

        while page <= self.settings.max_pages:
            page_url = build_page_url(category_url, page)
            logger.info(f"Scraping page {page} of category: {category.name}")

            try:
                self.driver.navigate(page_url)
            except NavigationError as e:
                logger.error(
                    f"Error scraping page {page} of category {category.name}: {e}"
                )
                break
            self.pacer.wait()

            try:
                self.driver.wait_for_selector(
                    PRODUCT_SELECTOR, self.settings.element_wait_seconds
                )
            except ElementWaitTimeout:
                logger.info(f"No products found on page {page}, stopping pagination")
                break

            self._load_lazy_content()

            elements = self.driver.find_all(PRODUCT_SELECTOR)
            if not elements:
                logger.info(f"No products found on page {page}")
                break

            logger.info(f"Found {len(elements)} product elements on page {page}")
            products.extend(self._parse_elements(elements, category))

            if not self.has_next_page():
                break
            page += 1
        else:
            logger.info(
                f"Reached max pages ({self.settings.max_pages}) for category: {category.name}"
            )

        return products

    def _parse_elements(self, elements, category: Category) -> List[Product]:
        parsed: List[Product] = []
        for element in elements:
            try:
                product = self.parser.parse(element, category)
            except StaleElementError:
                logger.warning("Stale element, skipping product")
                continue
            except Exception as e:
                logger.warning(f"Error parsing product: {e}")
                continue
            if product is not None:
                parsed.append(product)
        return parsed

    def has_next_page(self) -> bool:
        """Whether an enabled "next" pagination control is on the page."""
        try:
            return bool(self.driver.find_all(NEXT_PAGE_SELECTOR))
        except Exception as e:
            logger.debug(f"Next page check failed: {e}")
            return False

    def _load_lazy_content(self) -> None:
        """Scroll to the bottom until the page height stops growing, then back to top."""
        try:
            last_height = self.driver.execute_script(PAGE_HEIGHT_SCRIPT)
            for _ in range(self.settings.max_scroll_probes):
                self.driver.execute_script(SCROLL_BOTTOM_SCRIPT)
                self._sleep(self.settings.scroll_pause_seconds)
                new_height = self.driver.execute_script(PAGE_HEIGHT_SCRIPT)
                if new_height == last_height:
                    break
                last_height = new_height
            self.driver.execute_script(SCROLL_TOP_SCRIPT)
        except Exception as e:
            logger.warning(f"Error during scroll: {e}")
