"""Shared fixtures: settings without delays and a scripted in-memory browser."""

from typing import Dict, List, Optional, Set

import pytest

from catalog_scraper.config import Settings
from catalog_scraper.ingest.browser import ElementWaitTimeout, NavigationError
from catalog_scraper.ingest.dom import HtmlNode

BASE_URL = "https://shop.test"


class FakeDriver:
    """
    BrowserDriver that serves canned HTML per URL.

    URLs missing from pages render an empty document, so waiting on any
    selector times out. Elements are selectolax-backed HtmlNode instances.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        failing_navigation: Optional[Set[str]] = None,
        failing_find_all: Optional[Dict[str, Exception]] = None,
        page_height: int = 1000,
    ):
        self.pages = pages or {}
        self.failing_navigation = failing_navigation or set()
        self.failing_find_all = failing_find_all or {}
        self.page_height = page_height
        self.navigated: List[str] = []
        self.scripts: List[str] = []
        self.current_url: Optional[str] = None
        self.dispose_count = 0

    @property
    def disposed(self) -> bool:
        return self.dispose_count > 0

    def navigate(self, url: str) -> None:
        self.navigated.append(url)
        if url in self.failing_navigation:
            raise NavigationError(url, "net::ERR_CONNECTION_RESET")
        self.current_url = url

    def _html(self) -> str:
        return self.pages.get(self.current_url, "<html><body></body></html>")

    def wait_for_selector(self, selector: str, timeout_seconds: float) -> None:
        if not HtmlNode.select(self._html(), selector):
            raise ElementWaitTimeout(selector, timeout_seconds)

    def find_all(self, selector: str) -> List[HtmlNode]:
        error = self.failing_find_all.get(self.current_url)
        if error is not None:
            raise error
        return HtmlNode.select(self._html(), selector)

    def execute_script(self, script: str):
        self.scripts.append(script)
        if script == "document.body.scrollHeight":
            return self.page_height
        return None

    def dispose(self) -> None:
        self.dispose_count += 1

    def __enter__(self) -> "FakeDriver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


def product_tile(product_id: str, price: str = "NT$1,299", name: Optional[str] = None) -> str:
    return (
        f'<div class="product-tile" data-product-id="{product_id}">'
        f'<a href="/p/{product_id}"><img src="/img/{product_id}.jpg"></a>'
        f'<span class="product-title">{name or "Product " + product_id}</span>'
        f'<span class="price">{price}</span>'
        "</div>"
    )


def product_page(product_ids: List[str], has_next: bool = False) -> str:
    tiles = "".join(product_tile(product_id) for product_id in product_ids)
    pagination = ""
    if has_next:
        pagination = '<div class="pagination"><a class="next" href="?page=next">Next</a></div>'
    return f"<html><body><div class='grid'>{tiles}</div>{pagination}</body></html>"


@pytest.fixture
def settings() -> Settings:
    """Settings pointed at a fake host with every delay disabled."""
    return Settings(
        base_url=BASE_URL,
        database_url="",
        min_delay_ms=0,
        max_delay_ms=0,
        element_wait_seconds=0.1,
        scroll_pause_seconds=0,
        max_scroll_probes=3,
        max_pages=100,
        schedule_enabled=False,
    )


@pytest.fixture
def no_sleep():
    """Sleep replacement that records requested durations."""
    calls: List[float] = []

    def sleep(seconds: float) -> None:
        calls.append(seconds)

    sleep.calls = calls
    return sleep
