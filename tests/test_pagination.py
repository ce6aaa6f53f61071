"""Tests for the paginated category crawl."""

from unittest.mock import MagicMock

import pytest
from conftest import BASE_URL, FakeDriver, product_page

from catalog_scraper.ingest.base import Category
from catalog_scraper.ingest.browser import StaleElementError
from catalog_scraper.ingest.pacing import RequestPacer
from catalog_scraper.ingest.pagination import (
    PAGE_HEIGHT_SCRIPT,
    SCROLL_BOTTOM_SCRIPT,
    SCROLL_TOP_SCRIPT,
    PaginationCrawler,
    build_page_url,
)
from catalog_scraper.ingest.product_parser import ProductParser

CATEGORY = Category(name="Televisions", url="/c/tv", parent_category="Electronics")
PAGE_1 = f"{BASE_URL}/c/tv"
PAGE_2 = f"{BASE_URL}/c/tv?page=2"
PAGE_3 = f"{BASE_URL}/c/tv?page=3"


def _ids(start: int, count: int):
    return [str(n) for n in range(start, start + count)]


def _crawler(driver, settings, sleep=None) -> PaginationCrawler:
    pacer = RequestPacer(settings.min_delay_ms, settings.max_delay_ms)
    kwargs = {"sleep": sleep} if sleep is not None else {}
    return PaginationCrawler(driver, settings, pacer, ProductParser(settings.base_url), **kwargs)


@pytest.mark.parametrize(
    "url,page,expected",
    [
        ("https://shop.test/c/tv", 1, "https://shop.test/c/tv"),
        ("https://shop.test/c/tv", 2, "https://shop.test/c/tv?page=2"),
        ("https://shop.test/c/tv?sort=price", 3, "https://shop.test/c/tv?sort=price&page=3"),
    ],
)
def test_build_page_url(url, page, expected):
    assert build_page_url(url, page) == expected


def test_crawl_stops_when_grid_times_out(settings, no_sleep):
    """Pages with 20, 20, then no products: 40 products over 3 navigations."""
    driver = FakeDriver(
        pages={
            PAGE_1: product_page(_ids(1, 20), has_next=True),
            PAGE_2: product_page(_ids(21, 20), has_next=True),
        }
    )

    products = _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    assert len(products) == 40
    assert driver.navigated == [PAGE_1, PAGE_2, PAGE_3]
    assert [p.product_id for p in products] == _ids(1, 40)
    assert all(p.category == "Electronics" for p in products)
    assert all(p.sub_category == "Televisions" for p in products)


def test_crawl_stops_without_next_control(settings, no_sleep):
    driver = FakeDriver(
        pages={
            PAGE_1: product_page(_ids(1, 5), has_next=True),
            PAGE_2: product_page(_ids(6, 5), has_next=False),
            PAGE_3: product_page(_ids(11, 5), has_next=False),
        }
    )

    products = _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    assert len(products) == 10
    assert driver.navigated == [PAGE_1, PAGE_2]


def test_disabled_next_control_stops(settings, no_sleep):
    page = product_page(_ids(1, 3)).replace(
        "</body>",
        '<div class="pagination"><a class="next disabled">Next</a></div></body>',
    )
    driver = FakeDriver(pages={PAGE_1: page, PAGE_2: product_page(_ids(4, 3))})

    products = _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    assert len(products) == 3
    assert driver.navigated == [PAGE_1]


def test_crawl_respects_max_pages(settings, no_sleep):
    settings.max_pages = 2
    driver = FakeDriver(
        pages={
            PAGE_1: product_page(_ids(1, 2), has_next=True),
            PAGE_2: product_page(_ids(3, 2), has_next=True),
            PAGE_3: product_page(_ids(5, 2), has_next=True),
        }
    )

    products = _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    assert len(products) == 4
    assert driver.navigated == [PAGE_1, PAGE_2]


def test_navigation_failure_keeps_earlier_pages(settings, no_sleep):
    driver = FakeDriver(
        pages={PAGE_1: product_page(_ids(1, 4), has_next=True)},
        failing_navigation={PAGE_2},
    )

    products = _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    assert [p.product_id for p in products] == _ids(1, 4)
    assert driver.navigated == [PAGE_1, PAGE_2]


def test_first_page_without_products(settings, no_sleep):
    driver = FakeDriver(pages={PAGE_1: "<html><body><p>No results</p></body></html>"})

    assert _crawler(driver, settings, no_sleep).crawl(CATEGORY) == []
    assert driver.navigated == [PAGE_1]


def test_tiles_without_id_are_skipped(settings, no_sleep):
    page = product_page(["1", "2"]).replace(
        "</div></body>",
        '<div class="product-card"><span class="product-title">No id</span></div></div></body>',
    )
    driver = FakeDriver(pages={PAGE_1: page})

    products = _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    assert [p.product_id for p in products] == ["1", "2"]


def test_find_all_failure_propagates(settings, no_sleep):
    """Errors other than navigation or wait timeouts abort the category."""
    driver = FakeDriver(
        pages={PAGE_1: product_page(_ids(1, 3))},
        failing_find_all={PAGE_1: RuntimeError("session crashed")},
    )

    with pytest.raises(RuntimeError, match="session crashed"):
        _crawler(driver, settings, no_sleep).crawl(CATEGORY)


def test_lazy_load_scrolls_until_height_settles(settings, no_sleep):
    driver = FakeDriver(pages={PAGE_1: product_page(_ids(1, 1))})

    _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    assert driver.scripts == [
        PAGE_HEIGHT_SCRIPT,
        SCROLL_BOTTOM_SCRIPT,
        PAGE_HEIGHT_SCRIPT,
        SCROLL_TOP_SCRIPT,
    ]
    assert no_sleep.calls == [settings.scroll_pause_seconds]


def test_lazy_load_bounded_by_probe_count(settings, no_sleep):
    settings.max_scroll_probes = 3
    driver = MagicMock()
    heights = iter(range(1000, 100000, 500))
    driver.execute_script.side_effect = (
        lambda script: next(heights) if script == PAGE_HEIGHT_SCRIPT else None
    )
    driver.find_all.return_value = []

    _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    bottom_scrolls = [
        call for call in driver.execute_script.call_args_list
        if call.args[0] == SCROLL_BOTTOM_SCRIPT
    ]
    assert len(bottom_scrolls) == 3


def test_scroll_failure_does_not_abort_page(settings, no_sleep):
    driver = FakeDriver(pages={PAGE_1: product_page(_ids(1, 2))})
    driver.execute_script = MagicMock(side_effect=RuntimeError("script error"))

    products = _crawler(driver, settings, no_sleep).crawl(CATEGORY)

    assert len(products) == 2


def test_stale_element_is_skipped(settings):
    parser = MagicMock()
    good_product = MagicMock()
    parser.parse.side_effect = [StaleElementError("detached"), good_product, ValueError("bad")]
    crawler = PaginationCrawler(
        MagicMock(), settings, RequestPacer(0, 0), parser
    )

    parsed = crawler._parse_elements([object(), object(), object()], CATEGORY)

    assert parsed == [good_product]


def test_has_next_page_swallows_errors(settings):
    driver = MagicMock()
    driver.find_all.side_effect = RuntimeError("gone")
    crawler = PaginationCrawler(
        driver, settings, RequestPacer(0, 0), ProductParser(settings.base_url)
    )

    assert crawler.has_next_page() is False
