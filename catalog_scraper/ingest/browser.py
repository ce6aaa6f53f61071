"""Browser automation driver built on Playwright's synchronous API."""

import logging
import random
from typing import Any, List, Optional, Protocol

from playwright.sync_api import (
    Browser,
    BrowserContext,
    ElementHandle,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    sync_playwright,
)

from catalog_scraper.config import Settings

logger = logging.getLogger(__name__)


class ScraperError(Exception):
    """Base class for scrape pipeline errors."""


class DriverError(ScraperError):
    """Browser could not be started or crashed."""


class NavigationError(ScraperError):
    """Page failed to load."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to load {url}: {reason}")


class ElementWaitTimeout(ScraperError):
    """No element matched the selector before the timeout."""

    def __init__(self, selector: str, timeout_seconds: float):
        self.selector = selector
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Timed out after {timeout_seconds}s waiting for {selector}")


class StaleElementError(ScraperError):
    """Element was detached from the DOM while being read."""


class BrowserDriver(Protocol):
    """Capability the crawler and the discoverer drive."""

    def navigate(self, url: str) -> None: ...

    def wait_for_selector(self, selector: str, timeout_seconds: float) -> None: ...

    def find_all(self, selector: str) -> list: ...

    def execute_script(self, script: str) -> Any: ...

    def dispose(self) -> None: ...


# Launch flags that hide the most obvious automation signals
STEALTH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--disable-infobars",
    "--disable-notifications",
    "--disable-popup-blocking",
]

STEALTH_SCRIPTS = [
    # Hide webdriver property
    """
    Object.defineProperty(navigator, 'webdriver', {
        get: () => undefined
    });
    """,
    # Mock plugins
    """
    Object.defineProperty(navigator, 'plugins', {
        get: () => [1, 2, 3, 4, 5]
    });
    """,
    # Mock languages
    """
    Object.defineProperty(navigator, 'languages', {
        get: () => ['zh-TW', 'zh', 'en']
    });
    """,
    # Chrome runtime
    """
    window.chrome = {
        runtime: {}
    };
    """,
]

_DETACHED_MARKERS = ("not attached", "detached", "stale")


def _is_detached(error: PlaywrightError) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _DETACHED_MARKERS)


class PlaywrightNode:
    """DomNode over a live Playwright element handle."""

    def __init__(self, handle: ElementHandle):
        self._handle = handle

    def _call(self, fn, *args):
        try:
            return fn(*args)
        except PlaywrightError as e:
            if _is_detached(e):
                raise StaleElementError(str(e)) from e
            raise

    def _match(self, selector: Optional[str]) -> Optional[ElementHandle]:
        if selector is None:
            return self._handle
        return self._call(self._handle.query_selector, selector)

    def text(self, selector: Optional[str] = None) -> Optional[str]:
        element = self._match(selector)
        if element is None:
            return None
        return self._call(element.inner_text).strip()

    def attribute(self, name: str, selector: Optional[str] = None) -> Optional[str]:
        element = self._match(selector)
        if element is None:
            return None
        return self._call(element.get_attribute, name)

    def exists(self, selector: str) -> bool:
        return self._match(selector) is not None

    def query_all(self, selector: str) -> List["PlaywrightNode"]:
        handles = self._call(self._handle.query_selector_all, selector)
        return [PlaywrightNode(handle) for handle in handles]

    def closest(self, selector: str) -> Optional["PlaywrightNode"]:
        js_handle = self._call(
            self._handle.evaluate_handle,
            "(el, sel) => el.parentElement ? el.parentElement.closest(sel) : null",
            selector,
        )
        element = js_handle.as_element()
        return PlaywrightNode(element) if element is not None else None


class BrowserSession:
    """
    One Chromium page owned by a single scrape run.

    Not safe for concurrent navigation; the run controller drives it from one
    thread and disposes it when the run ends.
    """

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page,
        page_load_timeout_seconds: float = 30,
    ):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._page_load_timeout_ms = page_load_timeout_seconds * 1000
        self._disposed = False

    def navigate(self, url: str) -> None:
        logger.debug(f"Navigating to {url}")
        try:
            self._page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self._page_load_timeout_ms,
            )
        except PlaywrightTimeoutError:
            raise NavigationError(url, "Navigation timeout")
        except PlaywrightError as e:
            raise NavigationError(url, str(e))

    def wait_for_selector(self, selector: str, timeout_seconds: float) -> None:
        try:
            self._page.wait_for_selector(
                selector,
                state="attached",
                timeout=timeout_seconds * 1000,
            )
        except PlaywrightTimeoutError:
            raise ElementWaitTimeout(selector, timeout_seconds)

    def find_all(self, selector: str) -> List[PlaywrightNode]:
        return [PlaywrightNode(handle) for handle in self._page.query_selector_all(selector)]

    def execute_script(self, script: str) -> Any:
        return self._page.evaluate(script)

    def dispose(self) -> None:
        """Close page, context, browser and Playwright; safe to call twice."""
        if self._disposed:
            return
        self._disposed = True
        for name, closer in (
            ("context", self._context.close),
            ("browser", self._browser.close),
            ("playwright", self._playwright.stop),
        ):
            try:
                closer()
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")
        logger.info("Browser session closed")

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()


def open_browser_session(settings: Settings) -> BrowserSession:
    """
    Launch Chromium with anti-detection options and open one page.

    Raises:
        DriverError: If the browser could not be started
    """
    user_agent = random.choice(settings.user_agents) if settings.user_agents else None
    logger.info("Initializing Chromium (headless=%s)", settings.headless)
    logger.debug("Using User-Agent: %s", user_agent)

    playwright = sync_playwright().start()
    try:
        browser = playwright.chromium.launch(
            headless=settings.headless,
            args=STEALTH_ARGS + [f"--lang={settings.locale}"],
            ignore_default_args=["--enable-automation"],
        )
        context = browser.new_context(
            user_agent=user_agent,
            viewport=settings.viewport,
            locale=settings.locale,
            extra_http_headers={"Accept-Language": settings.accept_language},
        )
        for script in STEALTH_SCRIPTS:
            context.add_init_script(script)
        page = context.new_page()
    except PlaywrightError as e:
        playwright.stop()
        raise DriverError(f"Could not start browser: {e}") from e

    logger.info("Browser session initialized")
    return BrowserSession(
        playwright,
        browser,
        context,
        page,
        page_load_timeout_seconds=settings.page_load_timeout_seconds,
    )
