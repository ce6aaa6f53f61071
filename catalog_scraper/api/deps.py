"""FastAPI dependencies."""

from typing import Optional

from fastapi import HTTPException, Request, status

from catalog_scraper.db.store import ProductStore
from catalog_scraper.worker.run_guard import SingleFlightGuard, run_guard
from catalog_scraper.worker.runner import ScrapeRunner


def get_runner(request: Request) -> ScrapeRunner:
    """Dependency for the scrape runner created at startup."""
    runner = getattr(request.app.state, "runner", None)
    if runner is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Scraper not initialized",
        )
    return runner


def get_store(request: Request) -> Optional[ProductStore]:
    """Dependency for the product store (None when persistence is disabled)."""
    return getattr(request.app.state, "store", None)


def get_run_guard() -> SingleFlightGuard:
    """Dependency for the process-wide run guard."""
    return run_guard
