"""Scrape trigger and status API endpoints."""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from catalog_scraper import metrics
from catalog_scraper.api.deps import get_run_guard, get_runner, get_store
from catalog_scraper.db.store import ProductStore
from catalog_scraper.worker.run_guard import SingleFlightGuard
from catalog_scraper.worker.runner import ScrapeRunner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scraper", tags=["scraper"])

BUSY_MESSAGE = "Scraping is already in progress"


class ScraperResponse(BaseModel):
    """Envelope shared by every scraper endpoint."""
    status: str
    message: str
    timestamp: str
    data: Optional[Dict[str, Any]] = None


def _response(status_text: str, message: str, data: Optional[Dict[str, Any]] = None) -> ScraperResponse:
    return ScraperResponse(
        status=status_text,
        message=message,
        timestamp=datetime.now(timezone.utc).isoformat(),
        data=data,
    )


def _busy(trigger: str) -> JSONResponse:
    metrics.record_rejected(trigger)
    logger.warning(BUSY_MESSAGE)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_response("error", BUSY_MESSAGE).model_dump(),
    )


def _run_in_background(runner: ScrapeRunner, guard: SingleFlightGuard) -> None:
    try:
        logger.info("Starting background scraping task")
        result = runner.run_all()
        logger.info(
            "Scraping completed. Products: %d, Errors: %d, Duration: %ds",
            len(result.products),
            len(result.errors),
            result.duration_seconds,
        )
    except Exception as e:
        logger.error(f"Background scraping failed: {e}", exc_info=True)
    finally:
        guard.release()


@router.post("/trigger", response_model=ScraperResponse, status_code=status.HTTP_202_ACCEPTED)
def trigger_scrape(
    runner: ScrapeRunner = Depends(get_runner),
    guard: SingleFlightGuard = Depends(get_run_guard),
):
    """
    Start a full scrape and return immediately.

    The run guard is held until the run thread finishes.
    """
    logger.info("Received scrape trigger request")
    if not guard.try_acquire():
        return _busy("manual")

    try:
        thread = threading.Thread(
            target=_run_in_background,
            args=(runner, guard),
            name="scrape-manual",
            daemon=True,
        )
        thread.start()
    except Exception as e:
        guard.release()
        logger.error(f"Failed to start scraping: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

    return _response("accepted", "Scraping task started")


@router.post("/trigger/sync", response_model=ScraperResponse)
def trigger_scrape_sync(
    runner: ScrapeRunner = Depends(get_runner),
    guard: SingleFlightGuard = Depends(get_run_guard),
):
    """Run a full scrape and wait for it to finish."""
    logger.info("Received synchronous scrape trigger request")
    with guard.held() as acquired:
        if not acquired:
            return _busy("sync")
        result = runner.run_all()

    return _response("success", "Scraping completed", result.summary())


@router.post("/trigger/category", response_model=ScraperResponse)
def trigger_category_scrape(
    url: str = Query(..., min_length=1),
    name: str = Query("Category"),
    runner: ScrapeRunner = Depends(get_runner),
    guard: SingleFlightGuard = Depends(get_run_guard),
):
    """Scrape a single category and wait for it to finish."""
    logger.info(f"Received category scrape trigger request for: {name}")
    with guard.held() as acquired:
        if not acquired:
            return _busy("category")
        result = runner.run_category(url, name)

    summary = result.summary()
    data = {
        "category": name,
        "productsScraped": summary["productsScraped"],
        "errors": summary["errors"],
        "durationSeconds": summary["durationSeconds"],
    }
    return _response("success", "Category scraping completed", data)


@router.get("/status", response_model=ScraperResponse)
def get_status(
    store: Optional[ProductStore] = Depends(get_store),
    guard: SingleFlightGuard = Depends(get_run_guard),
):
    """Whether a run is in progress and how many products are stored."""
    product_count = 0
    if store is not None:
        try:
            product_count = store.count()
        except Exception as e:
            logger.error(f"Error getting product count: {e}")

    data = {
        "isRunning": guard.is_running,
        "productCount": product_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return _response("success", "Status retrieved", data)


@router.get("/health", response_model=ScraperResponse)
def health():
    """Health check endpoint."""
    data = {"status": "UP", "timestamp": datetime.now(timezone.utc).isoformat()}
    return _response("success", "Service is healthy", data)


@router.get("/products/{product_id}", response_model=ScraperResponse)
def get_product(
    product_id: str,
    store: Optional[ProductStore] = Depends(get_store),
):
    """Fetch one stored product document."""
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Product store not configured",
        )

    product = store.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    return _response("success", "Product retrieved", product.to_document())
