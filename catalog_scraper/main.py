"""Main application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Response
from prometheus_fastapi_instrumentator import Instrumentator

from catalog_scraper.api.routes import scraper
from catalog_scraper.config import settings
from catalog_scraper.db.session import get_engine
from catalog_scraper.db.store import ProductStore
from catalog_scraper.ingest.persistence import PersistenceBatcher
from catalog_scraper.logging_config import setup_logging
from catalog_scraper.worker.run_guard import run_guard
from catalog_scraper.worker.runner import ScrapeRunner
from catalog_scraper.worker.scheduler import setup_scheduler

setup_logging()
logger = logging.getLogger(__name__)


def _log_banner(store_ready: bool) -> None:
    logger.info("========================================")
    logger.info("  catalog-scraper - Ready!")
    logger.info("========================================")
    logger.info(f"Local:    http://localhost:{settings.app_port}")
    logger.info(f"Health:   http://localhost:{settings.app_port}/health")
    logger.info(f"Trigger:  POST http://localhost:{settings.app_port}/api/scraper/trigger")
    logger.info(f"Target:   {settings.base_url}")
    logger.info(f"Store:    {'connected' if store_ready else 'unavailable (products will not be saved)'}")
    logger.info("========================================")


def _open_store() -> Optional[ProductStore]:
    """Build the product store, or None when persistence is disabled or unusable."""
    engine = None
    try:
        engine = get_engine()
        if engine is None:
            return None
        store = ProductStore(engine)
        store.create_schema()
    except Exception as e:
        logger.warning(f"Could not open product store: {e}")
        if engine is not None:
            engine.dispose()
        return None
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting catalog scraper...")

    store = _open_store()

    store_ready = store is not None and store.verify_connection()
    if store is not None and not store_ready:
        logger.warning("Scraping will continue, but data may not be saved.")

    runner = ScrapeRunner(settings, PersistenceBatcher(store))
    app.state.store = store
    app.state.runner = runner

    scheduler = setup_scheduler(runner, run_guard, settings)
    scheduler.start()
    logger.info("Scheduler started")

    _log_banner(store_ready)

    yield

    logger.info("Shutting down...")
    scheduler.shutdown(wait=False)
    if store is not None:
        store.engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Catalog Scraper",
    description="Scrape retail product listings into a product store",
    version="0.1.0",
    lifespan=lifespan,
)

instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/health", "/favicon.ico"],
)
instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["monitoring"])

app.include_router(scraper.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/favicon.ico")
async def favicon():
    """Return empty favicon response to avoid 404 noise."""
    return Response(status_code=204)


if __name__ == "__main__":
    uvicorn.run(
        "catalog_scraper.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
