"""Prometheus metrics for the catalog scraper."""

from prometheus_client import Counter, Histogram, Info

# Application info
app_info = Info("catalog_scraper", "Catalog scraper application info")
app_info.info({"version": "0.1.0", "name": "catalog-scraper"})

# Run metrics
scrape_runs_total = Counter(
    "scrape_runs_total",
    "Total number of scrape runs",
    ["operation", "status"],
)

scrape_run_duration_seconds = Histogram(
    "scrape_run_duration_seconds",
    "Wall-clock duration of scrape runs",
    ["operation"],
    buckets=[30, 60, 300, 600, 1800, 3600, 7200, 14400],
)

run_rejected_total = Counter(
    "run_rejected_total",
    "Trigger attempts rejected because a run was already in progress",
    ["trigger"],
)

# Crawl metrics
products_scraped_total = Counter(
    "products_scraped_total",
    "Total number of product records produced by the parser",
)

category_errors_total = Counter(
    "category_errors_total",
    "Total number of categories whose crawl raised",
)

# Persistence metrics
persistence_batches_total = Counter(
    "persistence_batches_total",
    "Total number of product batch commits",
    ["status"],
)


def record_run(operation: str, product_count: int, error_count: int, duration: float):
    """Record the outcome of a finished scrape run."""
    status = "success" if error_count == 0 else "partial"
    scrape_runs_total.labels(operation=operation, status=status).inc()
    scrape_run_duration_seconds.labels(operation=operation).observe(duration)
    products_scraped_total.inc(product_count)


def record_rejected(trigger: str):
    """Record a trigger rejected by the single-flight guard."""
    run_rejected_total.labels(trigger=trigger).inc()


def record_batch(success: bool):
    """Record a batch commit outcome."""
    persistence_batches_total.labels(status="success" if success else "error").inc()
