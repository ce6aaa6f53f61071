#!/usr/bin/env python3
"""
Run one scrape from the command line, without the API server.

Examples:
    python scripts/scrape_category.py --all
    python scripts/scrape_category.py --url /c/televisions --name Televisions
    python scripts/scrape_category.py --url /c/televisions --no-save
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from catalog_scraper.config import settings
from catalog_scraper.db.session import get_engine
from catalog_scraper.db.store import ProductStore
from catalog_scraper.ingest.persistence import PersistenceBatcher
from catalog_scraper.logging_config import setup_logging
from catalog_scraper.worker.run_guard import run_guard
from catalog_scraper.worker.runner import ScrapeRunner


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a single catalog scrape")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--all", action="store_true", help="Discover and scrape every category")
    target.add_argument("--url", help="Category URL (absolute or relative to the base URL)")
    parser.add_argument("--name", default="Category", help="Category name for --url")
    parser.add_argument("--no-save", action="store_true", help="Do not write products to the store")
    args = parser.parse_args()

    setup_logging()

    store = None
    if not args.no_save:
        engine = get_engine()
        if engine is not None:
            store = ProductStore(engine)
            store.create_schema()

    runner = ScrapeRunner(settings, PersistenceBatcher(store))

    with run_guard.held() as acquired:
        if not acquired:
            print("A scrape is already running in this process")
            return 1
        result = runner.run_all() if args.all else runner.run_category(args.url, args.name)

    print(f"Products scraped: {len(result.products)}")
    print(f"Duration: {result.duration_seconds:.0f}s")
    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  - {error}")
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())
