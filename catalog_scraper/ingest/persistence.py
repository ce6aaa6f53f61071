"""Batched, idempotent persistence of scraped products."""

import logging
from typing import List, Optional, Sequence, TypeVar

from catalog_scraper import metrics
from catalog_scraper.db.store import ProductStore
from catalog_scraper.ingest.base import Product, utcnow

logger = logging.getLogger(__name__)

BATCH_SIZE = 500

T = TypeVar("T")


def partition(items: Sequence[T], size: int) -> List[Sequence[T]]:
    """Split items into order-preserving chunks of at most size elements."""
    if size <= 0:
        raise ValueError("Batch size must be positive")
    return [items[i:i + size] for i in range(0, len(items), size)]


class PersistenceBatcher:
    """
    Writes products to the store in bounded batches.

    Each batch is one atomic upsert keyed by product_id. A failed batch is
    logged and skipped; later batches are still attempted. Callers are not
    told which batches failed.
    """

    def __init__(self, store: Optional[ProductStore], batch_size: int = BATCH_SIZE):
        """
        Initialize batcher.

        Args:
            store: Product store, or None when persistence is disabled
            batch_size: Maximum records per commit
        """
        self.store = store
        self.batch_size = batch_size

    @property
    def is_available(self) -> bool:
        if self.store is None:
            logger.warning("Product store not configured")
            return False
        return True

    def save_all(self, products: Sequence[Product]) -> int:
        """
        Upsert products in batches.

        Args:
            products: Products to save

        Returns:
            Number of records in batches that committed
        """
        if not self.is_available:
            logger.info(
                "Skipping save - store not available. Would have saved %d products",
                len(products) if products else 0,
            )
            return 0

        if not products:
            logger.warning("No products to save")
            return 0

        logger.info(f"Saving {len(products)} products")
        now = utcnow()
        batches = partition(list(products), self.batch_size)
        saved = 0

        for batch_number, batch in enumerate(batches, start=1):
            for product in batch:
                self._stamp(product, now)
            try:
                committed = self.store.batch_upsert(
                    [(product.product_id, product) for product in batch]
                )
            except Exception as e:
                logger.error(f"Error saving batch {batch_number}: {e}")
                metrics.record_batch(success=False)
                continue

            saved += len(batch)
            metrics.record_batch(success=True)
            logger.info(
                f"Batch {batch_number}/{len(batches)} committed: {committed} documents"
            )

        logger.info("Finished saving all products")
        return saved

    @staticmethod
    def _stamp(product: Product, now) -> None:
        product.updated_at = now
        if product.scraped_at is None:
            product.scraped_at = now
