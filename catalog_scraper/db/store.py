"""Product document store backed by SQLAlchemy."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple

from sqlalchemy import Engine, delete, func, select, text
from sqlalchemy.dialects import postgresql, sqlite

from catalog_scraper.db.models import Base, ProductRecord
from catalog_scraper.db.session import build_session_factory
from catalog_scraper.ingest.base import Product

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class ProductStore:
    """
    Key/value store of products keyed by product_id.

    Writes are idempotent upserts: a later write for the same key overwrites
    the stored document, except scraped_at which keeps its first value.
    """

    def __init__(self, engine: Engine):
        dialect = engine.dialect.name
        if dialect not in _UPSERT_INSERTS:
            raise ValueError(f"Unsupported database dialect for upserts: {dialect}")
        self.engine = engine
        self._insert = _UPSERT_INSERTS[dialect]
        self._session_factory = build_session_factory(engine)

    def create_schema(self) -> None:
        """Create the products table if it does not exist."""
        Base.metadata.create_all(self.engine)

    def verify_connection(self) -> bool:
        """Check that the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Could not verify database connection: {e}")
            return False
        logger.info("Database connection verified successfully")
        return True

    def upsert(self, key: str, product: Product) -> None:
        """Insert or overwrite one product."""
        self.batch_upsert([(key, product)])

    def batch_upsert(self, items: Iterable[Tuple[str, Product]]) -> int:
        """
        Insert or overwrite many products in one transaction.

        Args:
            items: (key, product) pairs; key must equal product.product_id

        Returns:
            Number of distinct keys written
        """
        rows: Dict[str, Dict[str, Any]] = {}
        for key, product in items:
            if key != product.product_id:
                raise ValueError(
                    f"Key {key!r} does not match product_id {product.product_id!r}"
                )
            # Last occurrence of a key wins within one batch
            rows[key] = self._to_row(product)

        if not rows:
            return 0

        table = ProductRecord.__table__
        stmt = self._insert(table).values(list(rows.values()))
        update_columns = {
            column.name: stmt.excluded[column.name]
            for column in table.columns
            if column.name not in ("product_id", "scraped_at")
        }
        update_columns["scraped_at"] = func.coalesce(
            table.c.scraped_at, stmt.excluded.scraped_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.product_id],
            set_=update_columns,
        )

        with self._session_factory.begin() as session:
            session.execute(stmt)

        logger.debug(f"Upserted {len(rows)} products")
        return len(rows)

    def get(self, key: str) -> Optional[Product]:
        with self._session_factory() as session:
            record = session.get(ProductRecord, key)
            if record is None:
                return None
            return self._to_product(record)

    def exists(self, key: str) -> bool:
        with self._session_factory() as session:
            result = session.execute(
                select(ProductRecord.product_id).where(ProductRecord.product_id == key)
            )
            return result.first() is not None

    def delete(self, key: str) -> None:
        with self._session_factory.begin() as session:
            session.execute(delete(ProductRecord).where(ProductRecord.product_id == key))
        logger.debug(f"Deleted product: {key}")

    def count(self) -> int:
        with self._session_factory() as session:
            return session.scalar(select(func.count()).select_from(ProductRecord)) or 0

    @staticmethod
    def _to_row(product: Product) -> Dict[str, Any]:
        return {
            "product_id": product.product_id,
            "name": product.name,
            "price": product.price,
            "original_price": product.original_price,
            "discount": product.discount,
            "image_url": product.image_url,
            "image_urls": list(product.image_urls),
            "category": product.category,
            "sub_category": product.sub_category,
            "product_url": product.product_url,
            "description": product.description,
            "availability": product.availability,
            "scraped_at": product.scraped_at,
            "updated_at": product.updated_at,
        }

    @staticmethod
    def _to_product(record: ProductRecord) -> Product:
        return Product(
            product_id=record.product_id,
            name=record.name,
            price=record.price,
            original_price=record.original_price,
            discount=record.discount,
            image_url=record.image_url,
            image_urls=list(record.image_urls or []),
            category=record.category,
            sub_category=record.sub_category,
            product_url=record.product_url,
            description=record.description,
            availability=record.availability,
            scraped_at=_as_utc(record.scraped_at),
            updated_at=_as_utc(record.updated_at),
        )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo; everything is written in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
