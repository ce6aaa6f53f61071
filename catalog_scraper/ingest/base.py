"""Shared data model for the scrape pipeline."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Category:
    """A navigable product grouping discovered on the category index page."""

    name: str
    url: str
    parent_category: Optional[str] = None


@dataclass
class Product:
    """Normalized product record.

    Every field except product_id may be None, meaning it was not found on the
    page. Two products with the same product_id are the same catalog item.
    """

    product_id: str
    name: Optional[str] = None
    price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    discount: Optional[str] = None
    image_url: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
    category: Optional[str] = None
    sub_category: Optional[str] = None
    product_url: Optional[str] = None
    description: Optional[str] = None
    availability: Optional[bool] = None
    scraped_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.product_id:
            raise ValueError("product_id must be a non-empty string")

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the camelCase document shape used by the API."""
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": float(self.price) if self.price is not None else None,
            "originalPrice": float(self.original_price) if self.original_price is not None else None,
            "discount": self.discount,
            "imageUrl": self.image_url,
            "imageUrls": list(self.image_urls),
            "category": self.category,
            "subCategory": self.sub_category,
            "productUrl": self.product_url,
            "description": self.description,
            "availability": self.availability,
            "scrapedAt": self.scraped_at.isoformat() if self.scraped_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class ScrapeRun:
    """Result of one scrape run: what was gathered and what failed."""

    products: List[Product] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def add_products(self, products: List[Product]) -> None:
        self.products.extend(products)

    def add_error(self, error: str) -> None:
        self.errors.append(error)

    @property
    def duration_seconds(self) -> float:
        """Seconds between start and end, 0 if either is unset."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def summary(self) -> Dict[str, Any]:
        """Counts and timings in the shape returned by the trigger routes."""
        return {
            "productsScraped": len(self.products),
            "errors": list(self.errors),
            "durationSeconds": int(self.duration_seconds),
            "startTime": self.start_time.isoformat() if self.start_time else None,
            "endTime": self.end_time.isoformat() if self.end_time else None,
        }
