"""Product tile parser: one DOM node + its category -> Product or skip."""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from urllib.parse import urljoin

from catalog_scraper.ingest.base import Category, Product, utcnow
from catalog_scraper.ingest.dom import DomNode
from catalog_scraper.ingest.extraction import (
    any_present,
    first_attribute,
    first_own_attribute,
    first_text,
)

logger = logging.getLogger(__name__)

# Selectors ordered by priority
PRODUCT_ID_ATTRIBUTES = ["data-product-id", "data-sku", "data-item-id"]
PRODUCT_LINK_SELECTOR = "a[href*='/p/']"
PRODUCT_ID_PATTERN = re.compile(r"/p/([^/?]+)")

NAME_SELECTORS = [".product-title", ".product-name", "h3", "h4", "[data-product-name]"]
PRICE_SELECTORS = [".price", ".product-price", ".sale-price", "[data-price]"]
ORIGINAL_PRICE_SELECTORS = [".original-price", ".was-price", ".strikethrough-price", "del"]
DISCOUNT_SELECTORS = [".discount", ".savings", ".promotion", ".badge"]
IMAGE_SELECTORS = ["img", ".product-image img"]
IMAGE_ATTRIBUTES = ["src", "data-src"]
LINK_SELECTORS = ["a"]
OUT_OF_STOCK_SELECTORS = [".out-of-stock", ".unavailable"]

_NON_PRICE_CHARS = re.compile(r"[^0-9.]")


def parse_price(price_text: Optional[str]) -> Optional[Decimal]:
    """
    Parse a displayed price into a Decimal.

    Every character that is not a digit or a decimal point is dropped, so
    "$1,234.56" -> 1234.56 and "NT$999" -> 999.

    Returns:
        Parsed price, or None for empty/unparsable text
    """
    if not price_text:
        return None

    cleaned = _NON_PRICE_CHARS.sub("", price_text)
    if not cleaned:
        return None

    try:
        return Decimal(cleaned)
    except InvalidOperation:
        logger.debug("Could not parse price: %s", price_text)
        return None


def resolve_url(base_url: str, href: Optional[str]) -> Optional[str]:
    """Resolve a possibly relative href against the site base URL."""
    if not href:
        return None
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base_url.rstrip("/") + "/", href)


class ProductParser:
    """Converts a product tile into a normalized Product."""

    def __init__(self, base_url: str):
        self.base_url = base_url

    def parse(self, node: DomNode, category: Category) -> Optional[Product]:
        """
        Parse a product tile.

        Args:
            node: Product tile element
            category: Category the tile was found in

        Returns:
            Product, or None when the tile carries no product id
        """
        product_id = self.extract_product_id(node)
        if not product_id:
            logger.debug("Skipping product tile without an id in %s", category.name)
            return None

        image_url = first_attribute(node, IMAGE_SELECTORS, IMAGE_ATTRIBUTES)

        return Product(
            product_id=product_id,
            name=first_text(node, NAME_SELECTORS),
            price=parse_price(first_text(node, PRICE_SELECTORS)),
            original_price=parse_price(first_text(node, ORIGINAL_PRICE_SELECTORS)),
            discount=first_text(node, DISCOUNT_SELECTORS),
            image_url=resolve_url(self.base_url, image_url),
            image_urls=self._extract_image_urls(node),
            category=category.parent_category or category.name,
            sub_category=category.name,
            product_url=resolve_url(
                self.base_url, first_attribute(node, LINK_SELECTORS, ["href"])
            ),
            availability=not any_present(node, OUT_OF_STOCK_SELECTORS),
            scraped_at=utcnow(),
        )

    @staticmethod
    def extract_product_id(node: DomNode) -> Optional[str]:
        """Data attributes first, then the detail link path, then the element id."""
        product_id = first_own_attribute(node, PRODUCT_ID_ATTRIBUTES)
        if product_id:
            return product_id

        href = node.attribute("href", PRODUCT_LINK_SELECTOR)
        if href:
            match = PRODUCT_ID_PATTERN.search(href)
            if match:
                return match.group(1)

        return first_own_attribute(node, ["id"])

    def _extract_image_urls(self, node: DomNode) -> List[str]:
        urls: List[str] = []
        for image in node.query_all("img"):
            src = first_own_attribute(image, IMAGE_ATTRIBUTES)
            url = resolve_url(self.base_url, src)
            if url and url not in urls:
                urls.append(url)
        return urls
