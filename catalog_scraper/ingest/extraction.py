"""Element extraction heuristics: ordered selector fallback chains.

Each helper walks an ordered list of candidate lookups and returns the first
non-empty result. A selector that matches nothing, or matches an element with
empty content, simply falls through to the next candidate.
"""

from typing import Iterable, Optional, Sequence

from catalog_scraper.ingest.dom import DomNode


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def first_text(node: DomNode, selectors: Sequence[str]) -> Optional[str]:
    """Text of the first selector whose match has non-empty text."""
    for selector in selectors:
        text = _clean(node.text(selector))
        if text:
            return text
    return None


def first_attribute(
    node: DomNode,
    selectors: Sequence[str],
    names: Iterable[str],
) -> Optional[str]:
    """
    First non-empty attribute value over (name, selector) candidates.

    Every selector is tried for the first attribute name before moving to the
    next name, so e.g. ("src", "data-src") prefers any real src over a lazy one.
    """
    for name in names:
        for selector in selectors:
            value = _clean(node.attribute(name, selector))
            if value:
                return value
    return None


def first_own_attribute(node: DomNode, names: Iterable[str]) -> Optional[str]:
    """First non-empty attribute of the node itself."""
    for name in names:
        value = _clean(node.attribute(name))
        if value:
            return value
    return None


def any_present(node: DomNode, selectors: Sequence[str]) -> bool:
    """Whether any selector matches under the node."""
    return any(node.exists(selector) for selector in selectors)
