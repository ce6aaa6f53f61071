"""DOM node capability consumed by the extraction layer.

The parser and the discoverer only talk to DomNode. Selector misses are
reported as None/False, never as exceptions, so callers can walk fallback
chains without try/except around every lookup.
"""

from typing import List, Optional, Protocol, Union

from selectolax.parser import HTMLParser, Node


class DomNode(Protocol):
    """Read-only view of one element and its subtree."""

    def text(self, selector: Optional[str] = None) -> Optional[str]:
        """Visible text of the first match under this node (or of the node itself)."""
        ...

    def attribute(self, name: str, selector: Optional[str] = None) -> Optional[str]:
        """Attribute of the first match under this node (or of the node itself)."""
        ...

    def exists(self, selector: str) -> bool:
        """Whether any descendant matches selector."""
        ...

    def query_all(self, selector: str) -> List["DomNode"]:
        """Every descendant matching selector, in document order."""
        ...

    def closest(self, selector: str) -> Optional["DomNode"]:
        """Nearest ancestor (excluding this node) matching selector."""
        ...


class HtmlNode:
    """DomNode over static HTML parsed with selectolax."""

    def __init__(self, node: Union[Node, HTMLParser]):
        self._node = node

    @classmethod
    def parse(cls, html: str) -> "HtmlNode":
        """Wrap the root of an HTML document."""
        return cls(HTMLParser(html))

    @classmethod
    def select(cls, html: str, selector: str) -> List["HtmlNode"]:
        """Parse html and return every element matching selector."""
        return cls.parse(html).query_all(selector)

    def _match(self, selector: Optional[str]):
        if selector is None:
            return self._node
        matches = _ordered_matches(self._node, selector)
        return matches[0] if matches else None

    def text(self, selector: Optional[str] = None) -> Optional[str]:
        node = self._match(selector)
        if node is None:
            return None
        return node.text(separator=" ", strip=True)

    def attribute(self, name: str, selector: Optional[str] = None) -> Optional[str]:
        node = self._match(selector)
        if node is None or not isinstance(node, Node):
            return None
        return node.attributes.get(name)

    def exists(self, selector: str) -> bool:
        return self._node.css_first(selector) is not None

    def query_all(self, selector: str) -> List["HtmlNode"]:
        return [HtmlNode(node) for node in _ordered_matches(self._node, selector)]

    def closest(self, selector: str) -> Optional["HtmlNode"]:
        if not isinstance(self._node, Node):
            return None
        ancestors = []
        parent = self._node.parent
        while parent is not None and parent.tag != "-undef":
            ancestors.append(parent)
            parent = parent.parent
        if not ancestors:
            return None
        # css_matches is true for any node with a matching descendant, so test
        # identity against the document-wide match set instead
        matched = {match.mem_id for match in ancestors[-1].css(selector)}
        for ancestor in ancestors:
            if ancestor.tag == "html":
                break
            if ancestor.mem_id in matched:
                return HtmlNode(ancestor)
        return None

    def __repr__(self) -> str:
        tag = getattr(self._node, "tag", "document")
        return f"<HtmlNode {tag}>"


def _ordered_matches(node: Union[Node, HTMLParser], selector: str) -> List[Node]:
    """Distinct matches in document order, like querySelectorAll.

    selectolax evaluates a selector list one selector at a time, so an element
    matching two entries comes back twice and out of order.
    """
    matches = {match.mem_id: match for match in node.css(selector)}
    if len(matches) <= 1:
        return list(matches.values())
    root = node.root if isinstance(node, HTMLParser) else node
    return [
        descendant
        for descendant in root.traverse(include_text=False)
        if descendant.mem_id in matches
    ]
