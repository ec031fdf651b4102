"""
Host page collaborator interfaces.

The audit core never sees the browser directly. It reads rendered text and
layout extent, sets and clears one marker attribute, and clicks delete
affordances, all through these two protocols. ``browser.playwright_page``
implements them over Playwright; tests implement them over a small in-memory
node tree.
"""

from typing import List, Optional, Protocol


class PageNode(Protocol):
    """A rendered element of the host page."""

    def parent(self) -> Optional["PageNode"]:
        """Enclosing element, or None at the document root."""
        ...

    def get_attribute(self, name: str) -> Optional[str]:
        ...

    def set_attribute(self, name: str, value: str) -> None:
        ...

    def remove_attribute(self, name: str) -> None:
        ...

    def inner_text(self) -> str:
        """Rendered text, block boundaries as newlines."""
        ...

    def click(self) -> None:
        ...


class HostPage(Protocol):
    """The rendered activity page."""

    def query_all(self, selector: str) -> List[PageNode]:
        """All nodes matching a CSS selector, in document order."""
        ...

    def scroll_to_extent(self) -> None:
        """Scroll to the bottom of the scrollable area."""
        ...

    def extent(self) -> int:
        """Total scrollable height in pixels."""
        ...
