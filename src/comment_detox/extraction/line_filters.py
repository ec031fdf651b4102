"""
Chrome-line filters for extracted card text.

A rendered comment card mixes the comment itself with page chrome:
- Brand labels ("YouTube", "YouTube comment")
- Context lines ("Commented on ...", "You commented on ...")
- Date stamps ("Dec 11, 2025")
- Timestamp / details footers ("10:42 PM • Details")
- The delete button's own label

Patterns are plain data so they can be extended per locale or page revision
without touching the extractor.
"""

import re
from typing import Iterable, List, Optional, Sequence

from ..version import CHROME_FILTER_VERSION


# Chrome patterns (regex, matched against the stripped line)
CHROME_PATTERNS = [
    r"^YouTube$",  # Logo text
    r"^YouTube comment$",  # Old header style
    r"^Commented on\b",  # Context line
    r"^You commented on\b",
    r"^Replied to\b",
    r"•\s*Details\b",  # Timestamp footer
    r"^Details$",
    r"^(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.? \d{1,2}, \d{4}\b",  # Date stamp
    r"^\d{1,2}:\d{2}\s?(AM|PM)\b",  # Bare time stamp
]

__all__ = [
    "CHROME_PATTERNS",
    "CHROME_FILTER_VERSION",
    "LineClassifier",
    "split_lines",
    "collapse_whitespace",
]


def split_lines(text: Optional[str]) -> List[str]:
    """Split rendered text into trimmed, non-empty lines."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


class LineClassifier:
    """
    Decides whether a card line is page chrome or comment content.

    Args:
        patterns: Chrome regexes (default: CHROME_PATTERNS)
        extra_patterns: Appended to ``patterns``
        exact_labels: Lines that are chrome when they match exactly
            (the delete affordance label, typically)

    Examples:
        >>> classifier = LineClassifier(exact_labels=["Delete"])
        >>> classifier.is_chrome("Commented on Some Video")
        True
        >>> classifier.first_content_line(["YouTube", "nice video!", "Delete"])
        'nice video!'
    """

    def __init__(
        self,
        patterns: Optional[Sequence[str]] = None,
        extra_patterns: Optional[Iterable[str]] = None,
        exact_labels: Optional[Iterable[str]] = None,
    ):
        if patterns is None:
            patterns = CHROME_PATTERNS
        all_patterns = list(patterns) + list(extra_patterns or [])
        self._compiled = [re.compile(p) for p in all_patterns]
        self.exact_labels = {label.strip() for label in (exact_labels or []) if label.strip()}

    def is_chrome(self, line: str, extra_labels: Iterable[str] = ()) -> bool:
        stripped = line.strip()
        if stripped in self.exact_labels or stripped in extra_labels:
            return True
        return any(pattern.search(stripped) for pattern in self._compiled)

    def first_content_line(
        self, lines: Sequence[str], extra_labels: Iterable[str] = ()
    ) -> Optional[str]:
        """First line that is not chrome, or None."""
        extra = {label.strip() for label in extra_labels if label}
        for line in lines:
            if not self.is_chrome(line, extra):
                return line
        return None
