"""
Candidate extraction from the rendered host page.

Public API for turning delete-button-anchored comment cards into
``Candidate`` objects.
"""

from .extractor import CandidateExtractor
from .host_page import HostPage, PageNode
from .line_filters import CHROME_PATTERNS, LineClassifier

__all__ = [
    "CandidateExtractor",
    "HostPage",
    "PageNode",
    "CHROME_PATTERNS",
    "LineClassifier",
]
