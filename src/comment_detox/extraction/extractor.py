"""
Candidate extraction from the rendered activity page.

The page's class names are obfuscated and its nesting changes between
releases, so extraction anchors on the one stable element: the per-item
delete button, found by its accessible label. From each unseen button we
ascend to the enclosing card, strip chrome lines and keep the comment line.

Extraction never raises to the caller. A card that fails or yields no text
is skipped, and its button is still marked so it is not retried forever.
"""

import time
from typing import Iterable, List, Optional, Sequence

import structlog

from ..config import settings
from ..errors import ExtractionAnomaly
from ..logging_config import preview
from ..models.audit import Candidate
from .host_page import HostPage, PageNode
from .line_filters import LineClassifier, collapse_whitespace, split_lines


logger = structlog.get_logger(__name__)

MARKER_VALUE = "true"


class CandidateExtractor:
    """
    Turns rendered comment cards into ``Candidate`` objects.

    Args:
        page: Host page to read from
        delete_keyword: Substring of the delete button's aria-label
        marker_attribute: Attribute set on buttons already surfaced
        container_roles: ``role`` values that identify a card container
        ascent_levels: Structural fallback when no container role is found
        search_depth: How far up to look for a container role
        line_classifier: Chrome filter (default: built from settings)
    """

    def __init__(
        self,
        page: HostPage,
        delete_keyword: Optional[str] = None,
        marker_attribute: Optional[str] = None,
        container_roles: Optional[Sequence[str]] = None,
        ascent_levels: Optional[int] = None,
        search_depth: Optional[int] = None,
        line_classifier: Optional[LineClassifier] = None,
    ):
        self.page = page
        self.delete_keyword = delete_keyword or settings.delete_keyword
        self.marker_attribute = marker_attribute or settings.surfaced_marker_attribute
        self.container_roles = set(
            container_roles if container_roles is not None else settings.card_container_roles
        )
        self.ascent_levels = ascent_levels if ascent_levels is not None else settings.card_ascent_levels
        self.search_depth = search_depth if search_depth is not None else settings.card_search_depth

        if line_classifier is None:
            line_classifier = LineClassifier(
                extra_patterns=settings.extra_chrome_patterns,
                exact_labels=[self.delete_keyword],
            )
        self.line_classifier = line_classifier

        self._scan_count = 0
        self.logger = logger.bind(extractor="CandidateExtractor")

    @property
    def affordance_selector(self) -> str:
        return f'[aria-label*="{self.delete_keyword}"]'

    def scan(self) -> List[Candidate]:
        """
        Extract candidates from every delete button not surfaced yet.

        Returns:
            Candidates in document order. Running scan() again on an
            unchanged page returns an empty list.
        """
        self._scan_count += 1
        started_ms = int(time.time() * 1000)

        try:
            affordances = self.page.query_all(self.affordance_selector)
        except Exception as e:
            self.logger.warning("affordance_query_failed", error=str(e))
            return []

        candidates = []
        skipped = 0

        for index, affordance in enumerate(affordances):
            try:
                if affordance.get_attribute(self.marker_attribute) == MARKER_VALUE:
                    continue
            except Exception as e:
                self.logger.debug("affordance_detached", index=index, error=str(e))
                continue

            try:
                text = self._extract_text(affordance)
            except ExtractionAnomaly as e:
                self.logger.debug("card_skipped", index=index, reason=str(e))
                text = None
            except Exception as e:
                self.logger.warning("card_extraction_failed", index=index, error=str(e))
                text = None

            self._mark(affordance)

            if text is None:
                skipped += 1
                continue

            candidates.append(
                Candidate(
                    identity=f"item-{self._scan_count}-{index}-{started_ms}",
                    text=text,
                    deletion_handle=affordance,
                )
            )

        self.logger.info(
            "scan_completed",
            scan=self._scan_count,
            affordances=len(affordances),
            candidates=len(candidates),
            skipped=skipped,
        )
        return candidates

    def release(self, candidates: Iterable[Candidate]) -> int:
        """
        Clear the surfaced marker so a later scan picks these cards up again.

        Used for candidates that were surfaced but never classified.

        Returns:
            Number of markers cleared
        """
        released = 0
        for candidate in candidates:
            try:
                candidate.deletion_handle.remove_attribute(self.marker_attribute)
                released += 1
            except Exception as e:
                self.logger.debug("release_failed", identity=candidate.identity, error=str(e))
        return released

    def find_card(self, affordance: PageNode) -> Optional[PageNode]:
        """
        Ascend from a delete button to the card that holds one comment.

        Prefers the nearest ancestor with a container ``role``; otherwise the
        ancestor ``ascent_levels`` up (or the highest one reached).
        """
        node = affordance.parent()
        depth = 1
        fallback = None

        while node is not None and depth <= self.search_depth:
            if node.get_attribute("role") in self.container_roles:
                return node
            if depth <= self.ascent_levels:
                fallback = node
            node = node.parent()
            depth += 1

        return fallback

    def _extract_text(self, affordance: PageNode) -> str:
        card = self.find_card(affordance)
        if card is None:
            raise ExtractionAnomaly("no enclosing card")

        lines = split_lines(card.inner_text())
        if not lines:
            raise ExtractionAnomaly("card has no text")

        label = affordance.get_attribute("aria-label") or ""
        text = self.line_classifier.first_content_line(lines, extra_labels=[label])

        if text is None:
            # Degraded candidate: may be chrome, but never drop a deletable card
            text = " ".join(lines)
            self.logger.debug("card_fallback_text", text=preview(text))

        text = collapse_whitespace(text)
        if len(text) <= 1:
            raise ExtractionAnomaly("text too short")
        return text

    def _mark(self, affordance: PageNode) -> None:
        try:
            affordance.set_attribute(self.marker_attribute, MARKER_VALUE)
        except Exception as e:
            self.logger.debug("mark_failed", error=str(e))
