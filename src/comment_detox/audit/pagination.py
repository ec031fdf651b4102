"""
Pagination for the infinite-scroll activity page.

Growth of the scrollable height after a scroll-and-settle means the page
loaded more history; no growth on every attempt means the end was reached.
"""

import time
from typing import Any, Callable, Optional

import structlog

from ..config import settings
from ..extraction.host_page import HostPage


logger = structlog.get_logger(__name__)


class PaginationController:
    """
    Reveals more items by scrolling the host page.

    Args:
        page: Host page to scroll
        settle_seconds: Wait after each scroll for lazy content to render
        max_attempts: Scrolls without growth before reporting exhaustion
        wait: Sleep function; the orchestrator passes a cancellable one
        is_cancelled: Checked after every settle wait
    """

    def __init__(
        self,
        page: HostPage,
        settle_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
        wait: Callable[[float], Any] = time.sleep,
        is_cancelled: Callable[[], bool] = lambda: False,
    ):
        self.page = page
        self.settle_seconds = (
            settle_seconds if settle_seconds is not None else settings.pagination_settle_seconds
        )
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.pagination_max_attempts)
        self._wait = wait
        self._is_cancelled = is_cancelled
        self._in_progress = False

    def try_advance(self) -> bool:
        """
        Scroll to the end of the page and report whether it grew.

        Returns:
            True when more content appeared, False on exhaustion

        Raises:
            RuntimeError: When called while a previous call is still running
        """
        if self._in_progress:
            raise RuntimeError("try_advance() is not re-entrant")

        self._in_progress = True
        try:
            before = self.page.extent()
            for attempt in range(1, self.max_attempts + 1):
                self.page.scroll_to_extent()
                self._wait(self.settle_seconds)
                if self._is_cancelled():
                    return False
                after = self.page.extent()

                if after > before:
                    logger.info(
                        "pagination_grew",
                        attempt=attempt,
                        extent_before=before,
                        extent_after=after,
                    )
                    return True

                logger.debug("pagination_no_growth", attempt=attempt, extent=after)

            logger.info("pagination_exhausted", attempts=self.max_attempts, extent=before)
            return False
        finally:
            self._in_progress = False
