"""
Error taxonomy for the audit pipeline.

Only MissingCredential, AuditAlreadyRunning and UnknownItem ever reach the
presentation layer. RateLimited is consumed by the orchestrator's retry
wrapper, ClassificationUnavailable by the client's fail-open path and
ExtractionAnomaly by the extractor's skip path.
"""

from typing import Optional


class CommentDetoxError(Exception):
    """Base class for all pipeline errors."""


class MissingCredential(CommentDetoxError):
    """No Perspective API key is configured."""

    def __init__(self, message: str = "Perspective API key missing"):
        super().__init__(message)


class RateLimited(CommentDetoxError):
    """The scoring service rejected the request with HTTP 429."""

    def __init__(self, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        super().__init__("Perspective API rate limit exceeded")


class ClassificationUnavailable(CommentDetoxError):
    """Any scoring failure other than rate limiting."""


class ExtractionAnomaly(CommentDetoxError):
    """A card exposed a delete affordance but no usable text."""


class AuditAlreadyRunning(CommentDetoxError):
    """start() was called while an audit is in progress."""

    def __init__(self, message: str = "An audit is already running"):
        super().__init__(message)


class UnknownItem(CommentDetoxError):
    """No flagged item with the given id."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Unknown flagged item: {item_id}")
