"""
Classification package: Perspective scoring and the flagging policy.

Main components:
- perspective_client: rate-limited, fail-open Perspective API client
- flagging: threshold policy producing HATE / INSULT / TOXIC labels
"""

from comment_detox.classification.flagging import (
    FlagDecision,
    FlaggingPolicy,
    FlaggingThresholds,
    evaluate,
)
from comment_detox.classification.perspective_client import (
    ClassificationClient,
    PerspectiveClient,
    create_classification_client,
)

__all__ = [
    "FlagDecision",
    "FlaggingPolicy",
    "FlaggingThresholds",
    "evaluate",
    "ClassificationClient",
    "PerspectiveClient",
    "create_classification_client",
]
