"""
Multi-signal flagging policy.

Maps a ClassificationScore to a flag decision plus the labels of every
signal that crossed its threshold:
- severe toxicity > 0.4 → HATE
- insult > 0.6 → INSULT
- toxicity > 0.85 → TOXIC

The general toxicity bar is high because casual hyperbole scores moderately
toxic; the severe and insult bars are lower because those categories do more
harm. Thresholds are exclusive lower bounds and come from settings.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

import structlog

from ..config import settings
from ..models.audit import ClassificationScore, FlagLabel


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class FlaggingThresholds:
    """
    Per-signal thresholds; a signal triggers when strictly greater.
    """
    severe_toxicity: float = 0.4
    insult: float = 0.6
    toxicity: float = 0.85

    @classmethod
    def from_config(cls) -> "FlaggingThresholds":
        """Load thresholds from settings."""
        return cls(
            severe_toxicity=settings.threshold_severe_toxicity,
            insult=settings.threshold_insult,
            toxicity=settings.threshold_toxicity,
        )


@dataclass(frozen=True)
class FlagDecision:
    flagged: bool
    labels: FrozenSet[FlagLabel] = field(default_factory=frozenset)


class FlaggingPolicy:
    """Pure threshold policy over the three Perspective signals."""

    def __init__(self, thresholds: Optional[FlaggingThresholds] = None):
        self.thresholds = thresholds or FlaggingThresholds.from_config()

    def evaluate(self, score: ClassificationScore) -> FlagDecision:
        """
        Decide whether a score should be surfaced for review.

        Args:
            score: Perspective scores for one comment

        Returns:
            FlagDecision with every independently triggered label

        Examples:
            >>> policy = FlaggingPolicy(FlaggingThresholds())
            >>> decision = policy.evaluate(ClassificationScore(severe_toxicity=0.5, insult=0.7))
            >>> sorted(label.value for label in decision.labels)
            ['HATE', 'INSULT']
        """
        labels = set()

        if score.severe_toxicity > self.thresholds.severe_toxicity:
            labels.add(FlagLabel.HATE)
        if score.insult > self.thresholds.insult:
            labels.add(FlagLabel.INSULT)
        if score.toxicity > self.thresholds.toxicity:
            labels.add(FlagLabel.TOXIC)

        return FlagDecision(flagged=bool(labels), labels=frozenset(labels))


def evaluate(
    score: ClassificationScore,
    thresholds: Optional[FlaggingThresholds] = None,
) -> FlagDecision:
    """Convenience wrapper around FlaggingPolicy.evaluate()."""
    return FlaggingPolicy(thresholds).evaluate(score)
