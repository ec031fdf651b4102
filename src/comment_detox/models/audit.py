"""
Data models for the incremental comment audit.

Candidates and flagged items hold a live reference to a page node, so they
are plain dataclasses. Everything that crosses the presentation boundary
(scores, snapshots) is a Pydantic model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, FrozenSet, List

from pydantic import BaseModel, Field


class AuditMode(str, Enum):
    """How far an audit run goes."""
    SINGLE_PASS = "single_pass"  # Only what is currently rendered
    CONTINUOUS = "continuous"    # Keep scrolling until the history ends


class AuditPhase(str, Enum):
    """Orchestrator state machine phases."""
    IDLE = "idle"
    SCANNING = "scanning"
    CLASSIFYING = "classifying"
    PAGINATING = "paginating"
    STOPPING = "stopping"


class FlagLabel(str, Enum):
    """Signal labels attached to flagged comments."""
    HATE = "HATE"
    INSULT = "INSULT"
    TOXIC = "TOXIC"


class ClassificationScore(BaseModel):
    """
    Perspective summary scores for one comment.

    All three signals are probabilities in [0, 1].
    """
    toxicity: float = Field(default=0.0, ge=0.0, le=1.0, description="TOXICITY summary score")
    severe_toxicity: float = Field(default=0.0, ge=0.0, le=1.0, description="SEVERE_TOXICITY summary score")
    insult: float = Field(default=0.0, ge=0.0, le=1.0, description="INSULT summary score")

    @classmethod
    def zero(cls) -> "ClassificationScore":
        """Fail-open score used whenever classification is unavailable."""
        return cls(toxicity=0.0, severe_toxicity=0.0, insult=0.0)

    def max_signal(self) -> float:
        return max(self.toxicity, self.severe_toxicity, self.insult)


@dataclass(frozen=True)
class Candidate:
    """
    One extracted, not-yet-classified comment.

    ``deletion_handle`` is owned by the host page; the pipeline only ever
    calls ``click()`` on it.
    """
    identity: str
    text: str
    deletion_handle: Any = field(repr=False, compare=False)


@dataclass(frozen=True)
class FlaggedItem:
    """A candidate that tripped at least one flagging threshold."""
    candidate: Candidate
    score: ClassificationScore
    labels: FrozenSet[FlagLabel]

    @property
    def item_id(self) -> str:
        return self.candidate.identity

    def to_view(self) -> "FlaggedItemView":
        return FlaggedItemView(
            item_id=self.item_id,
            text=self.candidate.text,
            score=self.score,
            labels=sorted(label.value for label in self.labels),
        )


@dataclass
class AuditState:
    """
    Session-scoped mutable audit state.

    Owned by one orchestrator; reset at the start of every run.
    """
    running: bool = False
    cancel_requested: bool = False
    scanned_count: int = 0
    flagged_count: int = 0
    phase: AuditPhase = AuditPhase.IDLE
    status: str = ""
    batch_position: int = 0
    batch_size: int = 0


# ============================================================================
# SNAPSHOT MODELS (read by the presentation layer)
# ============================================================================

class FlaggedItemView(BaseModel):
    """Serializable view of a flagged item."""
    item_id: str = Field(description="Stable id for delete/ignore commands")
    text: str = Field(description="Extracted comment text")
    score: ClassificationScore
    labels: List[str] = Field(description="Triggered signal labels, sorted")


class AuditSnapshot(BaseModel):
    """Live view of an audit, emitted after every state transition."""
    phase: AuditPhase
    running: bool
    status: str = ""
    scanned_count: int = Field(ge=0)
    flagged_count: int = Field(ge=0)
    batch_position: int = Field(default=0, ge=0)
    batch_size: int = Field(default=0, ge=0)
    flagged_items: List[FlaggedItemView] = Field(default_factory=list)
