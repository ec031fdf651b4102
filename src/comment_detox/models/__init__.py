# Data models for the comment audit pipeline

from .audit import (
    AuditMode,
    AuditPhase,
    AuditSnapshot,
    AuditState,
    Candidate,
    ClassificationScore,
    FlaggedItem,
    FlaggedItemView,
    FlagLabel,
)
from .api_models import (
    CredentialRequest,
    CredentialStatus,
    HealthResponse,
    StartAuditRequest,
    VersionResponse,
)

__all__ = [
    "AuditMode",
    "AuditPhase",
    "AuditSnapshot",
    "AuditState",
    "Candidate",
    "ClassificationScore",
    "FlaggedItem",
    "FlaggedItemView",
    "FlagLabel",
    "CredentialRequest",
    "CredentialStatus",
    "HealthResponse",
    "StartAuditRequest",
    "VersionResponse",
]
