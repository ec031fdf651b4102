"""
API request and response models for FastAPI endpoints.

This module defines the Pydantic models used for API request/response validation.
"""

from typing import Optional
from pydantic import BaseModel, Field

from .audit import AuditMode


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service status", examples=["healthy"])
    version: str = Field(description="API version", examples=["1.0.0"])
    uptime_seconds: float = Field(description="Service uptime")
    audit_running: bool = Field(description="Whether an audit is in progress")


class VersionResponse(BaseModel):
    """Version information response."""

    api_version: str = Field(description="API version")
    components: dict = Field(description="Heuristic and policy versions")


class StartAuditRequest(BaseModel):
    """Request model for starting an audit."""

    mode: AuditMode = Field(
        default=AuditMode.SINGLE_PASS,
        description="single_pass audits what is rendered; continuous keeps scrolling",
    )


class CredentialRequest(BaseModel):
    """Request model for saving the Perspective API key."""

    api_key: str = Field(min_length=1, description="Perspective API key")


class CredentialStatus(BaseModel):
    """Whether a key is configured. The key itself is never returned."""

    configured: bool


class ErrorResponse(BaseModel):
    """Error payload."""

    success: bool = False
    error: str
    detail: Optional[str] = None
