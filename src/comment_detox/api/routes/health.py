"""
Health check endpoint for monitoring.
"""

import time
from fastapi import APIRouter, Depends

from ...audit.session import AuditSession
from ...models.api_models import HealthResponse
from ...version import API_VERSION
from ..dependencies import get_session

router = APIRouter()

# Uptime is measured from module import
_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(session: AuditSession = Depends(get_session)) -> HealthResponse:
    """
    Liveness plus whether the audit worker is busy.

    Returns:
        Health status, uptime and audit activity
    """
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        uptime_seconds=time.time() - _start_time,
        audit_running=session.is_running,
    )
