"""
Audit control API routes.

Provides the presentation-layer commands:
- GET  /api/v1/audit - Live snapshot
- POST /api/v1/audit/start - Start single-pass or continuous audit
- POST /api/v1/audit/stop - Cooperative cancellation
- POST /api/v1/audit/items/{item_id}/delete - Delete a flagged comment
- POST /api/v1/audit/items/{item_id}/ignore - Dismiss a flagged comment
"""

from fastapi import APIRouter, Depends, HTTPException, status
import structlog

from ...audit.session import AuditSession
from ...errors import AuditAlreadyRunning, MissingCredential, UnknownItem
from ...models.api_models import StartAuditRequest
from ...models.audit import AuditSnapshot
from ..dependencies import get_session


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/audit", tags=["audit"])


@router.get("", response_model=AuditSnapshot)
async def get_snapshot(session: AuditSession = Depends(get_session)) -> AuditSnapshot:
    """Current phase, counters and flagged items."""
    return session.snapshot()


@router.post("/start", response_model=AuditSnapshot, status_code=status.HTTP_202_ACCEPTED)
async def start_audit(
    request: StartAuditRequest,
    session: AuditSession = Depends(get_session),
) -> AuditSnapshot:
    """
    Start an audit in the background.

    Raises:
        HTTPException: 400 without an API key, 409 while an audit runs
    """
    logger.info("audit_start_request_received", mode=request.mode.value)

    try:
        return session.start(request.mode)
    except MissingCredential as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{e}. Save a key with PUT /api/v1/credential",
        )
    except AuditAlreadyRunning as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/stop", response_model=AuditSnapshot)
async def stop_audit(session: AuditSession = Depends(get_session)) -> AuditSnapshot:
    """Request cooperative cancellation; flagged items are kept."""
    return session.stop()


@router.post("/items/{item_id}/delete", response_model=AuditSnapshot)
async def delete_item(item_id: str, session: AuditSession = Depends(get_session)) -> AuditSnapshot:
    """Delete a flagged comment from the host page."""
    try:
        return session.delete(item_id)
    except UnknownItem as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.post("/items/{item_id}/ignore", response_model=AuditSnapshot)
async def ignore_item(item_id: str, session: AuditSession = Depends(get_session)) -> AuditSnapshot:
    """Dismiss a flagged comment without deleting it."""
    try:
        return session.ignore(item_id)
    except UnknownItem as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
