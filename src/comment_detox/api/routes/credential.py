"""
Perspective API key management.

The key is write-only over the API: GET reports whether one is configured.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ...credentials import CredentialStore
from ...models.api_models import CredentialRequest, CredentialStatus
from ..dependencies import get_credential_store

router = APIRouter(prefix="/api/v1/credential", tags=["credential"])


@router.get("", response_model=CredentialStatus)
async def get_credential_status(
    store: CredentialStore = Depends(get_credential_store),
) -> CredentialStatus:
    return CredentialStatus(configured=bool(store.get()))


@router.put("", response_model=CredentialStatus)
async def save_credential(
    request: CredentialRequest,
    store: CredentialStore = Depends(get_credential_store),
) -> CredentialStatus:
    api_key = request.api_key.strip()
    if not api_key:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="API key is blank")
    store.set(api_key)
    return CredentialStatus(configured=True)
