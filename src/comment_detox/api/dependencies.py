"""
FastAPI dependencies resolving the per-app audit session and credential store.
"""

from fastapi import Request

from ..audit.session import AuditSession
from ..credentials import CredentialStore


def get_session(request: Request) -> AuditSession:
    return request.app.state.session


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store
