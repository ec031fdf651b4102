"""
Credential store for the Perspective API key.

The key is stored locally and nowhere else. The audit core reads it once at
the start of every run and never caches it beyond that run.
"""

import json
import os
from pathlib import Path
from typing import Optional, Protocol

import structlog

from .config import settings


logger = structlog.get_logger(__name__)

CREDENTIAL_KEY = "perspective_api_key"


class CredentialStore(Protocol):
    def get(self) -> Optional[str]:
        ...

    def set(self, credential: str) -> None:
        ...


class InMemoryCredentialStore:
    """Process-local store, for tests and embedding."""

    def __init__(self, credential: Optional[str] = None):
        self._credential = credential

    def get(self) -> Optional[str]:
        return self._credential or None

    def set(self, credential: str) -> None:
        if not credential:
            raise ValueError("Credential must not be empty")
        self._credential = credential


class FileCredentialStore:
    """
    JSON file store, readable by the owner only.

    Args:
        path: File location (default: settings.credential_file)
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.credential_file).expanduser()

    def get(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("credential_file_unreadable", path=str(self.path), error=str(e))
            return None
        if not isinstance(data, dict):
            return None
        return data.get(CREDENTIAL_KEY) or None

    def set(self, credential: str) -> None:
        if not credential:
            raise ValueError("Credential must not be empty")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({CREDENTIAL_KEY: credential}, f)
        os.replace(tmp_path, self.path)

        logger.info("credential_saved", path=str(self.path))
