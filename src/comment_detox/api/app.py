"""
FastAPI application exposing the audit controls.

Serves the presentation layer: start/stop an audit, poll the live snapshot,
delete or ignore flagged comments, and manage the Perspective API key.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from ..audit.session import AuditSession
from ..browser import open_activity_page
from ..config import settings
from ..credentials import CredentialStore, FileCredentialStore
from ..logging_config import setup_logging
from ..version import API_VERSION
from .routes import audit, credential, health, version
from .middleware import setup_error_handling_middleware, setup_logging_middleware

# Setup logging on module import
setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Closes the audit session (and the browser, if one was opened) on shutdown.
    """
    logger.info(
        "Starting Comment Detox API",
        version=API_VERSION,
        log_level=settings.log_level,
        batch_size=settings.batch_size,
    )
    yield
    app.state.session.close()
    logger.info("Shutting down Comment Detox API")


def create_app(
    session: Optional[AuditSession] = None,
    credential_store: Optional[CredentialStore] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        session: Audit session (default: Playwright-backed, opened lazily
            on the first start)
        credential_store: API key store (default: FileCredentialStore)

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Comment Detox",
        description="Incremental toxicity audit of your YouTube comment history",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    if credential_store is None:
        credential_store = session.credential_store if session else FileCredentialStore()
    if session is None:
        session = AuditSession(page_factory=open_activity_page, credential_store=credential_store)

    app.state.credential_store = credential_store
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware (order matters - first added = outermost)
    setup_error_handling_middleware(app)
    setup_logging_middleware(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(version.router, prefix="/api/v1", tags=["Version"])
    app.include_router(audit.router)
    app.include_router(credential.router)

    return app


# Create app instance
app = create_app()


def main() -> None:
    """
    Entry point for running the API server directly.
    """
    import uvicorn

    uvicorn.run(
        "comment_detox.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
