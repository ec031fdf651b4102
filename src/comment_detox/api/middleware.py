"""
FastAPI middleware for request logging and error handling.
"""

import time
from typing import Callable
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
import structlog

from ..models.api_models import ErrorResponse

logger = structlog.get_logger(__name__)

# Polled by the UI every few hundred ms; logged at debug only
_QUIET_PATHS = {"/health", "/api/v1/audit"}


def setup_logging_middleware(app: FastAPI) -> None:
    """
    Setup request/response logging middleware.

    Logs method, path, status code and processing time, and sets the
    X-Process-Time header.
    """

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        log = logger.debug if request.url.path in _QUIET_PATHS else logger.info

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                process_time_ms=round((time.time() - start_time) * 1000, 2),
                error=str(e),
                exc_info=True,
            )
            raise

        process_time = time.time() - start_time
        log(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
        )
        response.headers["X-Process-Time"] = str(process_time)
        return response


def setup_error_handling_middleware(app: FastAPI) -> None:
    """
    Setup global error handling middleware.

    Catches unhandled exceptions and returns consistent error responses.
    """

    @app.middleware("http")
    async def handle_errors(request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                "unhandled_exception",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            payload = ErrorResponse(
                error="Internal server error",
                detail=str(e) if app.debug else "An unexpected error occurred",
            )
            return JSONResponse(status_code=500, content=payload.model_dump())
