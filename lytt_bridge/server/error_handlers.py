"""HTTP exception handlers for FastAPI.

Maps typed lytt-bridge exceptions to HTTP responses with the correct status
codes. Every response body has the shape ``{"error": "<message>"}``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse

from lytt_bridge.exceptions import (
    LyttError,
    RequestTooLargeError,
    UploadError,
    UpstreamError,
    UpstreamRejectedError,
)
from lytt_bridge.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request

logger = get_logger("server.errors")

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _get_request_id(request: Request) -> str | None:
    """Extract request_id from request state, if available."""
    return getattr(request.state, "request_id", None)


async def _handle_upload_error(request: Request, exc: UploadError) -> JSONResponse:
    logger.warning(
        "upload_rejected",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=_get_request_id(request),
    )
    return _error_response(400, str(exc))


async def _handle_request_too_large(request: Request, exc: RequestTooLargeError) -> JSONResponse:
    logger.warning(
        "request_too_large",
        size_bytes=exc.size_bytes,
        max_bytes=exc.max_bytes,
        request_id=_get_request_id(request),
    )
    return _error_response(413, str(exc))


async def _handle_upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    if isinstance(exc, UpstreamRejectedError):
        logger.error(
            "transcription_failed",
            error_type=type(exc).__name__,
            upstream_status=exc.status_code,
            upstream_body=exc.body,
            request_id=_get_request_id(request),
        )
    else:
        logger.error(
            "transcription_failed",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=_get_request_id(request),
        )
    return _error_response(500, str(exc))


async def _handle_lytt_error(request: Request, exc: LyttError) -> JSONResponse:
    logger.error(
        "unhandled_lytt_error",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=_get_request_id(request),
        exc_info=True,
    )
    return _error_response(500, INTERNAL_ERROR_MESSAGE)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unexpected_error",
        error=str(exc),
        error_type=type(exc).__name__,
        request_id=_get_request_id(request),
        exc_info=True,
    )
    return _error_response(500, INTERNAL_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""
    app.add_exception_handler(UploadError, _handle_upload_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestTooLargeError, _handle_request_too_large)  # type: ignore[arg-type]
    app.add_exception_handler(UpstreamError, _handle_upstream_error)  # type: ignore[arg-type]
    app.add_exception_handler(LyttError, _handle_lytt_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)
