"""FastAPI application factory for lytt-bridge."""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

import lytt_bridge
from lytt_bridge.config.settings import ServerSettings
from lytt_bridge.logging import get_logger
from lytt_bridge.server.error_handlers import register_error_handlers
from lytt_bridge.server.routes import health, transcribe

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from lytt_bridge.upstream.client import TranscriptionClient

logger = get_logger("server.app")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign a unique request_id to each HTTP request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = str(uuid.uuid4())
        return await call_next(request)


def create_app(
    transcription_client: TranscriptionClient | None = None,
    server_settings: ServerSettings | None = None,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        transcription_client: Shared upstream client (None only for health
            endpoint tests; /transcribe then answers 500).
        server_settings: Server settings (defaults read from the environment).
        cors_origins: List of allowed CORS origins (optional).

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        client = app.state.transcription_client
        if client is not None:
            await client.aclose()
            logger.info("transcription_client_closed")

    app = FastAPI(
        title="lytt-bridge",
        version=lytt_bridge.__version__,
        description="Local relay from audio uploads to a hosted transcription API",
        lifespan=lifespan,
    )

    app.state.transcription_client = transcription_client
    app.state.server_settings = server_settings or ServerSettings()

    if cors_origins:
        from fastapi.middleware.cors import CORSMiddleware

        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(transcribe.router)

    return app
