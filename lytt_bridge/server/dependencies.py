"""FastAPI dependencies for injection of the shared client and settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request  # noqa: TC002

from lytt_bridge.exceptions import ServiceNotConfiguredError

if TYPE_CHECKING:
    from lytt_bridge.config.settings import ServerSettings
    from lytt_bridge.upstream.client import TranscriptionClient


def get_transcription_client(request: Request) -> TranscriptionClient:
    """Return the shared TranscriptionClient from app state.

    Raises:
        ServiceNotConfiguredError: If no client was passed to create_app().
    """
    client = request.app.state.transcription_client
    if client is None:
        raise ServiceNotConfiguredError("TranscriptionClient")
    return client  # type: ignore[no-any-return]


def get_server_settings(request: Request) -> ServerSettings:
    """Return the ServerSettings the app was created with."""
    return request.app.state.server_settings  # type: ignore[no-any-return]
