"""HTTP client for the hosted transcription API (OpenAI-compatible).

One ``TranscriptionClient`` wraps one pooled ``httpx.AsyncClient`` and is
shared by all request handlers. Each call is a single POST; nothing is
retried.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import httpx

from lytt_bridge._types import TranscriptionResult
from lytt_bridge.exceptions import (
    UpstreamMalformedResponseError,
    UpstreamRejectedError,
    UpstreamUnreachableError,
)
from lytt_bridge.logging import get_logger

if TYPE_CHECKING:
    from lytt_bridge.config.settings import UpstreamSettings

logger = get_logger("upstream.client")

RESPONSE_FORMAT = "json"


class TranscriptionClient:
    """Forwards audio to the transcription API and maps its answers.

    Args:
        http_client: Pooled client, owned by this object (see ``aclose``).
        api_key: Bearer token for the API.
        url: Transcription endpoint.
        model: Model identifier sent in the ``model`` form field.
        timeout_s: Deadline for the whole call, from connect to the last byte read.
        error_excerpt_chars: Upstream body length kept in error messages.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str,
        url: str,
        model: str,
        timeout_s: float = 30.0,
        error_excerpt_chars: int = 500,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._url = url
        self._model = model
        self._timeout_s = timeout_s
        self._timeout = httpx.Timeout(timeout_s)
        self._error_excerpt_chars = error_excerpt_chars

    @property
    def url(self) -> str:
        return self._url

    @property
    def model(self) -> str:
        return self._model

    def _build_form(self, language: str | None) -> dict[str, str]:
        data = {"model": self._model, "response_format": RESPONSE_FORMAT}
        if language is not None:
            data["language"] = language
        return data

    async def transcribe(
        self,
        audio_bytes: bytes,
        filename: str,
        mime_type: str,
        language: str | None = None,
    ) -> TranscriptionResult:
        """Send one audio file for transcription.

        Args:
            audio_bytes: Raw audio content.
            filename: Name reported for the ``file`` part.
            mime_type: Content type of the ``file`` part.
            language: Normalized ISO 639-1 code, or None to auto-detect.

        Raises:
            UpstreamUnreachableError: DNS, connection or read failure, or the
                call outlived ``timeout_s``.
            UpstreamRejectedError: Non-2xx status from the API.
            UpstreamMalformedResponseError: 2xx answer whose body is not JSON.
        """
        try:
            async with asyncio.timeout(self._timeout_s):
                response = await self._http.post(
                    self._url,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    data=self._build_form(language),
                    files={"file": (filename, audio_bytes, mime_type)},
                    timeout=self._timeout,
                )
        except TimeoutError as exc:
            logger.error("upstream_deadline_exceeded", url=self._url, timeout_s=self._timeout_s)
            raise UpstreamUnreachableError(
                self._url, f"no complete response within {self._timeout_s:g}s"
            ) from exc
        except httpx.TransportError as exc:
            logger.error(
                "upstream_unreachable",
                url=self._url,
                error=str(exc) or type(exc).__name__,
                error_type=type(exc).__name__,
            )
            raise UpstreamUnreachableError(self._url, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            logger.error(
                "upstream_rejected",
                status_code=response.status_code,
                body=response.text,
            )
            raise UpstreamRejectedError(
                response.status_code,
                response.text,
                excerpt_chars=self._error_excerpt_chars,
            )

        try:
            payload: Any = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error(
                "upstream_malformed_response",
                status_code=response.status_code,
                body=response.text[: self._error_excerpt_chars],
            )
            raise UpstreamMalformedResponseError(str(exc)) from exc

        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            logger.warning("upstream_response_without_text", status_code=response.status_code)
            text = ""

        return TranscriptionResult(text=text)

    async def aclose(self) -> None:
        """Close the pooled connections."""
        await self._http.aclose()


def create_transcription_client(
    settings: UpstreamSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TranscriptionClient:
    """Build the shared client from settings.

    Raises:
        ConfigError: If the API key is not configured.
    """
    api_key = settings.require_api_key()
    http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_s),
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_connections,
        ),
        transport=transport,
    )
    logger.info(
        "transcription_client_created",
        url=settings.url,
        model=settings.model,
        timeout_s=settings.timeout_s,
        max_connections=settings.max_connections,
    )
    return TranscriptionClient(
        http_client,
        api_key=api_key,
        url=settings.url,
        model=settings.model,
        timeout_s=settings.timeout_s,
        error_excerpt_chars=settings.error_excerpt_chars,
    )
