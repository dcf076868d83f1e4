"""Typed exceptions for lytt-bridge.

Hierarchy:
    LyttError (base)
    +-- ConfigError
    +-- ServiceNotConfiguredError
    +-- UploadError
    |   +-- MissingAudioError
    |   +-- EmptyAudioError
    |   +-- MalformedUploadError
    +-- RequestTooLargeError
    +-- UpstreamError
        +-- UpstreamUnreachableError
        +-- UpstreamRejectedError
        +-- UpstreamMalformedResponseError

Upload errors map to HTTP 400, RequestTooLargeError to 413, everything
else to 500 (see ``lytt_bridge.server.error_handlers``).
"""

from __future__ import annotations


class LyttError(Exception):
    """Base for all lytt-bridge exceptions."""


# --- Configuration ---


class ConfigError(LyttError):
    """Runtime configuration error."""


class ServiceNotConfiguredError(LyttError):
    """A required component was not configured at startup.

    Raised by FastAPI dependencies when app.state is missing it.
    Maps to HTTP 500, like any other internal error.
    """

    def __init__(self, service_name: str) -> None:
        self.service_name = service_name
        super().__init__(f"{service_name} not configured. Pass it to create_app().")


# --- Upload ---


class UploadError(LyttError):
    """The incoming multipart upload cannot be used."""


class MissingAudioError(UploadError):
    """No ``file`` field was present in the multipart form."""

    def __init__(self) -> None:
        super().__init__("Missing `file` field in multipart form")


class EmptyAudioError(UploadError):
    """The ``file`` field was present but carried no bytes."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"Audio file '{filename}' is empty")


class MalformedUploadError(UploadError):
    """The multipart body could not be parsed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to read multipart form: {detail}")


class RequestTooLargeError(LyttError):
    """Request body exceeds the accepted size."""

    def __init__(self, size_bytes: int, max_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        size_mb = size_bytes / (1024 * 1024)
        max_mb = max_bytes / (1024 * 1024)
        super().__init__(f"Request body ({size_mb:.1f}MB) exceeds the {max_mb:.1f}MB limit")


# --- Upstream ---


class UpstreamError(LyttError):
    """The transcription API call failed."""


class UpstreamUnreachableError(UpstreamError):
    """Transport-level failure: DNS, connect, read or timeout."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Transcription API unreachable at {url}: {reason}")


class UpstreamRejectedError(UpstreamError):
    """The transcription API answered with a non-success status."""

    def __init__(self, status_code: int, body: str, *, excerpt_chars: int = 500) -> None:
        self.status_code = status_code
        self.body = body
        excerpt = body if len(body) <= excerpt_chars else body[:excerpt_chars] + "..."
        super().__init__(f"Transcription API returned HTTP {status_code}: {excerpt}")


class UpstreamMalformedResponseError(UpstreamError):
    """The transcription API answered 2xx with a body that is not JSON."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Transcription API response is not valid JSON: {reason}")
