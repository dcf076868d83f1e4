"""Request-scoped value types shared by the decoder, the client and the routes."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_FILENAME = "recording.webm"
DEFAULT_MIME_TYPE = "audio/webm"


@dataclass(frozen=True, slots=True)
class FormField:
    """One decoded part of a multipart/form-data body."""

    name: str
    filename: str | None
    content_type: str | None
    data: bytes

    def text(self) -> str:
        """Decode the part as UTF-8 text.

        Raises:
            UnicodeDecodeError: If the part is not valid UTF-8.
        """
        return self.data.decode("utf-8")


@dataclass(frozen=True, slots=True)
class UploadRequest:
    """Audio upload decoded from an incoming request.

    ``language_hint`` is the raw, un-normalized value of the ``language``
    field (None when the field was absent).
    """

    audio_bytes: bytes
    filename: str = DEFAULT_FILENAME
    mime_type: str = DEFAULT_MIME_TYPE
    language_hint: str | None = None


@dataclass(frozen=True, slots=True)
class TranscriptionResult:
    """Text returned by the transcription API."""

    text: str
