"""Incremental multipart/form-data decoding of audio uploads.

The request body is fed chunk by chunk into ``python_multipart``'s
``MultipartParser``; completed parts are yielded as ``FormField`` values
as soon as they are parsed. Parts are held in memory only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from lytt_bridge._types import DEFAULT_FILENAME, DEFAULT_MIME_TYPE, FormField, UploadRequest
from lytt_bridge.exceptions import (
    EmptyAudioError,
    MalformedUploadError,
    MissingAudioError,
    RequestTooLargeError,
)
from lytt_bridge.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from fastapi import Request

logger = get_logger("server.upload")

AUDIO_FIELD = "file"
LANGUAGE_FIELD = "language"


class _PartCollector:
    """Callback target for ``MultipartParser``.

    Accumulates headers and data of the part being parsed and appends each
    finished part to ``completed``.
    """

    def __init__(self) -> None:
        self.completed: list[FormField] = []
        self.ended = False
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._data = bytearray()
        self._name: str | None = None
        self._filename: str | None = None
        self._content_type: str | None = None

    def callbacks(self) -> dict[str, object]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._data = bytearray()
        self._name = None
        self._filename = None
        self._content_type = None

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        disposition = self._headers.get(b"content-disposition")
        if disposition is None:
            raise MultipartParseError("Part is missing a Content-Disposition header")
        _, options = parse_options_header(disposition)
        name = options.get(b"name")
        if name is None:
            raise MultipartParseError("Content-Disposition header has no field name")
        self._name = name.decode("latin-1")
        filename = options.get(b"filename")
        self._filename = filename.decode("utf-8", errors="replace") if filename else None
        content_type = self._headers.get(b"content-type")
        self._content_type = content_type.decode("latin-1").strip() if content_type else None

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._data += data[start:end]

    def on_part_end(self) -> None:
        if self._name is None:
            return
        self.completed.append(
            FormField(
                name=self._name,
                filename=self._filename,
                content_type=self._content_type,
                data=bytes(self._data),
            )
        )
        self._data = bytearray()

    def on_end(self) -> None:
        self.ended = True


def _boundary_from(content_type: str | None) -> bytes:
    if not content_type:
        raise MalformedUploadError("missing Content-Type header")
    media_type, params = parse_options_header(content_type)
    if media_type != b"multipart/form-data":
        raise MalformedUploadError(
            f"expected multipart/form-data, got '{media_type.decode('latin-1')}'"
        )
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedUploadError("Content-Type header has no multipart boundary")
    return boundary


async def iter_form_fields(
    body: AsyncIterable[bytes],
    content_type: str | None,
    *,
    max_body_bytes: int | None = None,
) -> AsyncIterator[FormField]:
    """Yield the fields of a multipart/form-data body as they complete.

    The iterator is finite and single-use: it consumes ``body``.

    Args:
        body: Raw request body chunks (e.g. ``request.stream()``).
        content_type: Value of the request Content-Type header.
        max_body_bytes: Reject the body once more than this many bytes arrive.

    Raises:
        MalformedUploadError: Invalid content type, corrupt or truncated body.
        RequestTooLargeError: Body grew beyond ``max_body_bytes``.
    """
    boundary = _boundary_from(content_type)
    collector = _PartCollector()
    parser = MultipartParser(boundary, collector.callbacks())  # type: ignore[arg-type]
    received = 0

    async for chunk in body:
        if not chunk:
            continue
        received += len(chunk)
        if max_body_bytes is not None and received > max_body_bytes:
            raise RequestTooLargeError(received, max_body_bytes)
        try:
            parser.write(chunk)
        except MultipartParseError as exc:
            raise MalformedUploadError(str(exc)) from exc
        while collector.completed:
            yield collector.completed.pop(0)

    try:
        parser.finalize()
    except MultipartParseError as exc:
        raise MalformedUploadError(str(exc)) from exc
    while collector.completed:
        yield collector.completed.pop(0)

    if not collector.ended:
        raise MalformedUploadError("unexpected end of multipart stream")


async def decode_upload(fields: AsyncIterable[FormField]) -> UploadRequest:
    """Build an ``UploadRequest`` from the ``file`` and ``language`` fields.

    Unknown fields are ignored. When a field repeats, the last one wins.

    Raises:
        MissingAudioError: No ``file`` field by end of stream.
        EmptyAudioError: ``file`` field with no content.
        MalformedUploadError: ``language`` is not valid UTF-8, or the stream is corrupt.
    """
    audio: FormField | None = None
    language_hint: str | None = None

    async for field in fields:
        if field.name == AUDIO_FIELD:
            audio = field
        elif field.name == LANGUAGE_FIELD:
            try:
                language_hint = field.text()
            except UnicodeDecodeError as exc:
                raise MalformedUploadError(f"field 'language' is not valid UTF-8: {exc}") from exc
        else:
            logger.debug("upload_field_ignored", field=field.name)

    if audio is None:
        raise MissingAudioError

    filename = audio.filename or DEFAULT_FILENAME
    if not audio.data:
        raise EmptyAudioError(filename)

    return UploadRequest(
        audio_bytes=audio.data,
        filename=filename,
        mime_type=audio.content_type or DEFAULT_MIME_TYPE,
        language_hint=language_hint,
    )


async def read_upload(request: Request, max_body_bytes: int) -> UploadRequest:
    """Decode the audio upload carried by ``request``.

    A declared Content-Length above ``max_body_bytes`` is rejected before
    any of the body is read.
    """
    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit():
        declared = int(content_length)
        if declared > max_body_bytes:
            raise RequestTooLargeError(declared, max_body_bytes)

    fields = iter_form_fields(
        request.stream(),
        request.headers.get("content-type"),
        max_body_bytes=max_body_bytes,
    )
    return await decode_upload(fields)
