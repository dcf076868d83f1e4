"""Tests for the multipart upload decoder in lytt_bridge.server.upload."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from lytt_bridge._types import FormField, UploadRequest
from lytt_bridge.exceptions import (
    EmptyAudioError,
    MalformedUploadError,
    MissingAudioError,
    RequestTooLargeError,
)
from lytt_bridge.server.upload import decode_upload, iter_form_fields
from tests.helpers import CONTENT_TYPE, encode_multipart, iter_chunks


async def _decode(body: bytes, content_type: str | None = CONTENT_TYPE) -> UploadRequest:
    return await decode_upload(iter_form_fields(iter_chunks(body), content_type))


async def _collect(fields: AsyncIterator[FormField]) -> list[FormField]:
    return [field async for field in fields]


class TestIterFormFields:
    async def test_yields_fields_in_order(self) -> None:
        body = encode_multipart(
            [
                ("language", "nb", None, None),
                ("file", b"\x00\x01audio", "clip.webm", "audio/webm"),
            ]
        )

        fields = await _collect(iter_form_fields(iter_chunks(body), CONTENT_TYPE))

        assert [f.name for f in fields] == ["language", "file"]
        assert fields[0].data == b"nb"
        assert fields[0].filename is None
        assert fields[1].filename == "clip.webm"
        assert fields[1].content_type == "audio/webm"
        assert fields[1].data == b"\x00\x01audio"

    async def test_binary_payload_containing_crlf_survives(self) -> None:
        payload = b"\r\n--not-the-boundary\r\n\x00\xff" * 50
        body = encode_multipart([("file", payload, "a.webm", "audio/webm")])

        fields = await _collect(iter_form_fields(iter_chunks(body, size=3), CONTENT_TYPE))

        assert fields[0].data == payload

    async def test_non_multipart_content_type_is_malformed(self) -> None:
        with pytest.raises(MalformedUploadError, match="multipart/form-data"):
            await _collect(iter_form_fields(iter_chunks(b"{}"), "application/json"))

    async def test_missing_content_type_is_malformed(self) -> None:
        with pytest.raises(MalformedUploadError, match="Content-Type"):
            await _collect(iter_form_fields(iter_chunks(b""), None))

    async def test_missing_boundary_is_malformed(self) -> None:
        with pytest.raises(MalformedUploadError, match="boundary"):
            await _collect(iter_form_fields(iter_chunks(b""), "multipart/form-data"))

    async def test_garbage_body_is_malformed(self) -> None:
        with pytest.raises(MalformedUploadError):
            await _collect(iter_form_fields(iter_chunks(b"this is not multipart"), CONTENT_TYPE))

    async def test_truncated_body_is_malformed(self) -> None:
        body = encode_multipart([("file", b"audio-bytes", "a.webm", "audio/webm")])

        with pytest.raises(MalformedUploadError, match="unexpected end"):
            await _collect(iter_form_fields(iter_chunks(body[:-20]), CONTENT_TYPE))

    async def test_empty_body_is_malformed(self) -> None:
        with pytest.raises(MalformedUploadError):
            await _collect(iter_form_fields(iter_chunks(b""), CONTENT_TYPE))

    async def test_body_over_limit_is_rejected_while_streaming(self) -> None:
        body = encode_multipart([("file", b"x" * 1000, "a.webm", "audio/webm")])

        with pytest.raises(RequestTooLargeError) as exc_info:
            await _collect(iter_form_fields(iter_chunks(body), CONTENT_TYPE, max_body_bytes=100))

        assert exc_info.value.max_bytes == 100
        assert exc_info.value.size_bytes > 100


class TestDecodeUpload:
    async def test_file_and_language(self, sample_audio_bytes: bytes) -> None:
        body = encode_multipart(
            [
                ("file", sample_audio_bytes, "take-1.mp4", "audio/mp4"),
                ("language", "Norwegian", None, None),
            ]
        )

        upload = await _decode(body)

        assert upload == UploadRequest(
            audio_bytes=sample_audio_bytes,
            filename="take-1.mp4",
            mime_type="audio/mp4",
            language_hint="Norwegian",
        )

    async def test_defaults_when_filename_and_content_type_missing(
        self, sample_audio_bytes: bytes
    ) -> None:
        body = encode_multipart([("file", sample_audio_bytes, None, None)])

        upload = await _decode(body)

        assert upload.filename == "recording.webm"
        assert upload.mime_type == "audio/webm"
        assert upload.language_hint is None

    async def test_unknown_fields_are_ignored(self, sample_audio_bytes: bytes) -> None:
        body = encode_multipart(
            [
                ("model", "whisper-1", None, None),
                ("file", sample_audio_bytes, "a.webm", "audio/webm"),
                ("extra", b"\x00\x01", "x.bin", "application/octet-stream"),
            ]
        )

        upload = await _decode(body)

        assert upload.audio_bytes == sample_audio_bytes
        assert upload.language_hint is None

    async def test_missing_file_field(self) -> None:
        body = encode_multipart([("language", "en", None, None)])

        with pytest.raises(MissingAudioError) as exc_info:
            await _decode(body)

        assert str(exc_info.value) == "Missing `file` field in multipart form"

    async def test_empty_file_field(self) -> None:
        body = encode_multipart([("file", b"", "silence.webm", "audio/webm")])

        with pytest.raises(EmptyAudioError, match="silence.webm"):
            await _decode(body)

    async def test_language_not_utf8_is_malformed(self, sample_audio_bytes: bytes) -> None:
        body = encode_multipart(
            [
                ("file", sample_audio_bytes, "a.webm", "audio/webm"),
                ("language", b"\xff\xfe\xfd", None, None),
            ]
        )

        with pytest.raises(MalformedUploadError, match="language"):
            await _decode(body)

    async def test_corrupt_stream_wins_over_missing_file(self) -> None:
        with pytest.raises(MalformedUploadError):
            await _decode(b"--wrong\r\n\r\n")
