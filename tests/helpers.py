"""Shared test helpers for multipart bodies and the fake transcription API.

Usage:
    from tests.helpers import (
        UpstreamRecorder,
        encode_multipart,
        iter_chunks,
        parse_outbound_form,
    )
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx

from lytt_bridge._types import FormField
from lytt_bridge.server.upload import iter_form_fields

BOUNDARY = "lyttTestBoundary7MA4YWxk"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"

TEST_API_KEY = "sk-test-0123456789"
TEST_UPSTREAM_URL = "https://upstream.test/v1/audio/transcriptions"


def encode_multipart(
    parts: list[tuple[str, bytes | str, str | None, str | None]],
    boundary: str = BOUNDARY,
) -> bytes:
    """Encode ``(name, value, filename, content_type)`` tuples as multipart/form-data."""
    out = bytearray()
    for name, value, filename, content_type in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        out += f"--{boundary}\r\nContent-Disposition: {disposition}\r\n".encode()
        if content_type is not None:
            out += f"Content-Type: {content_type}\r\n".encode()
        out += b"\r\n"
        out += value.encode() if isinstance(value, str) else value
        out += b"\r\n"
    out += f"--{boundary}--\r\n".encode()
    return bytes(out)


async def iter_chunks(body: bytes, size: int = 7) -> AsyncIterator[bytes]:
    """Yield ``body`` in small chunks, like a slow client would send it."""
    for i in range(0, len(body), size):
        yield body[i : i + size]


async def parse_outbound_form(request: httpx.Request) -> dict[str, FormField]:
    """Decode the multipart body of a request the client sent upstream."""
    body = await request.aread()

    async def _once() -> AsyncIterator[bytes]:
        yield body

    fields: dict[str, FormField] = {}
    async for field in iter_form_fields(_once(), request.headers["content-type"]):
        fields[field.name] = field
    return fields


class UpstreamRecorder:
    """Programmable stand-in for the transcription API.

    Records every request it receives. Configure either a JSON body, a raw
    body, or an exception raised instead of answering.
    """

    def __init__(
        self,
        *,
        status_code: int = 200,
        json_body: Any = None,
        raw_body: bytes | None = None,
        exc: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.json_body = json_body
        self.raw_body = raw_body
        self.exc = exc
        self.requests: list[httpx.Request] = []

    def respond(
        self,
        *,
        status_code: int = 200,
        json_body: Any = None,
        raw_body: bytes | None = None,
        exc: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.json_body = json_body
        self.raw_body = raw_body
        self.exc = exc

    async def handler(self, request: httpx.Request) -> httpx.Response:
        await request.aread()
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if self.raw_body is not None:
            return httpx.Response(self.status_code, content=self.raw_body)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "upstream received no request"
        return self.requests[-1]
