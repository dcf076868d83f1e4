"""Shared fixtures for all tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure repo root is on sys.path so tests can import the `lytt_bridge` package
# when running pytest from the repository root without an editable install.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import httpx  # noqa: E402
import pytest  # noqa: E402

from lytt_bridge.config.settings import get_settings  # noqa: E402
from lytt_bridge.upstream.client import TranscriptionClient  # noqa: E402
from tests.helpers import TEST_API_KEY, TEST_UPSTREAM_URL, UpstreamRecorder  # noqa: E402

_ENV_VARS = (
    "OPENAI_API_KEY",
    "LYTT_OPENAI_API_KEY",
    "LYTT_HOST",
    "LYTT_PORT",
    "LYTT_MAX_BODY_MB",
    "LYTT_CORS_ORIGINS",
    "LYTT_UPSTREAM_URL",
    "LYTT_UPSTREAM_MODEL",
    "LYTT_UPSTREAM_TIMEOUT_S",
    "LYTT_UPSTREAM_MAX_CONNECTIONS",
    "LYTT_UPSTREAM_ERROR_EXCERPT_CHARS",
    "LYTT_SERVER_URL",
    "LYTT_HTTP_TIMEOUT_S",
    "LYTT_LOG_FORMAT",
    "LYTT_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's environment and .env out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()


@pytest.fixture
def sample_audio_bytes() -> bytes:
    """A few bytes standing in for a WebM recording (content is never inspected)."""
    return b"\x1a\x45\xdf\xa3" + b"\x00fake-webm-payload" * 32


@pytest.fixture
def upstream() -> UpstreamRecorder:
    """Fake transcription API answering 200 {"text": "hello world"} by default."""
    return UpstreamRecorder(json_body={"text": "hello world"})


@pytest.fixture
def transcription_client(upstream: UpstreamRecorder) -> TranscriptionClient:
    """TranscriptionClient wired to the fake transcription API."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))
    return TranscriptionClient(
        http_client,
        api_key=TEST_API_KEY,
        url=TEST_UPSTREAM_URL,
        model="whisper-1",
        timeout_s=30.0,
    )
