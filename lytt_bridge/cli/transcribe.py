"""`lytt-bridge transcribe` command — thin HTTP client for a running relay."""

from __future__ import annotations

import mimetypes
import sys
from pathlib import Path

import click

from lytt_bridge._types import DEFAULT_MIME_TYPE
from lytt_bridge.cli.main import cli
from lytt_bridge.config.settings import get_settings

_s = get_settings()
DEFAULT_SERVER_URL = _s.cli.server_url
_HTTP_TIMEOUT_S = _s.cli.http_timeout_s


def _post_audio(server_url: str, file_path: Path, language: str | None) -> None:
    """Send audio to the relay via HTTP and print the transcript."""
    import httpx

    url = f"{server_url.rstrip('/')}/transcribe"

    if not file_path.exists():
        click.echo(f"Error: file not found: {file_path}", err=True)
        sys.exit(1)

    mime_type = mimetypes.guess_type(file_path.name)[0] or DEFAULT_MIME_TYPE
    data: dict[str, str] = {}
    if language:
        data["language"] = language

    try:
        with file_path.open("rb") as f:
            response = httpx.post(
                url,
                files={"file": (file_path.name, f, mime_type)},
                data=data,
                timeout=_HTTP_TIMEOUT_S,
            )
    except httpx.ConnectError:
        click.echo(
            f"Error: server not available at {server_url}. Run 'lytt-bridge serve' first.",
            err=True,
        )
        sys.exit(1)

    try:
        payload = response.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        payload = {}

    if response.status_code != 200:
        msg = payload.get("error") or response.text
        click.echo(f"Error ({response.status_code}): {msg}", err=True)
        sys.exit(1)

    text = payload.get("text")
    click.echo(text if isinstance(text, str) else "")


@cli.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.option(
    "--language",
    "-l",
    default=None,
    help="Language hint (e.g. 'norwegian', 'nb-NO', 'en'). Auto-detected when omitted.",
)
@click.option(
    "--server",
    default=DEFAULT_SERVER_URL,
    show_default=True,
    help="lytt-bridge server URL.",
)
def transcribe(file: Path, language: str | None, server: str) -> None:
    """Transcribes an audio FILE through a running relay.

    Requires the server to be running (lytt-bridge serve).
    """
    _post_audio(server, file, language)
