"""Main `lytt-bridge` command group."""

from __future__ import annotations

import click

import lytt_bridge


@click.group()
@click.version_option(version=lytt_bridge.__version__, prog_name=lytt_bridge.SERVICE_NAME)
def cli() -> None:
    """lytt-bridge, a local transcription relay."""
