"""`lytt-bridge serve` command — starts the relay server."""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import TYPE_CHECKING

import click

from lytt_bridge.cli.main import cli
from lytt_bridge.config.settings import get_settings
from lytt_bridge.exceptions import ConfigError
from lytt_bridge.logging import configure_logging, get_logger

if TYPE_CHECKING:
    from lytt_bridge.config.settings import ServerSettings
    from lytt_bridge.upstream.client import TranscriptionClient

logger = get_logger("cli.serve")

_s = get_settings()
DEFAULT_HOST = _s.server.host
DEFAULT_PORT = _s.server.port
DEFAULT_CORS_ORIGINS = _s.server.cors_origins


@cli.command()
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="Bind host.")
@click.option("--port", default=DEFAULT_PORT, type=int, show_default=True, help="HTTP port.")
@click.option(
    "--cors-origins",
    default=DEFAULT_CORS_ORIGINS,
    show_default=True,
    help="CORS origins (comma-separated, '*' for any). Ex: http://localhost:5173",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default="console",
    envvar="LYTT_LOG_FORMAT",
    show_default=True,
    help="Log format.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    envvar="LYTT_LOG_LEVEL",
    show_default=True,
    help="Log level.",
)
def serve(
    host: str,
    port: int,
    cors_origins: str,
    log_format: str,
    log_level: str,
) -> None:
    """Starts the lytt-bridge relay server."""
    from lytt_bridge.upstream.client import create_transcription_client

    configure_logging(log_format=log_format, level=log_level, force=True)
    settings = get_settings()

    try:
        client = create_transcription_client(settings.upstream)
    except ConfigError as exc:
        logger.error("invalid_configuration", error=str(exc))
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    server_settings = settings.server.model_copy(update={"host": host, "port": port})
    origins = [o.strip() for o in cors_origins.split(",") if o.strip()]
    asyncio.run(_serve(client, server_settings, cors_origins=origins))


async def _serve(
    client: TranscriptionClient,
    server_settings: ServerSettings,
    *,
    cors_origins: list[str] | None = None,
) -> None:
    """Main async flow for serve."""
    import uvicorn

    from lytt_bridge.server.app import create_app

    app = create_app(
        transcription_client=client,
        server_settings=server_settings,
        cors_origins=cors_origins,
    )

    # Setup shutdown
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _handle_signal(s: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=s.name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _handle_signal, sig)

    logger.info(
        "server_starting",
        addr=f"http://{server_settings.addr}",
        max_body_mb=server_settings.max_body_mb,
        cors_origins=cors_origins,
    )

    config = uvicorn.Config(
        app,
        host=server_settings.host,
        port=server_settings.port,
        log_level="warning",
    )
    server = uvicorn.Server(config)

    server_task = asyncio.create_task(server.serve())

    # Wait for shutdown signal or server to stop
    _done, _ = await asyncio.wait(
        [server_task, asyncio.create_task(shutdown_event.wait())],
        return_when=asyncio.FIRST_COMPLETED,
    )

    # Graceful shutdown; the app lifespan closes the pooled client.
    if not server_task.done():
        server.should_exit = True
        await server_task

    logger.info("server_stopped")
