import logging

import typer

from watchsync.client import WatchSyncClient
from watchsync.config import get_config
from watchsync.exceptions import InvalidMediaReference
from watchsync.player import SimulatedPlayer
from watchsync.server import create_app, socketio

log = logging.getLogger(__name__)

app = typer.Typer(help="Watch videos in sync with everyone connected.")


@app.command()
def serve(
    host: str | None = typer.Option(
        None,
        envvar="WATCHSYNC_SERVER_HOST",
        help="Interface to bind to. Defaults to the configured server host.",
    ),
    port: int | None = typer.Option(
        None,
        envvar="WATCHSYNC_SERVER_PORT",
        help="Port to bind to. Defaults to the configured server port.",
    ),
    debug: bool = False,
):
    """Start the watchsync server."""
    config = get_config()
    if host is not None:
        config.server_host = host
    if port is not None:
        config.server_port = port

    flask_app = create_app(config)
    typer.echo(f"Serving watch session on {config.server_host}:{config.server_port}")
    socketio.run(
        flask_app,
        debug=debug,
        host=config.server_host,
        port=config.server_port,
        allow_unsafe_werkzeug=True,
    )


@app.command()
def join(
    url: str | None = typer.Argument(None, help="Server URL. Defaults to the configured URL."),
    media: str | None = typer.Option(
        None, help="YouTube URL to switch the session to after joining."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every event."),
):
    """Follow the session with a headless player and log what happens."""
    config = get_config()
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, config.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    server_url = url or config.server_url

    player = SimulatedPlayer()
    client = WatchSyncClient(server_url, player)
    client.connect()
    typer.echo(f"Joined {server_url}")

    if media is not None:
        try:
            client.set_media(media)
        except InvalidMediaReference as e:
            typer.echo(f"✗ {e}", err=True)
            client.disconnect()
            raise typer.Exit(code=1)

    try:
        client.wait()
    except KeyboardInterrupt:
        pass
    finally:
        client.disconnect()
