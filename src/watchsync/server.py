import logging
from typing import TYPE_CHECKING

from flask import Flask
from flask_socketio import SocketIO
from prometheus_client import make_wsgi_app
from werkzeug.middleware.dispatcher import DispatcherMiddleware

from watchsync.clock import Clock, MonotonicClock
from watchsync.session import SessionAuthority

if TYPE_CHECKING:
    from watchsync.config import WatchSyncConfig

log = logging.getLogger(__name__)

socketio = SocketIO(cors_allowed_origins="*")


def session_init_app(app: Flask, clock: Clock) -> SessionAuthority:
    """Create the process-wide session authority and attach it to the app."""
    config = app.extensions["config"]
    authority = SessionAuthority(clock=clock, accept_threshold=config.accept_threshold)
    app.extensions["session_authority"] = authority
    return authority


def drift_init_app(app: Flask, start: bool) -> None:
    """Attach the drift ticker and optionally start its thread.

    Must be called after session_init_app.
    """
    from watchsync.app.drift import DriftTicker
    from watchsync.app.events import emit_broadcasts

    config = app.extensions["config"]
    ticker = DriftTicker(
        authority=app.extensions["session_authority"],
        emit=emit_broadcasts,
        interval=config.drift_interval,
    )
    app.extensions["drift_ticker"] = ticker
    if start:
        ticker.start()


def create_app(
    config: "WatchSyncConfig | None" = None,
    clock: Clock | None = None,
    drift_ticker: bool = True,
) -> Flask:
    """Create and configure Flask application.

    Parameters
    ----------
    config : WatchSyncConfig | None
        Configuration object. If None, loads from environment via get_config().
    clock : Clock | None
        Time source for the session authority. Defaults to a MonotonicClock.
    drift_ticker : bool
        Start the periodic drift-correction thread. Tests disable it and call
        ``app.extensions["drift_ticker"].tick()`` directly.

    Returns
    -------
    Flask
        Configured Flask application instance.
    """
    from watchsync.config import get_config as _get_config

    if config is None:
        config = _get_config()

    log_level = getattr(logging, config.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    log.info(f"Logging configured at level: {config.log_level}")

    app = Flask(__name__)
    app.extensions["config"] = config
    app.config["SECRET_KEY"] = config.secret_key

    from watchsync.app import events, utility  # noqa: F401

    app.register_blueprint(utility)

    session_init_app(app, clock or MonotonicClock())

    socketio.init_app(app, cors_allowed_origins=config.socketio_cors)

    drift_init_app(app, start=drift_ticker)

    app.wsgi_app = DispatcherMiddleware(app.wsgi_app, {"/metrics": make_wsgi_app()})
    log.info("Prometheus metrics endpoint enabled at /metrics")

    return app
