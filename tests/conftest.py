import pytest

from watchsync.clock import ManualClock
from watchsync.config import WatchSyncConfig
from watchsync.player import SimulatedPlayer
from watchsync.reconciler import ClientReconciler
from watchsync.session import SessionAuthority


class EmitRecorder:
    """Collects (event, payload) pairs a reconciler sends to the authority."""

    def __init__(self):
        self.sent: list[tuple[str, dict]] = []

    def __call__(self, event: str, payload: dict) -> None:
        self.sent.append((event, payload))

    def events(self) -> list[str]:
        return [event for event, _ in self.sent]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=100.0)


@pytest.fixture
def config() -> WatchSyncConfig:
    return WatchSyncConfig(
        server_host="localhost",
        server_port=5000,
        log_level="WARNING",
        cors_origins=["*"],
        drift_interval=5.0,
        accept_threshold=2.0,
    )


@pytest.fixture
def authority(clock) -> SessionAuthority:
    return SessionAuthority(clock=clock)


@pytest.fixture
def player(clock) -> SimulatedPlayer:
    return SimulatedPlayer(clock=clock)


@pytest.fixture
def emitted() -> EmitRecorder:
    return EmitRecorder()


@pytest.fixture
def reconciler(player, emitted, clock) -> ClientReconciler:
    """Reconciler that accepts any media reference as a video id."""
    r = ClientReconciler(
        player=player, emit=emitted, clock=clock, resolve_media=lambda ref: ref
    )
    player.on("ready", r.on_player_ready)
    player.on("play", r.on_player_play)
    player.on("pause", r.on_player_pause)
    player.on("state_change", r.on_player_state_change)
    return r


@pytest.fixture
def app(config, clock):
    """Create a Flask app for unit testing."""
    from watchsync.server import create_app

    test_app = create_app(config, clock=clock, drift_ticker=False)
    test_app.config["TESTING"] = True

    yield test_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def sio_client_factory(app):
    """Connect Socket.IO test clients, disconnecting leftovers afterwards."""
    from watchsync.server import socketio

    clients = []

    def _connect():
        sio_client = socketio.test_client(app)
        clients.append(sio_client)
        return sio_client

    yield _connect

    for sio_client in clients:
        if sio_client.is_connected():
            sio_client.disconnect()
