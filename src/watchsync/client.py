import logging
import threading
import typing as t

import socketio

from watchsync.clock import Clock, MonotonicClock
from watchsync.constants import ReconcilerConfig, SocketEvents
from watchsync.player import Player
from watchsync.reconciler import ClientReconciler

log = logging.getLogger(__name__)


class WatchSyncClient:
    """Connects a local player to a watchsync server.

    Socket.IO handlers, player notifications and the timer loop all run on
    different threads. Each of them takes ``_lock`` before touching the
    reconciler, which makes them behave like one task queue. The lock is
    reentrant because commanding the player fires its notifications
    synchronously on the same thread.

    Parameters
    ----------
    url : str
        Server URL, e.g. ``http://localhost:5000``.
    player : Player
        The local player to keep in sync.
    clock : Clock | None
        Time source for the reconciler.
    tick_interval : float
        Resolution of the timer loop in seconds.
    sio : socketio.Client | None
        Socket.IO client to use. A new one is created if None.
    """

    def __init__(
        self,
        url: str,
        player: Player,
        clock: Clock | None = None,
        tick_interval: float = ReconcilerConfig.TICK_INTERVAL,
        sio: socketio.Client | None = None,
    ):
        self.url = url
        self.player = player
        self.tick_interval = tick_interval
        self.sio = sio or socketio.Client()
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.reconciler = ClientReconciler(
            player=player, emit=self._emit, clock=clock or MonotonicClock()
        )
        self._register_handlers()
        self._register_player_callbacks()

    def _serialized(self, handler: t.Callable[..., t.Any]) -> t.Callable[..., t.Any]:
        def wrapper(*args):
            with self._lock:
                return handler(*args)

        return wrapper

    def _register_handlers(self):
        r = self.reconciler
        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        self.sio.on(SocketEvents.SESSION_STATE, self._serialized(r.on_session_state))
        self.sio.on(SocketEvents.MEDIA_CHANGED, self._serialized(r.on_media_changed))
        self.sio.on(SocketEvents.PLAY, self._serialized(r.on_play))
        self.sio.on(SocketEvents.PAUSE, self._serialized(r.on_pause))
        self.sio.on(SocketEvents.SEEK, self._serialized(r.on_seek))
        self.sio.on(SocketEvents.TIME_SYNC, self._serialized(r.on_time_sync))
        self.sio.on(
            SocketEvents.PARTICIPANTS_COUNT, self._serialized(r.on_participant_count)
        )

    def _register_player_callbacks(self):
        r = self.reconciler
        self.player.on("ready", self._serialized(r.on_player_ready))
        self.player.on("play", self._serialized(r.on_player_play))
        self.player.on("pause", self._serialized(r.on_player_pause))
        self.player.on("state_change", self._serialized(r.on_player_state_change))

    def _emit(self, event: str, payload: dict) -> None:
        if not self.connected:
            log.debug(f"Not connected, dropping {event}")
            return
        self.sio.emit(event, payload)

    def _on_connect(self):
        log.info(f"Connected to server {self.url}")

    def _on_disconnect(self, reason=None):
        log.info(f"Disconnected from server ({reason})")

    # --- lifecycle ----------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self.sio.connected

    @property
    def participant_count(self) -> int:
        return self.reconciler.participant_count

    def connect(self) -> None:
        """Connect to the server and start the timer loop."""
        if self.connected:
            log.debug("Already connected.")
            return
        self.sio.connect(self.url, wait=True)
        self.start()

    def disconnect(self) -> None:
        self.stop()
        if self.connected:
            self.sio.disconnect()

    def wait(self) -> None:
        """Block until the connection ends."""
        self.sio.wait()

    def start(self) -> None:
        """Start the timer loop. Calling it again while running is a no-op."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, daemon=True, name="watchsync-reconciler"
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    def tick(self) -> None:
        with self._lock:
            self.reconciler.tick()

    def _run(self) -> None:
        while not self._stop_event.wait(self.tick_interval):
            try:
                self.tick()
            except Exception as e:
                log.error(f"Reconciler tick failed: {e}", exc_info=True)

    # --- commands -----------------------------------------------------------

    def set_media(self, url: str) -> None:
        """Switch the whole session to ``url``.

        Raises
        ------
        InvalidMediaReference
            If ``url`` is not playable. Nothing is sent.
        """
        with self._lock:
            self.reconciler.set_media(url)
