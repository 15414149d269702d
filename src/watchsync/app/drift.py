"""Periodic drift correction for the global session.

Every ``interval`` seconds the ticker asks the authority to fold the
elapsed time into the recorded position and broadcasts the resulting
``TimeSync`` to every connected peer, idle ones included.
"""

import logging
import threading
import typing as t
from dataclasses import dataclass, field

from watchsync.constants import AuthorityConfig
from watchsync.session import Broadcast, SessionAuthority

log = logging.getLogger(__name__)


@dataclass
class DriftTicker:
    """Background thread driving ``SessionAuthority.drift_tick``.

    Parameters
    ----------
    authority : SessionAuthority
        The session to correct. ``drift_tick`` takes the authority lock, so
        ticks serialize with client intents.
    emit : Callable[[list[Broadcast]], None]
        Sends the produced broadcasts.
    interval : float
        Seconds between ticks.
    """

    authority: SessionAuthority
    emit: t.Callable[[list[Broadcast]], None]
    interval: float = AuthorityConfig.DRIFT_INTERVAL
    _stop_event: threading.Event = field(default_factory=threading.Event, init=False)
    _thread: threading.Thread | None = field(default=None, init=False)
    _start_lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the ticker thread. Calling it again while running is a no-op."""
        with self._start_lock:
            if self.running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, daemon=True, name="drift-ticker"
            )
            self._thread.start()
            log.debug(f"Drift ticker started (interval: {self.interval}s)")

    def stop(self) -> None:
        """Stop the ticker thread."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    def tick(self) -> list[Broadcast]:
        """Run one drift correction and emit its broadcasts."""
        broadcasts = self.authority.drift_tick()
        if broadcasts:
            self.emit(broadcasts)
        return broadcasts

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception as e:
                # A failed send must not end the ticker
                log.warning(f"Drift tick failed (will retry): {e}")
