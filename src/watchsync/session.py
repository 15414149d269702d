"""The single authoritative watch session.

``SessionAuthority`` owns the one ``SessionRecord`` of the process. Every
mutation goes through ``SessionAuthority._lock`` so that ``position`` and
``last_update`` always change together. Operations never send anything
themselves; they return ``Broadcast`` descriptors which the Socket.IO layer
emits after the lock has been released.
"""

import logging
import threading
import typing as t
from dataclasses import dataclass, field

from watchsync import analytics
from watchsync.clock import Clock, MonotonicClock, extrapolate
from watchsync.constants import AuthorityConfig, SocketEvents
from watchsync.exceptions import InvalidIntentError
from watchsync.socket_events import (
    MediaChanged,
    PlaybackEvent,
    SessionState,
    TimeSync,
)

log = logging.getLogger(__name__)

Target = t.Literal["all", "others", "sender"]


@dataclass(frozen=True)
class Broadcast:
    """An outbound message produced by the authority.

    Attributes
    ----------
    event : str
        Socket.IO event name.
    payload : dict | int
        JSON-serializable payload.
    target : Target
        ``"all"`` peers, all ``"others"`` than the originator, or only the
        ``"sender"``.
    """

    event: str
    payload: dict | int
    target: Target = "all"


@dataclass
class SessionRecord:
    """Mutable session state. Only ``SessionAuthority`` writes to it."""

    media_ref: str | None = None
    is_playing: bool = False
    position: float = 0.0
    last_update: float = 0.0
    participant_count: int = 0

    def position_at(self, now: float) -> float:
        return extrapolate(self.position, self.last_update, now, self.is_playing)


@dataclass
class SessionAuthority:
    """Applies client intents to the global session record.

    Parameters
    ----------
    clock : Clock
        Time source. Tests inject a ``ManualClock``.
    accept_threshold : float
        Maximum ``|reported - expected|`` for ``report_time`` to be accepted.
    """

    clock: Clock = field(default_factory=MonotonicClock)
    accept_threshold: float = AuthorityConfig.ACCEPT_THRESHOLD
    record: SessionRecord = field(init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    def __post_init__(self):
        self.record = SessionRecord(last_update=self.clock.now())

    # --- intents -----------------------------------------------------------

    def set_media(self, media_ref: str) -> list[Broadcast]:
        """Replace the media and reset playback to a paused start."""
        if not media_ref or not media_ref.strip():
            raise InvalidIntentError("mediaRef must not be empty")
        with self._lock:
            self.record.media_ref = media_ref
            self.record.position = 0.0
            self.record.is_playing = False
            self.record.last_update = self.clock.now()
            timestamp = self.clock.timestamp()
        analytics.intents.labels(intent="set_media").inc()
        log.info(f"Media changed to: {media_ref}")
        event = MediaChanged(mediaRef=media_ref, timestamp=timestamp)
        return [Broadcast(SocketEvents.MEDIA_CHANGED, event.model_dump(), "others")]

    def play(self, position: float | None = None) -> list[Broadcast]:
        """Start playback, optionally at ``position``."""
        return self._set_playing(True, position, SocketEvents.PLAY)

    def pause(self, position: float | None = None) -> list[Broadcast]:
        """Pause playback, optionally at ``position``."""
        return self._set_playing(False, position, SocketEvents.PAUSE)

    def _set_playing(
        self, is_playing: bool, position: float | None, event_name: str
    ) -> list[Broadcast]:
        with self._lock:
            self.record.is_playing = is_playing
            if position is not None:
                self.record.position = position
            self.record.last_update = self.clock.now()
            event = PlaybackEvent(
                position=self.record.position, timestamp=self.clock.timestamp()
            )
        analytics.intents.labels(intent=event_name).inc()
        log.info(f"{event_name.capitalize()} action: {event.position}")
        return [Broadcast(event_name, event.model_dump(), "others")]

    def seek(self, position: float) -> list[Broadcast]:
        """Jump to ``position``.

        Unlike ``report_time`` this is not bounded by the accept threshold:
        any client may move the session anywhere.
        """
        with self._lock:
            self.record.position = position
            self.record.last_update = self.clock.now()
            event = PlaybackEvent(position=position, timestamp=self.clock.timestamp())
        analytics.intents.labels(intent="seek").inc()
        log.info(f"Seek action: {position}")
        return [Broadcast(SocketEvents.SEEK, event.model_dump(), "others")]

    def report_time(self, position: float) -> bool:
        """Accept a periodic position report if it is close to the expected one.

        Returns
        -------
        bool
            True if the report was committed, False if it was discarded.
        """
        with self._lock:
            now = self.clock.now()
            expected = self.record.position_at(now)
            if abs(position - expected) >= self.accept_threshold:
                accepted = False
            else:
                self.record.position = position
                self.record.last_update = now
                accepted = True
        if accepted:
            analytics.intents.labels(intent="report_time").inc()
        else:
            analytics.rejected_reports.inc()
            log.debug(f"Discarded time report {position} (expected {expected:.3f})")
        return accepted

    # --- periodic ----------------------------------------------------------

    def drift_tick(self) -> list[Broadcast]:
        """Advance the recorded position to now and broadcast it to everyone.

        Does nothing unless the session is playing with media set.
        """
        with self._lock:
            if not (self.record.is_playing and self.record.media_ref):
                return []
            now = self.clock.now()
            self.record.position = self.record.position_at(now)
            self.record.last_update = now
            event = TimeSync(
                position=self.record.position, timestamp=self.clock.timestamp()
            )
        analytics.drift_syncs.inc()
        log.debug(f"Drift sync at {event.position:.3f}")
        return [Broadcast(SocketEvents.TIME_SYNC, event.model_dump(), "all")]

    # --- membership --------------------------------------------------------

    def connect(self) -> list[Broadcast]:
        """Register a new participant.

        Returns the snapshot for the new peer followed by the updated count
        for everyone.
        """
        with self._lock:
            self.record.participant_count += 1
            count = self.record.participant_count
            state = self._snapshot_locked()
        analytics.participants.set(count)
        return [
            Broadcast(SocketEvents.SESSION_STATE, state.model_dump(), "sender"),
            Broadcast(SocketEvents.PARTICIPANTS_COUNT, count, "all"),
        ]

    def disconnect(self) -> list[Broadcast]:
        """Unregister a participant and broadcast the updated count."""
        with self._lock:
            if self.record.participant_count > 0:
                self.record.participant_count -= 1
            else:
                log.warning("Disconnect with no registered participants")
            count = self.record.participant_count
        analytics.participants.set(count)
        return [Broadcast(SocketEvents.PARTICIPANTS_COUNT, count, "all")]

    # --- queries -----------------------------------------------------------

    def snapshot(self) -> SessionState:
        """Return the session state with the position extrapolated to now."""
        with self._lock:
            return self._snapshot_locked()

    @property
    def participant_count(self) -> int:
        with self._lock:
            return self.record.participant_count

    def _snapshot_locked(self) -> SessionState:
        return SessionState(
            mediaRef=self.record.media_ref,
            isPlaying=self.record.is_playing,
            position=self.record.position_at(self.clock.now()),
            timestamp=self.clock.timestamp(),
        )
