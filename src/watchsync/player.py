"""The external player contract and a headless implementation of it.

The reconciler only talks to players through ``Player``. Real deployments
wrap an embedded video widget; ``SimulatedPlayer`` advances with a
``Clock`` and is used by the ``join`` command and the tests.
"""

import enum
import logging
import typing as t
from collections import defaultdict

from watchsync.clock import Clock, MonotonicClock, extrapolate

log = logging.getLogger(__name__)

PlayerEvent = t.Literal["ready", "play", "pause", "state_change"]


class PlayerState(enum.IntEnum):
    """Player states, numbered like the YouTube IFrame API."""

    UNSTARTED = -1
    ENDED = 0
    PLAYING = 1
    PAUSED = 2
    BUFFERING = 3
    CUED = 5


class Player(t.Protocol):
    def load(self, video_id: str) -> None: ...

    def seek_to(self, position: float, allow_seek_ahead: bool = True) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def get_current_time(self) -> float: ...

    def get_player_state(self) -> PlayerState: ...

    def on(self, event: PlayerEvent, callback: t.Callable[..., None]) -> None: ...


class SimulatedPlayer:
    """Clock-driven player without any rendering.

    Notifications are fired synchronously from ``play``, ``pause`` and
    ``load``, the same way the embedded widget reports programmatic
    commands back to its host page.

    Parameters
    ----------
    clock : Clock | None
        Time source. Defaults to a MonotonicClock.
    duration : float | None
        Media length in seconds. Playback ends there. None means unbounded.
    """

    def __init__(self, clock: Clock | None = None, duration: float | None = None):
        self.clock = clock or MonotonicClock()
        self.duration = duration
        self.video_id: str | None = None
        self._position = 0.0
        self._anchor = self.clock.now()
        self._state = PlayerState.UNSTARTED
        self._listeners: dict[str, list[t.Callable[..., None]]] = defaultdict(list)

    def on(self, event: PlayerEvent, callback: t.Callable[..., None]) -> None:
        self._listeners[event].append(callback)

    def _notify(self, event: PlayerEvent, *args) -> None:
        for callback in self._listeners[event]:
            callback(*args)

    def _set_state(self, state: PlayerState) -> None:
        if state == self._state:
            return
        self._state = state
        self._notify("state_change", state)

    def load(self, video_id: str) -> None:
        log.debug(f"Loading video {video_id}")
        self.video_id = video_id
        self._position = 0.0
        self._anchor = self.clock.now()
        self._set_state(PlayerState.CUED)
        self._notify("ready")

    def get_current_time(self) -> float:
        position = extrapolate(
            self._position,
            self._anchor,
            self.clock.now(),
            self._state == PlayerState.PLAYING,
        )
        if self.duration is not None:
            position = min(position, self.duration)
        return position

    def get_player_state(self) -> PlayerState:
        if (
            self._state == PlayerState.PLAYING
            and self.duration is not None
            and self.get_current_time() >= self.duration
        ):
            return PlayerState.ENDED
        return self._state

    def seek_to(self, position: float, allow_seek_ahead: bool = True) -> None:
        position = max(0.0, position)
        if self.duration is not None:
            position = min(position, self.duration)
        self._position = position
        self._anchor = self.clock.now()

    def play(self) -> None:
        if self._state == PlayerState.PLAYING:
            return
        self._position = self.get_current_time()
        self._anchor = self.clock.now()
        self._set_state(PlayerState.PLAYING)
        self._notify("play")

    def pause(self) -> None:
        if self._state != PlayerState.PLAYING:
            return
        self._position = self.get_current_time()
        self._anchor = self.clock.now()
        self._set_state(PlayerState.PAUSED)
        self._notify("pause")
