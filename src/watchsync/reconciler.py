"""Client-side reconciliation of a local player against the session authority.

``ClientReconciler`` is a single-threaded state machine. It never starts
timers itself: every periodic behaviour is a due instant checked by
``tick()``, so a ``ManualClock`` fully drives it in tests and
``WatchSyncClient`` drives it from one loop thread in production.

Two axes of state matter:

- ``is_playing`` mirrors the last known authority state.
- ``suppressed`` is derived from ``suppress_until``. While suppressed,
  inbound corrections are ignored and nothing is emitted, so that the
  player's own reaction to a correction is never echoed back.
"""

import logging
import typing as t
from dataclasses import dataclass

from pydantic import BaseModel, ValidationError

from watchsync.clock import Clock, MonotonicClock
from watchsync.constants import ReconcilerConfig, SocketEvents
from watchsync.exceptions import InvalidMediaReference
from watchsync.media import extract_video_id
from watchsync.player import Player, PlayerState
from watchsync.socket_events import (
    MediaChanged,
    PlaybackEvent,
    PlaybackIntent,
    ReportTime,
    SeekIntent,
    SessionState,
    SetMedia,
    TimeSync,
)

log = logging.getLogger(__name__)

M = t.TypeVar("M", bound=BaseModel)

Emitter = t.Callable[[str, dict], None]


def is_local_seek(delta: float, is_playing: bool) -> bool:
    """Classify a sampled position change as a user seek.

    A playing player advances about one sample interval between samples, so
    only jumps beyond ``PLAYING_SEEK_DELTA`` count. A paused player should
    not move at all.
    """
    if is_playing:
        return abs(delta) > ReconcilerConfig.PLAYING_SEEK_DELTA
    return abs(delta) > ReconcilerConfig.PAUSED_SEEK_DELTA


@dataclass
class PendingBootstrap:
    state: SessionState
    due: float


class ClientReconciler:
    """Per-client state machine between the transport and the player.

    Parameters
    ----------
    player : Player
        The local player to command and observe.
    emit : Callable[[str, dict], None]
        Sends an intent to the authority. Must not block.
    clock : Clock | None
        Time source. Defaults to a MonotonicClock.
    resolve_media : Callable[[str], str | None]
        Turns a media reference into something the player can load, or None
        if it is unplayable. Defaults to YouTube video-id extraction.
    """

    def __init__(
        self,
        player: Player,
        emit: Emitter,
        clock: Clock | None = None,
        resolve_media: t.Callable[[str], str | None] = extract_video_id,
    ):
        self.player = player
        self.emit = emit
        self.clock = clock or MonotonicClock()
        self.resolve_media = resolve_media

        self.media_ref: str | None = None
        self.video_id: str | None = None
        self.is_playing = False
        self.suppress_until: float | None = None
        self.last_observed_position = 0.0
        self.participant_count = 0
        self.bootstrap: PendingBootstrap | None = None

        now = self.clock.now()
        self._next_sample = now + ReconcilerConfig.SAMPLE_INTERVAL
        self._next_report = now + ReconcilerConfig.REPORT_INTERVAL

    @property
    def suppressed(self) -> bool:
        return self.suppress_until is not None and self.clock.now() < self.suppress_until

    def _suppress(self) -> None:
        self.suppress_until = self.clock.now() + ReconcilerConfig.SUPPRESS_WINDOW

    def _parse(self, model: type[M], data: t.Any) -> M | None:
        try:
            return model.model_validate(data if data is not None else {})
        except ValidationError as e:
            log.warning(f"Ignoring malformed {model.__name__}: {e.error_count()} error(s)")
            return None

    # --- inbound authority events ------------------------------------------

    def on_session_state(self, data: dict) -> None:
        """Adopt the bootstrap snapshot and schedule its correction."""
        state = self._parse(SessionState, data)
        if state is None:
            return
        log.info(f"Received session state: {state}")
        if not state.mediaRef:
            self.is_playing = state.isPlaying
            return
        if not self._load_media(state.mediaRef):
            return
        self.is_playing = state.isPlaying
        self.bootstrap = PendingBootstrap(
            state=state, due=self.clock.now() + ReconcilerConfig.BOOTSTRAP_DELAY
        )

    def on_media_changed(self, data: dict) -> None:
        event = self._parse(MediaChanged, data)
        if event is None:
            return
        log.info(f"Media changed: {event.mediaRef}")
        self._load_media(event.mediaRef)

    def on_play(self, data: dict) -> bool:
        event = self._parse(PlaybackEvent, data)
        if event is None:
            return False
        return self._apply_correction(
            event.position, ReconcilerConfig.ACTION_SEEK_THRESHOLD, playing=True
        )

    def on_pause(self, data: dict) -> bool:
        event = self._parse(PlaybackEvent, data)
        if event is None:
            return False
        return self._apply_correction(
            event.position, ReconcilerConfig.ACTION_SEEK_THRESHOLD, playing=False
        )

    def on_seek(self, data: dict) -> bool:
        event = self._parse(PlaybackEvent, data)
        if event is None:
            return False
        return self._apply_correction(
            event.position, ReconcilerConfig.ACTION_SEEK_THRESHOLD
        )

    def on_time_sync(self, data: dict) -> bool:
        event = self._parse(TimeSync, data)
        if event is None:
            return False
        return self._apply_correction(
            event.position, ReconcilerConfig.SYNC_SEEK_THRESHOLD
        )

    def on_participant_count(self, count: int) -> None:
        self.participant_count = int(count)

    def _load_media(self, media_ref: str) -> bool:
        video_id = self.resolve_media(media_ref)
        if video_id is None:
            log.warning(f"Ignoring unplayable media reference: {media_ref!r}")
            return False
        self.media_ref = media_ref
        self.video_id = video_id
        self.is_playing = False
        self.bootstrap = None
        self.player.load(video_id)
        self.last_observed_position = 0.0
        return True

    def _apply_correction(
        self, target: float, threshold: float, playing: bool | None = None
    ) -> bool:
        """Bring the player to ``target`` and optionally to a play state.

        Returns False if the correction was ignored because a previous one is
        still settling. An applied correction supersedes a pending bootstrap;
        corrections without a play state then carry the adopted one.
        """
        if self.suppressed:
            log.debug(f"Ignoring correction to {target:.3f} while suppressed")
            return False
        if self.bootstrap is not None:
            log.debug("Newer authority event supersedes pending session state")
            self.bootstrap = None
            if playing is None:
                playing = self.is_playing
        # Armed before commanding the player so its notifications are swallowed
        self._suppress()
        if playing is not None:
            self.is_playing = playing

        current = self.player.get_current_time()
        if abs(current - target) > threshold:
            log.debug(f"Seeking from {current:.3f} to {target:.3f}")
            self.player.seek_to(target, True)

        if playing is True:
            self.player.play()
        elif playing is False:
            self.player.pause()

        self.last_observed_position = self.player.get_current_time()
        self._suppress()
        return True

    def _apply_bootstrap(self) -> bool:
        pending = self.bootstrap
        self.bootstrap = None
        state = pending.state
        log.info(f"Applying session state at {state.position:.3f}")
        return self._apply_correction(
            state.position,
            ReconcilerConfig.ACTION_SEEK_THRESHOLD,
            playing=state.isPlaying,
        )

    # --- local player notifications -----------------------------------------

    def on_player_play(self) -> bool:
        return self._on_local_playback(True)

    def on_player_pause(self) -> bool:
        return self._on_local_playback(False)

    def on_player_state_change(self, state: PlayerState) -> None:
        if state == PlayerState.PLAYING:
            self.last_observed_position = self.player.get_current_time()

    def on_player_ready(self) -> None:
        self.last_observed_position = self.player.get_current_time()

    def _on_local_playback(self, playing: bool) -> bool:
        if self.suppressed:
            return False
        position = self.player.get_current_time()
        self.is_playing = playing
        event = SocketEvents.PLAY if playing else SocketEvents.PAUSE
        self.emit(event, PlaybackIntent(position=position).model_dump())
        return True

    # --- local commands -----------------------------------------------------

    def set_media(self, url: str) -> None:
        """Load ``url`` locally and ask the authority to switch everyone to it.

        Raises
        ------
        InvalidMediaReference
            If ``url`` is not a playable YouTube URL. Nothing is sent.
        """
        if self.resolve_media(url) is None:
            raise InvalidMediaReference(f"Not a valid media reference: {url!r}")
        self._load_media(url)
        self.emit(SocketEvents.MEDIA_SET, SetMedia(mediaRef=url).model_dump())

    # --- timers -------------------------------------------------------------

    def tick(self) -> None:
        """Run everything that is due at the current instant."""
        now = self.clock.now()
        if self.suppress_until is not None and now >= self.suppress_until:
            self.suppress_until = None
        if self.bootstrap is not None and now >= self.bootstrap.due:
            self._apply_bootstrap()
        if now >= self._next_sample:
            self._next_sample = now + ReconcilerConfig.SAMPLE_INTERVAL
            self.sample()
        if now >= self._next_report:
            self._next_report = now + ReconcilerConfig.REPORT_INTERVAL
            self.report()

    def sample(self) -> bool:
        """Compare the player position to the previous sample.

        The reference sample is always refreshed. A seek is only emitted when
        not suppressed and not waiting for a bootstrap.

        Returns
        -------
        bool
            True if a ``Seek`` intent was emitted.
        """
        current = self.player.get_current_time()
        delta = current - self.last_observed_position
        self.last_observed_position = current
        if self.suppressed or self.bootstrap is not None:
            return False
        if not is_local_seek(delta, self.is_playing):
            return False
        log.info(f"Local seek detected: {current:.3f} (delta {delta:+.3f})")
        self.emit(SocketEvents.SEEK, SeekIntent(position=current).model_dump())
        return True

    def report(self) -> bool:
        """Report the current position while playing.

        Returns
        -------
        bool
            True if a ``ReportTime`` intent was emitted.
        """
        if not self.is_playing or self.suppressed or self.bootstrap is not None:
            return False
        position = self.player.get_current_time()
        self.emit(SocketEvents.TIME_REPORT, ReportTime(position=position).model_dump())
        return True
