"""Clocks and playback extrapolation.

Positions are seconds into the media. Two notions of time are used:

- ``now()`` is a monotonic instant in seconds, used for extrapolation and
  for the client-side timers.
- ``timestamp()`` is wall time in epoch milliseconds, only ever used to
  stamp outgoing wire payloads.
"""

import time
import typing as t


class Clock(t.Protocol):
    def now(self) -> float: ...

    def timestamp(self) -> float: ...


class MonotonicClock:
    """Real clock backed by ``time.monotonic`` and ``time.time``."""

    def now(self) -> float:
        return time.monotonic()

    def timestamp(self) -> float:
        return time.time() * 1000


class ManualClock:
    """Virtual clock that only moves when ``advance`` is called.

    Parameters
    ----------
    start : float
        Initial monotonic instant in seconds.
    epoch_ms : float
        Wall-clock milliseconds reported at ``start``.
    """

    def __init__(self, start: float = 0.0, epoch_ms: float = 1_700_000_000_000.0):
        self._now = start
        self._start = start
        self._epoch_ms = epoch_ms

    def now(self) -> float:
        return self._now

    def timestamp(self) -> float:
        return self._epoch_ms + (self._now - self._start) * 1000

    def advance(self, seconds: float) -> float:
        """Move the clock forward and return the new instant."""
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {seconds}s")
        self._now += seconds
        return self._now


def extrapolate(
    position: float, last_update: float, now: float, is_playing: bool
) -> float:
    """Return where playback should be at ``now``.

    Parameters
    ----------
    position : float
        Recorded playback offset in seconds.
    last_update : float
        Monotonic instant at which ``position`` was recorded.
    now : float
        Monotonic instant to extrapolate to.
    is_playing : bool
        A paused session does not advance.

    Returns
    -------
    float
        ``position + (now - last_update)`` while playing, else ``position``.
    """
    if not is_playing:
        return position
    return position + (now - last_update)
