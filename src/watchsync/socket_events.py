"""Pydantic models for Socket.IO events.

Event names live in ``watchsync.constants.SocketEvents``. Field names are
camelCase because they are the wire format shared with browser clients.
"""

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# Intent Models (client -> server)
# =============================================================================


class SetMedia(BaseModel):
    """Replace the session's media."""

    mediaRef: str

    @field_validator("mediaRef")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("mediaRef must not be empty")
        return value


class PlaybackIntent(BaseModel):
    """Play or pause, optionally at a position."""

    position: float | None = Field(None, ge=0, allow_inf_nan=False)


class SeekIntent(BaseModel):
    """Jump to a position."""

    position: float = Field(..., ge=0, allow_inf_nan=False)


class ReportTime(BaseModel):
    """Periodic position report from a playing client."""

    position: float = Field(..., ge=0, allow_inf_nan=False)


# =============================================================================
# Broadcast Models (server -> clients)
# =============================================================================


class SessionState(BaseModel):
    """Full session snapshot sent to a newly connected client."""

    mediaRef: str | None = None
    isPlaying: bool = False
    position: float = 0.0
    timestamp: float


class MediaChanged(BaseModel):
    """Broadcast when the session's media changes."""

    mediaRef: str
    timestamp: float


class PlaybackEvent(BaseModel):
    """Broadcast for play, pause and seek."""

    position: float
    timestamp: float


class TimeSync(BaseModel):
    """Periodic drift correction broadcast."""

    position: float
    timestamp: float
