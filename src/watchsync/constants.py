"""Constants shared by the watchsync server and client."""


class SocketEvents:
    """Socket.IO event names."""

    SESSION_STATE = "session:state"
    MEDIA_SET = "media:set"
    MEDIA_CHANGED = "media:changed"
    PLAY = "play"
    PAUSE = "pause"
    SEEK = "seek"
    TIME_SYNC = "time:sync"
    TIME_REPORT = "time:report"
    PARTICIPANTS_COUNT = "participants:count"


class AuthorityConfig:
    """Session authority timing constants (seconds)."""

    ACCEPT_THRESHOLD = 2.0  # max |reported - expected| for a time report
    DRIFT_INTERVAL = 5.0  # period of the TimeSync broadcast


class ReconcilerConfig:
    """Client reconciler timing constants (seconds)."""

    SUPPRESS_WINDOW = 0.5
    BOOTSTRAP_DELAY = 1.0
    ACTION_SEEK_THRESHOLD = 1.0  # Play, Pause, Seek and bootstrap
    SYNC_SEEK_THRESHOLD = 2.0  # TimeSync
    SAMPLE_INTERVAL = 0.5
    PLAYING_SEEK_DELTA = 2.5
    PAUSED_SEEK_DELTA = 0.1
    REPORT_INTERVAL = 2.0
    TICK_INTERVAL = 0.1  # client loop resolution
