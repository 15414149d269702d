"""watchsync exception classes."""


class WatchSyncException(Exception):
    """Base exception for all watchsync errors."""
    pass


class InvalidIntentError(WatchSyncException):
    """Raised when a client intent fails validation and must be dropped."""
    pass


class InvalidMediaReference(InvalidIntentError):
    """Raised when a media URL cannot be turned into a video id."""
    pass
