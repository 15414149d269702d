"""Centralized configuration management for watchsync.

Reads from environment variables with sensible defaults.
The CLI, the server and the socket client all use this module.

Environment variables follow the pattern WATCHSYNC_*.

Example:
    >>> from watchsync.config import get_config
    >>> config = get_config()
    >>> print(config.server_port)
    5000
"""

import logging
import os
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


def _parse_list(value: str) -> list[str]:
    """Parse a comma separated environment variable string."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _getenv_int(key: str, default: int) -> int:
    """Get integer from environment with fallback to default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        log.warning(f"Invalid integer value for {key}={value}, using default {default}")
        return default


def _getenv_float(key: str, default: float) -> float:
    """Get float from environment with fallback to default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        log.warning(f"Invalid float value for {key}={value}, using default {default}")
        return default


@dataclass
class WatchSyncConfig:
    """watchsync configuration loaded from environment variables.

    Attributes
    ----------
    server_host : str
        Server bind host address.
    server_port : int
        Server bind port number.
    server_url : str | None
        URL clients connect to. Auto-generated from host/port if None.
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    secret_key : str
        Flask session secret key.
    cors_origins : list[str]
        Origins allowed to open Socket.IO connections. ``["*"]`` allows all.
    drift_interval : float
        Seconds between drift-correction broadcasts.
    accept_threshold : float
        Maximum distance in seconds between a reported and the expected
        position for the report to be accepted.
    """

    server_host: str = field(
        default_factory=lambda: os.getenv("WATCHSYNC_SERVER_HOST", "localhost")
    )
    server_port: int = field(
        default_factory=lambda: _getenv_int("WATCHSYNC_SERVER_PORT", 5000)
    )
    server_url: str | None = field(
        default_factory=lambda: os.getenv("WATCHSYNC_SERVER_URL")
    )

    # Logging
    log_level: str = field(
        default_factory=lambda: os.getenv("WATCHSYNC_LOG_LEVEL", "WARNING")
    )

    # Transport
    secret_key: str = field(
        default_factory=lambda: os.getenv(
            "WATCHSYNC_SECRET_KEY", "dev-secret-key-change-in-production"
        )
    )
    cors_origins: list[str] = field(
        default_factory=lambda: _parse_list(os.getenv("WATCHSYNC_CORS_ORIGINS", "*"))
    )

    # Synchronization
    drift_interval: float = field(
        default_factory=lambda: _getenv_float("WATCHSYNC_DRIFT_INTERVAL", 5.0)
    )
    accept_threshold: float = field(
        default_factory=lambda: _getenv_float("WATCHSYNC_ACCEPT_THRESHOLD", 2.0)
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()
        self._log_config()

    def _validate(self):
        """Validate configuration values.

        Raises
        ------
        ValueError
            If configuration is invalid.
        """
        if not 1 <= self.server_port <= 65535:
            raise ValueError(
                f"Invalid port number: {self.server_port}. Must be between 1 and 65535"
            )

        if self.drift_interval <= 0:
            raise ValueError(
                f"Invalid drift interval: {self.drift_interval}s. Must be positive"
            )

        if self.accept_threshold <= 0:
            raise ValueError(
                f"Invalid accept threshold: {self.accept_threshold}s. Must be positive"
            )

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_levels:
            log.warning(
                f"Invalid log level '{self.log_level}', using WARNING. "
                f"Valid levels: {', '.join(valid_levels)}"
            )
            self.log_level = "WARNING"

        if not self.cors_origins:
            self.cors_origins = ["*"]

        if os.getenv("WATCHSYNC_SERVER_URL") is None:
            # 0.0.0.0 is a bind address, not something a client can dial
            url_host = self.server_host
            if url_host == "0.0.0.0":
                url_host = "localhost"
            self.server_url = f"http://{url_host}:{self.server_port}"

    @property
    def socketio_cors(self) -> str | list[str]:
        """CORS setting in the form Flask-SocketIO expects."""
        if self.cors_origins == ["*"]:
            return "*"
        return self.cors_origins

    def _log_config(self):
        """Log configuration for debugging (excludes sensitive data)."""
        log.info("=" * 80)
        log.info("watchsync Configuration:")
        log.info(f"  Server: {self.server_url}")
        log.info(f"  Log Level: {self.log_level}")
        log.info(f"  CORS Origins: {', '.join(self.cors_origins)}")
        log.info(f"  Drift Interval: {self.drift_interval}s")
        log.info(f"  Accept Threshold: {self.accept_threshold}s")
        log.info("=" * 80)


# Global config instance (singleton pattern)
_config: WatchSyncConfig | None = None


def get_config() -> WatchSyncConfig:
    """Get or create the global configuration instance.

    Returns
    -------
    WatchSyncConfig
        Global configuration instance loaded from environment variables.
    """
    global _config
    if _config is None:
        _config = WatchSyncConfig()
    return _config


def reload_config() -> WatchSyncConfig:
    """Reload configuration from environment.

    Useful for testing or when environment variables change at runtime.

    Returns
    -------
    WatchSyncConfig
        Newly created configuration instance.
    """
    global _config
    _config = WatchSyncConfig()
    return _config
