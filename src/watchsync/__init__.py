"""Synchronized shared video sessions over Socket.IO."""
import importlib.metadata

from watchsync.client import WatchSyncClient
from watchsync.server import create_app

__all__ = ["WatchSyncClient", "create_app"]

__version__ = importlib.metadata.version("watchsync")
