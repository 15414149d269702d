"""WSGI entry point for production deployment with Gunicorn.

This module creates the Flask application instance for Gunicorn.
Configuration is read from WATCHSYNC_* environment variables, see
watchsync.config.
"""

from watchsync.server import create_app, socketio

app = create_app()

# Export both app and socketio for Gunicorn
# Gunicorn will use the 'app' object
__all__ = ["app", "socketio"]
