"""Gunicorn configuration for production deployment.

The session lives in the memory of a single process, so there is exactly
one worker. Concurrency comes from threads; Flask-SocketIO uses
simple-websocket for WebSocket support in that mode.
"""

import os

# Server socket
bind = f"0.0.0.0:{os.getenv('WATCHSYNC_SERVER_PORT', '5000')}"
backlog = 2048

# A second worker would hold a second, diverging session
workers = 1
worker_class = "sync"

# Each thread holds one long-lived Socket.IO connection
threads = int(os.getenv("GUNICORN_THREADS", "100"))

# Timeouts
timeout = 120
graceful_timeout = 30
keepalive = 5

# Logging
accesslog = "-"  # Log to stdout
errorlog = "-"  # Log to stderr
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")

# Process naming
proc_name = "watchsync"

# Server mechanics
daemon = False
pidfile = None

# Loading after fork keeps the drift ticker thread inside the worker
preload_app = False


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("=" * 80)
    server.log.info("watchsync Gunicorn server starting")
    server.log.info(f"Workers: {workers}, Threads per worker: {threads}")
    server.log.info(f"Worker class: {worker_class}")
    server.log.info("=" * 80)


def worker_int(worker):
    """Called when a worker receives the SIGINT or SIGQUIT signal."""
    worker.log.info(f"Worker received INT or QUIT signal (PID: {worker.pid})")
