"""Utility routes.

Handles health checks, versioning and a read-only view of the session.
"""

import logging

from flask import Blueprint, current_app

log = logging.getLogger(__name__)

utility = Blueprint("utility", __name__)


@utility.route("/health")
def health_check():
    """Health check endpoint for server status verification."""
    return {"status": "ok"}, 200


@utility.route("/api/version")
def get_version():
    """Get the watchsync server version."""
    import watchsync

    return {"version": watchsync.__version__}, 200


@utility.route("/api/session")
def get_session():
    """Current session state with the position extrapolated to now."""
    authority = current_app.extensions["session_authority"]
    state = authority.snapshot()
    return {
        **state.model_dump(),
        "participantCount": authority.participant_count,
    }, 200
