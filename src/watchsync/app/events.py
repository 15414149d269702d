import logging
import threading
import typing as t

from flask import current_app, request
from pydantic import BaseModel, ValidationError

from watchsync.constants import SocketEvents
from watchsync.exceptions import InvalidIntentError
from watchsync.server import socketio
from watchsync.session import Broadcast, SessionAuthority
from watchsync.socket_events import PlaybackIntent, ReportTime, SeekIntent, SetMedia

log = logging.getLogger(__name__)

M = t.TypeVar("M", bound=BaseModel)

# Serializes reading and sending the participant count
_count_lock = threading.Lock()


# --- Helper Functions ---
def get_authority() -> SessionAuthority:
    return current_app.extensions["session_authority"]


def emit_broadcasts(broadcasts: list[Broadcast], sid: str | None = None) -> None:
    """Send authority broadcasts. Fire-and-forget, nothing is acknowledged.

    Parameters
    ----------
    broadcasts : list[Broadcast]
        Messages produced by the session authority.
    sid : str | None
        Socket.IO session id of the originator. Required for the
        ``"others"`` and ``"sender"`` targets.

    Notes
    -----
    Participant counts are re-read when sent, so that concurrent joins and
    leaves always end with every peer holding the latest count.
    """
    for broadcast in broadcasts:
        if broadcast.event == SocketEvents.PARTICIPANTS_COUNT:
            with _count_lock:
                count = get_authority().participant_count
                socketio.emit(broadcast.event, count)
        elif broadcast.target == "sender":
            socketio.emit(broadcast.event, broadcast.payload, to=sid)
        elif broadcast.target == "others":
            socketio.emit(broadcast.event, broadcast.payload, skip_sid=sid)
        else:
            socketio.emit(broadcast.event, broadcast.payload)


def parse_intent(model: type[M], data: t.Any) -> M | None:
    """Validate an inbound payload, returning None if it is malformed.

    Malformed intents are dropped without notifying the sender.
    """
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as e:
        log.warning(
            f"Dropped malformed {model.__name__} from {request.sid}: "
            f"{e.error_count()} validation error(s)"
        )
        return None


# --- Lifecycle ---
@socketio.on("connect")
def handle_connect(auth=None):
    sid = request.sid
    log.info(f"User connected: {sid}")
    emit_broadcasts(get_authority().connect(), sid)


@socketio.on("disconnect")
def handle_disconnect(reason=None):
    sid = request.sid
    log.info(f"User disconnected: {sid}")
    emit_broadcasts(get_authority().disconnect(), sid)


# --- Intents ---
@socketio.on(SocketEvents.MEDIA_SET)
def handle_set_media(data):
    intent = parse_intent(SetMedia, data)
    if intent is None:
        return
    try:
        broadcasts = get_authority().set_media(intent.mediaRef)
    except InvalidIntentError as e:
        log.warning(f"Dropped media change from {request.sid}: {e}")
        return
    emit_broadcasts(broadcasts, request.sid)


@socketio.on(SocketEvents.PLAY)
def handle_play(data=None):
    intent = parse_intent(PlaybackIntent, data)
    if intent is None:
        return
    emit_broadcasts(get_authority().play(intent.position), request.sid)


@socketio.on(SocketEvents.PAUSE)
def handle_pause(data=None):
    intent = parse_intent(PlaybackIntent, data)
    if intent is None:
        return
    emit_broadcasts(get_authority().pause(intent.position), request.sid)


@socketio.on(SocketEvents.SEEK)
def handle_seek(data):
    intent = parse_intent(SeekIntent, data)
    if intent is None:
        return
    emit_broadcasts(get_authority().seek(intent.position), request.sid)


@socketio.on(SocketEvents.TIME_REPORT)
def handle_time_report(data):
    intent = parse_intent(ReportTime, data)
    if intent is None:
        return
    get_authority().report_time(intent.position)
