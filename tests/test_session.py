import pytest

from watchsync.constants import SocketEvents
from watchsync.exceptions import InvalidIntentError
from watchsync.session import Broadcast, SessionAuthority


def test_new_session_is_empty(authority, clock):
    record = authority.record
    assert record.media_ref is None
    assert record.is_playing is False
    assert record.position == 0.0
    assert record.last_update == clock.now()
    assert record.participant_count == 0


def test_set_media_resets_playback(authority, clock):
    authority.play(30.0)
    clock.advance(3.0)

    broadcasts = authority.set_media("abc12345678")

    record = authority.record
    assert record.media_ref == "abc12345678"
    assert record.is_playing is False
    assert record.position == 0.0
    assert record.last_update == clock.now()
    assert broadcasts == [
        Broadcast(
            SocketEvents.MEDIA_CHANGED,
            {"mediaRef": "abc12345678", "timestamp": clock.timestamp()},
            "others",
        )
    ]


@pytest.mark.parametrize("ref", ["", "   "])
def test_set_media_rejects_empty_reference(authority, ref):
    with pytest.raises(InvalidIntentError):
        authority.set_media(ref)
    assert authority.record.media_ref is None


def test_play_with_position(authority, clock):
    clock.advance(2.0)
    broadcasts = authority.play(12.5)

    assert authority.record.is_playing is True
    assert authority.record.position == 12.5
    assert authority.record.last_update == clock.now()
    assert broadcasts == [
        Broadcast(
            SocketEvents.PLAY, {"position": 12.5, "timestamp": clock.timestamp()}, "others"
        )
    ]


def test_play_without_position_keeps_recorded_position(authority, clock):
    authority.pause(7.0)
    clock.advance(1.0)

    broadcasts = authority.play()

    assert authority.record.position == 7.0
    assert authority.record.last_update == clock.now()
    assert broadcasts[0].payload["position"] == 7.0


def test_play_at_zero_is_a_real_position(authority):
    authority.pause(40.0)
    authority.play(0.0)
    assert authority.record.position == 0.0


def test_pause_with_position(authority, clock):
    authority.play(5.0)
    clock.advance(4.0)

    broadcasts = authority.pause(9.0)

    assert authority.record.is_playing is False
    assert authority.record.position == 9.0
    assert broadcasts[0].event == SocketEvents.PAUSE
    assert broadcasts[0].target == "others"


def test_seek_overwrites_position_unconditionally(authority, clock):
    authority.play(10.0)
    clock.advance(1.0)

    broadcasts = authority.seek(3600.0)

    assert authority.record.position == 3600.0
    assert authority.record.is_playing is True
    assert authority.record.last_update == clock.now()
    assert broadcasts == [
        Broadcast(
            SocketEvents.SEEK,
            {"position": 3600.0, "timestamp": clock.timestamp()},
            "others",
        )
    ]


@pytest.mark.parametrize(
    "intents",
    [
        [("play", 1.0), ("pause", 2.0), ("seek", 3.0)],
        [("seek", 50.0), ("seek", 20.0)],
        [("pause", 4.0), ("play", 8.0)],
        [("play", 5.0), ("play", 5.0)],
    ],
)
def test_last_intent_wins(authority, clock, intents):
    for name, position in intents:
        clock.advance(0.7)
        getattr(authority, name)(position)

    assert authority.record.position == intents[-1][1]
    assert authority.record.last_update == clock.now()


def test_report_time_accepted_close_to_expected(authority, clock):
    authority.play(10.0)
    clock.advance(2.05)  # expected 12.05

    assert authority.report_time(12.0) is True
    assert authority.record.position == 12.0
    assert authority.record.last_update == clock.now()


def test_report_time_rejected_far_from_expected(authority, clock):
    authority.play(10.0)
    clock.advance(2.05)
    last_update = authority.record.last_update

    assert authority.report_time(20.0) is False
    assert authority.record.position == 10.0
    assert authority.record.last_update == last_update


@pytest.mark.parametrize(
    ("offset", "accepted"),
    [(1.999, True), (-1.999, True), (2.001, False), (-2.001, False), (2.0, False)],
)
def test_report_time_threshold_boundary(authority, offset, accepted):
    authority.pause(30.0)  # paused, so expected stays 30.0

    assert authority.report_time(30.0 + offset) is accepted
    assert authority.record.position == (30.0 + offset if accepted else 30.0)


def test_report_time_never_broadcasts(authority):
    authority.pause(5.0)
    assert authority.report_time(5.5) is True


def test_custom_accept_threshold(clock):
    authority = SessionAuthority(clock=clock, accept_threshold=0.5)
    authority.pause(10.0)

    assert authority.report_time(10.4) is True
    assert authority.report_time(11.0) is False


def test_drift_tick_advances_playing_session(authority, clock):
    authority.set_media("abc12345678")
    authority.play(10.0)
    clock.advance(5.0)

    broadcasts = authority.drift_tick()

    assert authority.record.position == 15.0
    assert authority.record.last_update == clock.now()
    assert broadcasts == [
        Broadcast(
            SocketEvents.TIME_SYNC,
            {"position": 15.0, "timestamp": clock.timestamp()},
            "all",
        )
    ]


def test_drift_tick_idle_when_paused(authority, clock):
    authority.set_media("abc12345678")
    authority.pause(10.0)
    clock.advance(5.0)

    assert authority.drift_tick() == []
    assert authority.record.position == 10.0


def test_drift_tick_idle_without_media(authority, clock):
    authority.play(10.0)
    clock.advance(5.0)

    assert authority.drift_tick() == []
    assert authority.record.position == 10.0


def test_connect_sends_snapshot_then_count(authority, clock):
    authority.set_media("xyz")
    authority.play(42.0)
    clock.advance(3.0)

    broadcasts = authority.connect()

    assert broadcasts == [
        Broadcast(
            SocketEvents.SESSION_STATE,
            {
                "mediaRef": "xyz",
                "isPlaying": True,
                "position": 45.0,
                "timestamp": clock.timestamp(),
            },
            "sender",
        ),
        Broadcast(SocketEvents.PARTICIPANTS_COUNT, 1, "all"),
    ]
    # the snapshot is extrapolated, the record is untouched
    assert authority.record.position == 42.0


def test_participant_count_tracks_connections(authority):
    authority.connect()
    authority.connect()
    assert authority.participant_count == 2

    broadcasts = authority.disconnect()

    assert authority.participant_count == 1
    assert broadcasts == [Broadcast(SocketEvents.PARTICIPANTS_COUNT, 1, "all")]


def test_disconnect_never_goes_negative(authority):
    authority.disconnect()
    assert authority.participant_count == 0


def test_snapshot_is_extrapolated(authority, clock):
    authority.set_media("abc12345678")
    authority.play(1.0)
    clock.advance(2.5)

    state = authority.snapshot()

    assert state.mediaRef == "abc12345678"
    assert state.isPlaying is True
    assert state.position == 3.5
