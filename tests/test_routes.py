import watchsync
from watchsync.constants import SocketEvents


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json == {"status": "ok"}


def test_version(client):
    response = client.get("/api/version")
    assert response.status_code == 200
    assert response.json == {"version": watchsync.__version__}


def test_session_view(client, app, clock, sio_client_factory):
    sio_client = sio_client_factory()
    sio_client.emit(SocketEvents.MEDIA_SET, {"mediaRef": "abc12345678"})
    sio_client.emit(SocketEvents.PLAY, {"position": 3.0})
    clock.advance(2.0)

    response = client.get("/api/session")

    assert response.status_code == 200
    assert response.json == {
        "mediaRef": "abc12345678",
        "isPlaying": True,
        "position": 5.0,
        "timestamp": clock.timestamp(),
        "participantCount": 1,
    }


def test_metrics_endpoint(client, sio_client_factory):
    sio_client_factory()

    response = client.get("/metrics")

    assert response.status_code == 200
    assert b"watchsync_participants" in response.data
    assert b"watchsync_intents_total" in response.data
