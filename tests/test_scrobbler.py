"""End-to-end: player events through the scrobbler to a submitted request."""

import json

import pytest

from brainzify.core.scrobbler import ListenBrainzScrobbler
from brainzify.errors import ConfigurationError
from brainzify.models.playback import PlayerState
from tests.doubles import UNAVAILABLE_RESPONSE, BlockingResponse, FakeTransport, make_track


@pytest.fixture
def make_scrobbler(settings, clock):
    scrobblers = []

    def _make(transport, **kwargs):
        scrobbler = ListenBrainzScrobbler(settings, transport=transport, clock=clock, **kwargs)
        scrobblers.append(scrobbler)
        scrobbler.start()
        return scrobbler

    yield _make
    for scrobbler in scrobblers:
        scrobbler.close()


def test_missing_token_does_not_start(monkeypatch):
    monkeypatch.delenv("LISTENBRAINZ_USER_TOKEN", raising=False)

    with pytest.raises(ConfigurationError):
        ListenBrainzScrobbler.from_env()


def test_played_track_is_submitted(make_scrobbler, clock):
    transport = FakeTransport()
    scrobbler = make_scrobbler(transport)
    listener = scrobbler.listener

    media = make_track(duration_sec=0)
    listener.on_current_media_changed(media)
    listener.on_state_changed(PlayerState.PLAYING, media)
    listener.on_timer_update(312)
    listener.on_state_changed(PlayerState.STOPPED, media)

    assert transport.wait_for_requests(1)
    request = transport.requests[0]
    assert request.startswith(b"POST /1/submit-listens HTTP/1.1\r\n")
    assert b"\r\nAuthorization: Token test-token\r\n" in request
    data = json.loads(transport.bodies()[0])
    assert data == {
        "listen_type": "single",
        "payload": [
            {
                "listened_at": int(clock.now),
                "track_metadata": {
                    "artist_name": "Radiohead",
                    "track_name": "Idioteque",
                    "release_name": "Kid A",
                },
            },
        ],
    }


def test_status_reports_queue_and_current_track(make_scrobbler):
    held = BlockingResponse()
    scrobbler = make_scrobbler(FakeTransport([held]))
    listener = scrobbler.listener

    listener.on_current_media_changed(make_track(title="Idioteque"))
    listener.on_timer_update(90)
    listener.on_current_media_changed(make_track(title="Morning Bell"))
    assert held.reading.wait(timeout=2.0)

    status = scrobbler.status()
    assert status["running"] is True
    assert status["pending"] == 1
    assert status["submit_url"] == "https://api.listenbrainz.org/1/submit-listens"
    assert status["current"]["title"] == "Morning Bell"
    assert [listen["title"] for listen in scrobbler.pending_listens()] == ["Idioteque"]
    assert scrobbler.pending_listens()[0]["duration"] == 90

    held.release.set()


def test_close_drops_pending_listens(make_scrobbler):
    scrobbler = make_scrobbler(FakeTransport([UNAVAILABLE_RESPONSE]), retry_delay_sec=60.0)
    listener = scrobbler.listener
    media = make_track()
    listener.on_current_media_changed(media)
    listener.on_timer_update(45)
    listener.on_state_changed(PlayerState.STOPPED, media)

    scrobbler.close()

    status = scrobbler.status()
    assert status["running"] is False
    assert status["pending"] == 1
