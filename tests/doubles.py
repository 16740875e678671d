"""
Test doubles for the submission transport, the clock and Spotify.

They satisfy the interfaces the core uses without opening sockets or talking
to real services.
"""

import threading
import time
from typing import List, Optional

from brainzify.errors import TransportError
from brainzify.models.playback import TrackInfo

OK_RESPONSE = b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n{\"status\": \"ok\"}"
UNAUTHORIZED_RESPONSE = b"HTTP/1.1 401 UNAUTHORIZED\r\n\r\n"
UNAVAILABLE_RESPONSE = b"HTTP/1.1 503 SERVICE UNAVAILABLE\r\n\r\n"


class BlockingResponse:
    """Read blocks until the connection is aborted (or `release` is set)."""

    def __init__(self, data: bytes = OK_RESPONSE) -> None:
        self.data = data
        self.release = threading.Event()
        self.reading = threading.Event()


class FakeConnection:
    def __init__(self, transport: "FakeTransport", response, token=None) -> None:
        self._transport = transport
        self._response = response
        self._token = token
        self._aborted = threading.Event()

    def write(self, data: bytes) -> int:
        self._transport._record(data)
        return len(data)

    def read(self, size: int = 1023) -> bytes:
        response = self._response
        if isinstance(response, BlockingResponse):
            response.reading.set()
            deadline = time.monotonic() + 10.0
            while not response.release.is_set():
                if self._aborted.wait(timeout=0.01):
                    raise TransportError("Read interrupted")
                if time.monotonic() > deadline:
                    raise TransportError("Read timed out")
            return response.data[:size]
        if isinstance(response, Exception):
            raise response
        return response[:size]

    def abort(self) -> None:
        self._aborted.set()

    def close(self) -> None:
        if self._token is not None:
            self._token.unregister(self)

    def __enter__(self) -> "FakeConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class FakeTransport:
    """Scripted transport: each open() consumes the next response.

    A response is raw bytes, an exception raised on read, or a BlockingResponse.
    Once the script is exhausted every request gets OK_RESPONSE.
    """

    def __init__(self, responses: Optional[list] = None, default=OK_RESPONSE) -> None:
        self._responses = list(responses or [])
        self._default = default
        self._cond = threading.Condition()
        self.requests: List[bytes] = []
        self.attempt_times: List[float] = []
        self.opened: List[tuple] = []

    def open(self, host: str, port: int, token=None) -> FakeConnection:
        if token is not None and token.killed:
            raise TransportError("Connection cancelled")
        with self._cond:
            self.opened.append((host, port))
            response = self._responses.pop(0) if self._responses else self._default
        connection = FakeConnection(self, response, token)
        if token is not None:
            token.register(connection)
        return connection

    def _record(self, data: bytes) -> None:
        with self._cond:
            self.requests.append(data)
            self.attempt_times.append(time.monotonic())
            self._cond.notify_all()

    def wait_for_requests(self, count: int, timeout: float = 3.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.requests) >= count, timeout=timeout)

    def bodies(self) -> List[bytes]:
        with self._cond:
            return [request.split(b"\r\n\r\n", 1)[1] for request in self.requests]


class FakeClock:
    """Callable clock returning a settable unix time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSpotify:
    """Stands in for spotipy.Spotify; current_playback() walks a script."""

    def __init__(self, playbacks: Optional[list] = None) -> None:
        self._playbacks = list(playbacks or [])
        self.calls = 0

    def current_playback(self):
        self.calls += 1
        result = self._playbacks.pop(0) if self._playbacks else None
        if isinstance(result, Exception):
            raise result
        return result


def make_track(
    title: Optional[str] = "Idioteque",
    artist: Optional[str] = "Radiohead",
    album: Optional[str] = "Kid A",
    **kwargs,
) -> TrackInfo:
    return TrackInfo(title=title, artist=artist, album=album, **kwargs)


def make_spotify_playback(
    uri: str = "spotify:track:6eSy8ZPpKUJNnsRgwjcUf1",
    name: str = "Idioteque",
    artists: tuple = ("Radiohead",),
    album: str = "Kid A",
    is_playing: bool = True,
    progress_ms: int = 0,
    duration_ms: int = 309_000,
    playing_type: str = "track",
) -> dict:
    return {
        "is_playing": is_playing,
        "progress_ms": progress_ms,
        "currently_playing_type": playing_type,
        "item": {
            "uri": uri,
            "name": name,
            "track_number": 8,
            "duration_ms": duration_ms,
            "artists": [{"name": a} for a in artists],
            "album": {"name": album, "artists": [{"name": "Various Artists"}]},
        },
    }
