"""Poll Spotify playback and replay it as player notifications for the listen tracker."""
import logging
import threading
from typing import Any, Callable, Optional

import requests
from spotipy import SpotifyException

from brainzify.config import SPOTIFY_POLL_INTERVAL_SEC
from brainzify.core.spotify_client import get_spotify_client
from brainzify.models.playback import PlayerListener, PlayerState, TrackInfo

logger = logging.getLogger(__name__)


def track_info_from_playback(pb: dict[str, Any]) -> TrackInfo:
    """Map a Spotify current_playback() response to a TrackInfo."""
    item = pb.get("item") or {}
    album = item.get("album") or {}
    artists = item.get("artists") or []
    track_number = item.get("track_number")
    # Spotify track artists already name the performer; album artist stays unset
    # so compilations are not scrobbled as "Various Artists".
    return TrackInfo(
        title=item.get("name") or None,
        artist=", ".join(a.get("name", "") for a in artists if a.get("name")) or None,
        album=album.get("name") or None,
        track_number=str(track_number) if track_number else None,
        duration_sec=int(item.get("duration_ms") or 0) / 1000.0,
        has_video=(pb.get("currently_playing_type") or "track") != "track",
        preparsed=True,
        uri=item.get("uri"),
    )


class SpotifyPlaybackSource:
    """Background poller turning Spotify playback into PlayerListener calls.

    Only changes are reported: a new track URI becomes a media change, a flip of
    is_playing becomes a state change, and progress is forwarded as a timer
    update on every poll. Playback disappearing is reported as STOPPED once.
    Transient API errors are ignored so a single failed poll does not end a listen.
    """

    def __init__(
        self,
        listener: PlayerListener,
        get_client: Callable[[], Any] = get_spotify_client,
        interval_sec: float = SPOTIFY_POLL_INTERVAL_SEC,
    ) -> None:
        self._listener = listener
        self._get_client = get_client
        self._interval_sec = interval_sec
        self._track_uri: Optional[str] = None
        self._media: Optional[TrackInfo] = None
        self._state: Optional[PlayerState] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def poll_once(self) -> None:
        sp = self._get_client()
        if sp is None:
            logger.debug("Spotify poll: not linked")
            self._report_stopped()
            return
        try:
            pb = sp.current_playback()
        except (SpotifyException, requests.RequestException) as e:
            logger.warning("Spotify poll: %s", e)
            return

        if not pb or not pb.get("item"):
            self._report_stopped()
            return

        media = track_info_from_playback(pb)
        if media.uri != self._track_uri:
            logger.debug("Spotify poll: now playing %s", media.uri)
            self._track_uri = media.uri
            self._media = media
            self._state = None
            self._listener.on_current_media_changed(media)

        self._listener.on_timer_update(int(pb.get("progress_ms") or 0) / 1000.0)

        state = PlayerState.PLAYING if pb.get("is_playing") else PlayerState.PAUSED
        if state != self._state:
            self._state = state
            self._listener.on_state_changed(state, media)

    def _report_stopped(self) -> None:
        if self._track_uri is None and self._state is None:
            return
        self._listener.on_state_changed(PlayerState.STOPPED, self._media)
        self._track_uri = None
        self._media = None
        self._state = None

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._interval_sec):
            try:
                self.poll_once()
            except Exception as e:
                logger.warning("Spotify poll: %s", e)

    def start(self) -> None:
        """Start background poll loop."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, name="spotify-poll", daemon=True)
        self._thread.start()
        logger.info("Spotify playback source started (interval %.1fs)", self._interval_sec)

    def stop(self) -> None:
        """Stop background poll loop and end the track being followed."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            if self._thread.is_alive():
                logger.warning("Spotify poller did not stop within 2.0s")
                return
            self._thread = None
        self._report_stopped()
