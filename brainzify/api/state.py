"""Shared application state (injected into routes)."""
import logging

from fastapi import Depends, HTTPException

from brainzify.config import SPOTIFY_POLL_ENABLED, SPOTIFY_POLL_INTERVAL_SEC
from brainzify.core.scrobbler import ListenBrainzScrobbler
from brainzify.core.spotify_client import get_spotify_client
from brainzify.core.spotify_source import SpotifyPlaybackSource
from brainzify.errors import ConfigurationError

logger = logging.getLogger(__name__)


class AppState:
    def __init__(self) -> None:
        self._scrobbler: ListenBrainzScrobbler | None = None
        self._spotify_source: SpotifyPlaybackSource | None = None
        self.config_error: str | None = None

    @property
    def scrobbler(self) -> ListenBrainzScrobbler | None:
        return self._scrobbler

    @property
    def spotify_source(self) -> SpotifyPlaybackSource | None:
        return self._spotify_source

    def start(
        self,
        scrobbler: ListenBrainzScrobbler | None = None,
        spotify_poll: bool = SPOTIFY_POLL_ENABLED,
    ) -> None:
        """Start the scrobbler (from env unless given). A configuration error leaves it stopped."""
        if self._scrobbler is not None:
            return
        if scrobbler is None:
            try:
                scrobbler = ListenBrainzScrobbler.from_env()
            except ConfigurationError as e:
                self.config_error = str(e)
                logger.error("ListenBrainz scrobbler not started: %s", e)
                return
        self.config_error = None
        self._scrobbler = scrobbler
        scrobbler.start()
        if spotify_poll:
            self.start_spotify()

    def start_spotify(self) -> bool:
        """Feed Spotify playback into the running scrobbler. Returns whether the poller runs."""
        if self._scrobbler is None:
            return False
        if self._spotify_source is None:
            self._spotify_source = SpotifyPlaybackSource(
                self._scrobbler.listener,
                get_client=get_spotify_client,
                interval_sec=SPOTIFY_POLL_INTERVAL_SEC,
            )
            self._spotify_source.start()
        return True

    def stop_spotify(self) -> None:
        """Stop polling; the track Spotify was playing ends as if playback stopped."""
        if self._spotify_source is not None:
            self._spotify_source.stop()
            self._spotify_source = None

    def stop(self) -> None:
        self.stop_spotify()
        if self._scrobbler is not None:
            self._scrobbler.close()
            self._scrobbler = None


_state = AppState()


def get_state() -> AppState:
    return _state


def get_scrobbler(state: AppState = Depends(get_state)) -> ListenBrainzScrobbler:
    """Route dependency: the running scrobbler, or 503 with the configuration problem."""
    if state.scrobbler is None:
        raise HTTPException(
            status_code=503,
            detail=state.config_error or "ListenBrainz scrobbler is not running.",
        )
    return state.scrobbler
