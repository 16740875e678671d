"""Core services: listen tracking, submission worker, Spotify playback source."""
from brainzify.core.scrobbler import ListenBrainzScrobbler
from brainzify.core.spotify_source import SpotifyPlaybackSource

__all__ = ["ListenBrainzScrobbler", "SpotifyPlaybackSource"]
