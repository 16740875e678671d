"""Data models for listens and player playback."""
from brainzify.models.listen import Listen
from brainzify.models.playback import PlayerListener, PlayerState, TrackInfo

__all__ = [
    "Listen",
    "PlayerListener",
    "PlayerState",
    "TrackInfo",
]
