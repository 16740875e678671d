"""Player state and track snapshots reported by a media engine."""
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Protocol


class PlayerState(IntEnum):
    """Lifecycle of the current media, in the order a player walks through it."""
    STOPPED = 0
    STARTED = 1
    PLAYING = 2
    PAUSED = 3
    STOPPING = 4

    @classmethod
    def from_name(cls, name: str) -> "PlayerState":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown player state: {name!r}") from None


@dataclass
class TrackInfo:
    """What the metadata provider knows about a media item.

    preparsed is False while the engine is still reading tags; such items are
    only captured once playback actually starts.
    """
    title: Optional[str] = None
    artist: Optional[str] = None
    album_artist: Optional[str] = None
    album: Optional[str] = None
    track_number: Optional[str] = None
    recording_mbid: Optional[str] = None
    duration_sec: float = 0.0
    has_video: bool = False
    preparsed: bool = True
    uri: Optional[str] = None


class PlayerListener(Protocol):
    """Inbound notifications from a media engine."""

    def on_state_changed(self, state: PlayerState, media: Optional[TrackInfo]) -> None: ...

    def on_current_media_changed(self, media: Optional[TrackInfo]) -> None: ...

    def on_timer_update(self, position_sec: float) -> None: ...
