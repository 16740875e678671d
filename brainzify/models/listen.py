"""Listen record: one candidate or qualified play of a track."""
from dataclasses import dataclass, replace
from typing import Optional


@dataclass
class Listen:
    """Metadata of a single play. listened_at == 0 means no candidate yet."""
    artist: str = ""
    title: str = ""
    album: Optional[str] = None
    track_number: Optional[str] = None
    recording_mbid: Optional[str] = None
    duration: int = 0  # seconds
    listened_at: int = 0  # unix seconds, when playback began

    @property
    def is_started(self) -> bool:
        return self.listened_at != 0

    @property
    def is_complete(self) -> bool:
        """True when artist and title are both present."""
        return bool(self.artist) and bool(self.title)

    def clear(self) -> None:
        """Drop every field, turning this back into an empty candidate."""
        self.artist = ""
        self.title = ""
        self.album = None
        self.track_number = None
        self.recording_mbid = None
        self.duration = 0
        self.listened_at = 0

    def take(self) -> "Listen":
        """Return a copy of this listen and reset self to empty."""
        taken = replace(self)
        self.clear()
        return taken
