"""Turn player notifications into qualified listens on the pending queue."""
import logging
import math
import time
from typing import Callable, Optional

from brainzify.core.listen_queue import ListenQueue
from brainzify.errors import CaptureError, QualificationReject
from brainzify.models.playback import PlayerState, TrackInfo

logger = logging.getLogger(__name__)

# A track must have played at least this long to count as a listen
MIN_LISTEN_SEC = 30


def sanitize_text(value) -> Optional[str]:
    """Return value as valid UTF-8 text, or None if it is missing or empty.

    Invalid byte sequences and lone surrogates are replaced so the text can be
    encoded into a request body later on.
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        text = value.decode("utf-8", errors="replace")
    else:
        text = str(value).encode("utf-8", errors="replace").decode("utf-8")
    return text or None


def whole_seconds(value) -> int:
    """Whole non-negative seconds, or 0 for a missing, negative or non-finite value."""
    if value is None:
        return 0
    value = float(value)
    if not math.isfinite(value) or value < 0:
        return 0
    return int(value)


class ListenTracker:
    """Implements the player listener interface on top of a ListenQueue."""

    def __init__(self, queue: ListenQueue, clock: Callable[[], float] = time.time) -> None:
        self._queue = queue
        self._clock = clock

    def capture_metadata(self, media: Optional[TrackInfo]) -> None:
        """Start a candidate listen from the metadata of media that began playing.

        Every field is read before the candidate is touched, so a rejected
        track leaves nothing half filled behind.
        """
        if media is None:
            return
        queue = self._queue
        with queue.wake:
            queue.meta_read = True
            song = queue.current
            try:
                artist = sanitize_text(media.album_artist) or sanitize_text(media.artist)
                if not artist:
                    raise CaptureError("Missing artist")
                title = sanitize_text(media.title)
                if not title:
                    raise CaptureError("Missing title")
            except CaptureError as e:
                logger.debug("%s, discarding track", e)
                song.clear()
                return
            album = sanitize_text(media.album)
            recording_mbid = sanitize_text(media.recording_mbid)
            track_number = sanitize_text(media.track_number)
            duration = whole_seconds(media.duration_sec)
            listened_at = int(self._clock())

            song.artist = artist
            song.title = title
            song.album = album
            song.recording_mbid = recording_mbid
            song.track_number = track_number
            song.duration = duration
            song.listened_at = listened_at
            logger.debug("Meta data registered: %s - %s", song.artist, song.title)
            queue.wake.notify()

    def finalize_track(self) -> None:
        """Queue the current candidate if it qualifies, otherwise discard it."""
        queue = self._queue
        with queue.wake:
            queue.meta_read = False
            song = queue.current
            if not song.is_started:
                return
            if song.duration == 0:
                song.duration = queue.time_played
            try:
                if not song.is_complete:
                    raise QualificationReject("Missing artist or title")
                if queue.time_played < MIN_LISTEN_SEC:
                    raise QualificationReject("Song not listened long enough")
            except QualificationReject as e:
                logger.debug("%s, not submitting", e)
                song.clear()
                return
            logger.debug("Song will be submitted: %s - %s", song.artist, song.title)
            queue.append_locked(song.take())

    # --- player listener interface ---

    def on_state_changed(self, state: PlayerState, media: Optional[TrackInfo]) -> None:
        if media is not None and media.has_video:
            return
        with self._queue.lock:
            meta_read = self._queue.meta_read
        if not meta_read and state >= PlayerState.PLAYING:
            self.capture_metadata(media)
            return
        if state == PlayerState.STOPPED:
            self.finalize_track()

    def on_current_media_changed(self, media: Optional[TrackInfo]) -> None:
        self.finalize_track()
        with self._queue.lock:
            self._queue.meta_read = False
            self._queue.time_played = 0
        if media is None or media.has_video:
            return
        # Metadata not parsed yet is picked up once playback reaches PLAYING
        if media.preparsed:
            self.capture_metadata(media)

    def on_timer_update(self, position_sec: float) -> None:
        if position_sec is None or not math.isfinite(position_sec):
            logger.debug("Ignoring playback position %r", position_sec)
            return
        with self._queue.lock:
            self._queue.time_played = max(0, int(position_sec))
