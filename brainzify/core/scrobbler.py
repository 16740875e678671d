"""ListenBrainz scrobbler: wires queue, tracker and submission worker together."""
import logging
import time
from typing import Any, Callable, Optional

from brainzify.config import SubmissionSettings, load_submission_settings
from brainzify.core.listen_queue import ListenQueue
from brainzify.core.submitter import RETRY_DELAY_SEC, SubmissionWorker
from brainzify.core.tracker import ListenTracker
from brainzify.core.transport import TLSTransport
from brainzify.models.listen import Listen

logger = logging.getLogger(__name__)


def _listen_to_dict(listen: Listen) -> dict[str, Any]:
    return {
        "artist": listen.artist,
        "title": listen.title,
        "album": listen.album,
        "track_number": listen.track_number,
        "recording_mbid": listen.recording_mbid,
        "duration": listen.duration,
        "listened_at": listen.listened_at,
    }


class ListenBrainzScrobbler:
    """Owns one queue, its tracker (the player listener) and its submission worker."""

    def __init__(
        self,
        settings: SubmissionSettings,
        transport: Optional[TLSTransport] = None,
        clock: Callable[[], float] = time.time,
        retry_delay_sec: float = RETRY_DELAY_SEC,
    ) -> None:
        self.settings = settings
        self.queue = ListenQueue()
        self.tracker = ListenTracker(self.queue, clock=clock)
        self.worker = SubmissionWorker(
            self.queue,
            settings,
            transport=transport,
            retry_delay_sec=retry_delay_sec,
        )

    @classmethod
    def from_env(cls, **kwargs) -> "ListenBrainzScrobbler":
        """Build from LISTENBRAINZ_* settings. Raises ConfigurationError if they are unusable."""
        return cls(load_submission_settings(), **kwargs)

    @property
    def listener(self) -> ListenTracker:
        return self.tracker

    def start(self) -> None:
        self.worker.start()

    def close(self) -> None:
        """Stop the worker. Listens still pending are dropped."""
        self.worker.stop()
        pending = len(self.queue)
        if pending:
            logger.info("Dropping %d unsubmitted listen(s) on shutdown", pending)

    def pending_listens(self) -> list[dict[str, Any]]:
        return [_listen_to_dict(listen) for listen in self.queue.pending()]

    def status(self) -> dict[str, Any]:
        current = self.queue.current_listen()
        return {
            "running": self.worker.is_running(),
            "backing_off": self.worker.backing_off,
            "last_error": self.worker.last_error,
            "pending": len(self.queue),
            "submit_url": self.settings.url,
            "current": _listen_to_dict(current) if current else None,
        }
