"""Background worker: drain pending listens in batches and submit them, backing off on failure."""
import logging
import threading
from typing import List, Optional

from brainzify.config import SubmissionSettings
from brainzify.core.listen_queue import ListenQueue
from brainzify.core.payload import build_payload, build_request, check_response
from brainzify.core.transport import RESPONSE_MAX_BYTES, CancellationToken, TLSTransport
from brainzify.errors import AuthError, SerializationError, SubmissionError, TransportError
from brainzify.models.listen import Listen

logger = logging.getLogger(__name__)

# After a failed submission wait this long before trying again (no retry cap)
RETRY_DELAY_SEC = 60.0


class SubmissionWorker:
    """Single thread that owns every network call to the submission endpoint.

    The queue lock is held while deciding what to send and released for the
    whole network exchange; on success exactly the submitted batch is removed
    from the head of the queue, so listens queued mid-flight go out next cycle.
    """

    def __init__(
        self,
        queue: ListenQueue,
        settings: SubmissionSettings,
        transport: Optional[TLSTransport] = None,
        token: Optional[CancellationToken] = None,
        retry_delay_sec: float = RETRY_DELAY_SEC,
    ) -> None:
        self._queue = queue
        self._settings = settings
        self._transport = transport or TLSTransport()
        self._token = token or CancellationToken()
        self._retry_delay_sec = retry_delay_sec
        self._backing_off = False
        self._last_error: Optional[str] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def backing_off(self) -> bool:
        with self._queue.lock:
            return self._backing_off

    @property
    def last_error(self) -> Optional[str]:
        with self._queue.lock:
            return self._last_error

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running():
            return
        self._thread = threading.Thread(target=self._run, name="listenbrainz-submit", daemon=True)
        self._thread.start()
        logger.info("Submission worker started (%s)", self._settings.url)

    def stop(self, timeout: float = 5.0) -> None:
        """Close the queue, interrupt any in-flight request and join the thread."""
        self._queue.close()
        self._token.kill()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Submission worker did not stop within %.1fs", timeout)
            self._thread = None

    def _next_batch(self) -> Optional[List[Listen]]:
        """Wait out any backoff, then until listens are pending. None means shut down."""
        queue = self._queue
        with queue.wake:
            if self._backing_off and not queue.wait_closed_locked(self._retry_delay_sec):
                return None
            if not queue.wait_for_listens_locked():
                return None
            return queue.batch_locked()

    def _run(self) -> None:
        while True:
            batch = self._next_batch()
            if batch is None:
                break
            error = self._deliver(batch)
            with self._queue.lock:
                if error is None:
                    self._queue.remove_sent_locked(len(batch))
                    self._backing_off = False
                else:
                    self._backing_off = True
                self._last_error = error
        logger.info("Submission worker stopped")

    def _deliver(self, batch: List[Listen]) -> Optional[str]:
        """Submit one batch. Returns None on success, else a short error description."""
        try:
            payload = build_payload(batch)
            request = build_request(payload, self._settings)
            check_response(self._send(request))
        except SerializationError as e:
            logger.warning("Error: %s", e)
            return str(e)
        except AuthError as e:
            logger.warning("%s: check LISTENBRAINZ_USER_TOKEN", e)
            return str(e)
        except (TransportError, SubmissionError) as e:
            logger.warning("Error: Could not transmit request: %s", e)
            return str(e)
        logger.info("Submission successful! (%d listen(s))", len(batch))
        return None

    def _send(self, request: bytes) -> bytes:
        settings = self._settings
        with self._transport.open(settings.host, settings.port, self._token) as connection:
            connection.write(request)
            response = connection.read(RESPONSE_MAX_BYTES)
        logger.debug("Response: %r", response)
        if not response:
            raise TransportError("No response")
        return response
