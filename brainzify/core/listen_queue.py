"""Pending listens plus the capture state, guarded by one lock and one wake condition."""
import threading
from dataclasses import replace
from typing import List, Optional

from brainzify.models.listen import Listen


class ListenQueue:
    """Shared context between the playback side and the submission worker.

    Everything here is protected by `lock`. Callers that mutate state hold the
    lock through `wake` (a Condition bound to the same lock) and notify it after
    appending, so the worker never misses a wakeup between its emptiness check
    and its wait.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.wake = threading.Condition(self.lock)
        self._pending: List[Listen] = []
        self.alive = True
        # Capture state for the track currently playing
        self.current = Listen()
        self.meta_read = False
        self.time_played = 0

    # --- called with the lock held ---

    def append_locked(self, listen: Listen) -> None:
        """Queue a qualified listen at the tail and wake the worker."""
        self._pending.append(listen)
        self.wake.notify()

    def batch_locked(self) -> List[Listen]:
        """Snapshot of every pending listen, oldest first."""
        return list(self._pending)

    def has_pending_locked(self) -> bool:
        return bool(self._pending)

    def wait_for_listens_locked(self) -> bool:
        """Block until a listen is pending or the queue is closed. Returns alive."""
        while self.alive and not self._pending:
            self.wake.wait()
        return self.alive

    def wait_closed_locked(self, timeout: float) -> bool:
        """Sleep up to timeout seconds, waking early only on close. Returns alive."""
        self.wake.wait_for(lambda: not self.alive, timeout=timeout)
        return self.alive

    def remove_sent_locked(self, count: int) -> None:
        """Drop the first count listens once they were delivered."""
        del self._pending[:count]

    # --- self-locking helpers ---

    def pending(self) -> List[Listen]:
        with self.lock:
            return list(self._pending)

    def current_listen(self) -> Optional[Listen]:
        """Copy of the candidate being captured, or None when nothing is playing."""
        with self.lock:
            if not self.current.is_started:
                return None
            return replace(self.current)

    def close(self) -> None:
        """Mark the queue dead and wake any waiter."""
        with self.wake:
            self.alive = False
            self.wake.notify_all()

    def __len__(self) -> int:
        with self.lock:
            return len(self._pending)
