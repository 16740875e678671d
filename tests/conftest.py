"""
Shared pytest fixtures for brainzify tests.

Tests use the doubles in tests/doubles.py; no sockets, environment variables or
real Spotify accounts are involved.
"""

import pytest

from brainzify.config import SubmissionSettings
from brainzify.core.listen_queue import ListenQueue
from brainzify.core.submitter import SubmissionWorker
from brainzify.core.tracker import ListenTracker
from tests.doubles import FakeClock, FakeTransport

# Short backoff so retry tests finish quickly
TEST_RETRY_DELAY_SEC = 0.3


@pytest.fixture
def settings():
    return SubmissionSettings(
        user_token="test-token",
        host="api.listenbrainz.org",
        port=443,
        path="/1/submit-listens",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def queue():
    return ListenQueue()


@pytest.fixture
def tracker(queue, clock):
    return ListenTracker(queue, clock=clock)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def make_worker(queue, settings):
    """Factory for started workers; every worker is stopped after the test."""
    workers = []

    def _make(transport, retry_delay_sec=TEST_RETRY_DELAY_SEC, start=True):
        worker = SubmissionWorker(queue, settings, transport=transport, retry_delay_sec=retry_delay_sec)
        workers.append(worker)
        if start:
            worker.start()
        return worker

    yield _make
    for worker in workers:
        worker.stop(timeout=2.0)
