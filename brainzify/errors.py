"""Error taxonomy for capture, qualification and delivery of listens."""


class BrainzifyError(Exception):
    """Base class for all brainzify errors."""


class ConfigurationError(BrainzifyError):
    """Missing or invalid user token / submission endpoint. The scrobbler does not start."""


class CaptureError(BrainzifyError):
    """Track metadata lacks artist or title; the candidate listen is discarded."""


class QualificationReject(BrainzifyError):
    """Ended track does not qualify as a listen (too short or incomplete)."""


class SerializationError(BrainzifyError):
    """Payload or request could not be built; the delivery cycle is aborted."""


class TransportError(BrainzifyError):
    """Connect, write or read against the submission endpoint failed."""


class AuthError(BrainzifyError):
    """Submission endpoint rejected the user token (HTTP 401)."""


class SubmissionError(BrainzifyError):
    """Submission endpoint answered with an unexpected or missing status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status
