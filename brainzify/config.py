"""Configuration: env, ListenBrainz credentials, local API, Spotify polling."""
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

from dotenv import load_dotenv

from brainzify.errors import ConfigurationError

# Base paths (project root = parent of brainzify package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so LISTENBRAINZ_USER_TOKEN etc. are set
load_dotenv(BASE_DIR / ".env")
DATA_DIR = BASE_DIR / "data"
SPOTIFY_TOKEN_CACHE = DATA_DIR / ".spotify-token"

VERSION = "0.1.0"
USER_AGENT = f"brainzify/{VERSION}"

# API
API_HOST = os.getenv("BRAINZIFY_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("BRAINZIFY_API_PORT", "8000"))

# ListenBrainz
DEFAULT_SUBMISSION_HOST = "api.listenbrainz.org"
SUBMISSION_PATH = "/1/submit-listens"
TOKEN_HELP_URL = "https://listenbrainz.org/profile/"

# Spotify (OAuth; tokens stored on device after first connect)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.getenv("SPOTIFY_REDIRECT_URI", "http://localhost:8000/api/spotify/callback")
SPOTIFY_SCOPES = "user-read-playback-state user-read-currently-playing"
# After OAuth callback, redirect here (e.g. http://localhost:5173 for Vite dev)
BRAINZIFY_WEB_ORIGIN = os.getenv("BRAINZIFY_WEB_ORIGIN", "")

# Poll Spotify playback and scrobble it (off unless explicitly enabled)
SPOTIFY_POLL_ENABLED = os.getenv("BRAINZIFY_SPOTIFY_POLL", "0").lower() in ("1", "true", "yes")
SPOTIFY_POLL_INTERVAL_SEC = float(os.getenv("BRAINZIFY_SPOTIFY_POLL_INTERVAL", "5"))


@dataclass(frozen=True)
class SubmissionSettings:
    """Where and as whom listens are submitted."""
    user_token: str
    host: str
    port: int
    path: str

    @property
    def url(self) -> str:
        if self.port == 443:
            return f"https://{self.host}{self.path}"
        return f"https://{self.host}:{self.port}{self.path}"


def load_submission_settings(
    user_token: str | None = None,
    submission_host: str | None = None,
) -> SubmissionSettings:
    """Build submission settings from arguments, falling back to the environment.

    Raises ConfigurationError when the user token is missing or the submission
    host does not form a valid https URL.
    """
    if user_token is None:
        user_token = os.getenv("LISTENBRAINZ_USER_TOKEN", "")
    if submission_host is None:
        submission_host = os.getenv("LISTENBRAINZ_SUBMISSION_URL", DEFAULT_SUBMISSION_HOST)

    user_token = user_token.strip()
    if not user_token:
        raise ConfigurationError(
            "ListenBrainz user token not set. Set LISTENBRAINZ_USER_TOKEN and restart. "
            f"Visit {TOKEN_HELP_URL} to get a user token."
        )

    submission_host = (submission_host or "").strip()
    try:
        parts = urlsplit(f"https://{submission_host}{SUBMISSION_PATH}")
        host = parts.hostname
        port = parts.port or 443
    except ValueError:
        host = None
        port = 443
    if not submission_host or not host:
        raise ConfigurationError(
            "ListenBrainz API URL invalid. Set a valid endpoint host; "
            f"the default value is {DEFAULT_SUBMISSION_HOST}."
        )
    return SubmissionSettings(user_token=user_token, host=host, port=port, path=parts.path)


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
