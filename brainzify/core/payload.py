"""Build submit-listens payloads and HTTP requests, and read the response status."""
import json
import logging
from typing import Any, Sequence

from brainzify.config import USER_AGENT, SubmissionSettings
from brainzify.errors import AuthError, SerializationError, SubmissionError
from brainzify.models.listen import Listen

logger = logging.getLogger(__name__)

LISTEN_TYPE_SINGLE = "single"
LISTEN_TYPE_IMPORT = "import"


def listen_to_dict(listen: Listen) -> dict[str, Any]:
    """Map a Listen to one entry of the submit-listens payload list."""
    track_metadata: dict[str, Any] = {
        "artist_name": listen.artist,
        "track_name": listen.title,
    }
    if listen.album:
        track_metadata["release_name"] = listen.album
    if listen.recording_mbid:
        track_metadata["additional_info"] = {"recording_mbid": listen.recording_mbid}
    return {
        "listened_at": int(listen.listened_at),
        "track_metadata": track_metadata,
    }


def build_payload(listens: Sequence[Listen]) -> str:
    """Serialize a batch: "single" envelope for one listen, "import" for several."""
    if not listens:
        raise SerializationError("No listens to submit")
    listen_type = LISTEN_TYPE_SINGLE if len(listens) == 1 else LISTEN_TYPE_IMPORT
    try:
        payload = json.dumps(
            {
                "listen_type": listen_type,
                "payload": [listen_to_dict(listen) for listen in listens],
            },
            ensure_ascii=False,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Unable to generate payload: {e}") from e
    logger.debug("Payload: %s", payload)
    return payload


def build_request(payload: str, settings: SubmissionSettings, user_agent: str = USER_AGENT) -> bytes:
    """Wrap payload in a single-shot HTTP/1.1 POST to the submission endpoint."""
    try:
        body = payload.encode("utf-8")
    except UnicodeEncodeError as e:
        raise SerializationError(f"Unable to generate request body: {e}") from e
    host = settings.host if settings.port == 443 else f"{settings.host}:{settings.port}"
    head = (
        f"POST {settings.path} HTTP/1.1\r\n"
        f"Host: {host}\r\n"
        f"Authorization: Token {settings.user_token}\r\n"
        f"User-Agent: {user_agent}\r\n"
        "Connection: close\r\n"
        "Accept-Encoding: identity\r\n"
        f"Content-Length: {len(body)}\r\n"
        "\r\n"
    )
    return head.encode("utf-8") + body


def parse_status(response: bytes) -> int:
    """Return the status code from the first line of a raw HTTP response."""
    status_line = response.split(b"\n", 1)[0].decode("latin-1").strip()
    parts = status_line.split()
    if len(parts) < 2 or not parts[0].startswith("HTTP/") or not parts[1].isdigit():
        raise SubmissionError(f"Invalid status line: {status_line!r}")
    return int(parts[1])


def check_response(response: bytes) -> int:
    """Raise unless the response reports a successful submission."""
    status = parse_status(response)
    if status == 200:
        return status
    if status == 401:
        raise AuthError("Authentication error")
    raise SubmissionError(f"Invalid request (status {status})", status=status)
