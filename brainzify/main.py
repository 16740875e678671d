"""Entry: start API server, ListenBrainz submission worker and optional Spotify poller."""
import logging
import uvicorn

from brainzify.config import API_HOST, API_PORT

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    uvicorn.run(
        "brainzify.api.app:app",
        host=API_HOST,
        port=API_PORT,
    )
