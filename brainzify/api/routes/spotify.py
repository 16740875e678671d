"""Link a Spotify account whose playback gets scrobbled, and switch the poller with the link."""
import logging
import urllib.parse
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel

from brainzify.api.state import AppState, get_state
from brainzify.config import (
    BRAINZIFY_WEB_ORIGIN,
    SPOTIFY_CLIENT_ID,
    SPOTIFY_CLIENT_SECRET,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_SCOPES,
    SPOTIFY_TOKEN_CACHE,
)
from brainzify.core.spotify_client import exchange_code_and_save_token, get_spotify_client

logger = logging.getLogger(__name__)

router = APIRouter()

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"


class LinkBody(BaseModel):
    """Authorization code, or the redirect URL it was delivered in."""
    code: Optional[str] = None
    redirect_url: Optional[str] = None

    def auth_code(self) -> Optional[str]:
        if self.code and self.code.strip():
            return self.code.strip()
        if self.redirect_url:
            query = urllib.parse.urlsplit(self.redirect_url.strip()).query
            return (urllib.parse.parse_qs(query).get("code") or [None])[0]
        return None


def _link_status(state: AppState) -> dict[str, Any]:
    configured = bool(SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET)
    return {
        "configured": configured,
        "linked": configured and get_spotify_client() is not None,
        "polling": state.spotify_source is not None,
    }


def _link(code: str, state: AppState) -> bool:
    """Store tokens for code, then follow the account's playback."""
    if not exchange_code_and_save_token(code):
        return False
    if not state.start_spotify():
        logger.warning("Spotify linked while the scrobbler is stopped; playback is not polled")
    return True


@router.get("/auth-url")
def get_auth_url(state: AppState = Depends(get_state)):
    """Authorization URL to open in a browser, with link and poller status."""
    auth_url = None
    if SPOTIFY_CLIENT_ID:
        query = urllib.parse.urlencode({
            "client_id": SPOTIFY_CLIENT_ID,
            "response_type": "code",
            "redirect_uri": SPOTIFY_REDIRECT_URI,
            "scope": SPOTIFY_SCOPES,
        })
        auth_url = f"{AUTHORIZE_URL}?{query}"
    return {"auth_url": auth_url, **_link_status(state)}


@router.get("/callback")
def spotify_callback(code: Optional[str] = None, state: AppState = Depends(get_state)):
    """OAuth redirect target: link the account and start scrobbling its playback."""
    if not code:
        return HTMLResponse("<body><p>No authorization code received.</p></body>", status_code=400)
    if not _link(code, state):
        return HTMLResponse("<body><p>Spotify account could not be linked.</p></body>", status_code=502)
    if BRAINZIFY_WEB_ORIGIN:
        return RedirectResponse(url=f"{BRAINZIFY_WEB_ORIGIN.rstrip('/')}/?spotify=linked", status_code=302)
    return HTMLResponse("<body><p>Spotify linked. Its playback is now scrobbled to ListenBrainz.</p></body>")


@router.post("/complete-login")
def complete_login(body: LinkBody, state: AppState = Depends(get_state)):
    """Headless linking: post the code, or the redirect URL the browser failed to load."""
    code = body.auth_code()
    if not code:
        raise HTTPException(status_code=400, detail="No authorization code in 'code' or 'redirect_url'.")
    if not _link(code, state):
        raise HTTPException(status_code=502, detail="Spotify did not accept the authorization code.")
    return {"ok": True, **_link_status(state)}


@router.post("/logout")
def logout(state: AppState = Depends(get_state)):
    """Stop polling, which ends the track being followed, and forget the stored tokens."""
    state.stop_spotify()
    try:
        SPOTIFY_TOKEN_CACHE.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove Spotify token cache: %s", e)
        raise HTTPException(status_code=500, detail="Could not remove the stored Spotify tokens.")
    return {"ok": True, **_link_status(state)}
