"""Pending listens and scrobbler status."""
from fastapi import APIRouter, Depends

from brainzify.api.state import get_scrobbler
from brainzify.core.scrobbler import ListenBrainzScrobbler

router = APIRouter()


@router.get("")
def list_listens(scrobbler: ListenBrainzScrobbler = Depends(get_scrobbler)):
    """Listens waiting for submission, oldest first."""
    return {"listens": scrobbler.pending_listens()}


@router.get("/status")
def get_status(scrobbler: ListenBrainzScrobbler = Depends(get_scrobbler)):
    return scrobbler.status()
