"""Player notifications pushed by a media engine: state, current media, position timer."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from brainzify.api.state import get_scrobbler
from brainzify.core.scrobbler import ListenBrainzScrobbler
from brainzify.models.playback import PlayerState, TrackInfo

router = APIRouter()


class MediaBody(BaseModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    album_artist: Optional[str] = None
    album: Optional[str] = None
    track_number: Optional[str] = None
    recording_mbid: Optional[str] = None
    duration_sec: float = Field(0.0, ge=0, allow_inf_nan=False)
    has_video: bool = False
    preparsed: bool = True
    uri: Optional[str] = None

    def to_track_info(self) -> TrackInfo:
        return TrackInfo(**self.model_dump())


class StateBody(BaseModel):
    state: str
    media: Optional[MediaBody] = None


class CurrentMediaBody(BaseModel):
    media: Optional[MediaBody] = None


class TimerBody(BaseModel):
    position_sec: float = Field(..., ge=0, allow_inf_nan=False)


def _track_info(media: Optional[MediaBody]) -> Optional[TrackInfo]:
    return media.to_track_info() if media is not None else None


@router.post("/state")
def post_state(body: StateBody, scrobbler: ListenBrainzScrobbler = Depends(get_scrobbler)):
    """Player state changed (stopped, started, playing, paused, stopping)."""
    try:
        state = PlayerState.from_name(body.state)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    scrobbler.listener.on_state_changed(state, _track_info(body.media))
    return {"ok": True, "state": state.name.lower()}


@router.post("/media")
def post_media(body: CurrentMediaBody, scrobbler: ListenBrainzScrobbler = Depends(get_scrobbler)):
    """Current media changed; null media means the playlist ran out."""
    scrobbler.listener.on_current_media_changed(_track_info(body.media))
    return {"ok": True}


@router.post("/timer")
def post_timer(body: TimerBody, scrobbler: ListenBrainzScrobbler = Depends(get_scrobbler)):
    """Periodic playback position of the current media."""
    scrobbler.listener.on_timer_update(body.position_sec)
    return {"ok": True}
