"""Player router for controlling the global playback session."""

from fastapi import APIRouter, Depends
from loguru import logger

from soloist.domain.playback import PlaybackSession

from ..deps import get_playback_session
from ..schemas import (
    PlaybackStateResponse,
    PlayResponse,
    SeekRequest,
    TrackPayload,
    VolumeRequest,
)
from ..sync_manager import sync_manager

router = APIRouter()


async def _state_changed(session: PlaybackSession) -> PlaybackStateResponse:
    """Notify connected clients and return the new state."""
    await sync_manager.broadcast_playback_state(session)
    return PlaybackStateResponse.from_state(session.state)


@router.get("/player/state", response_model=PlaybackStateResponse)
async def get_state(session: PlaybackSession = Depends(get_playback_session)):
    return PlaybackStateResponse.from_state(session.state)


@router.post("/player/play", response_model=PlayResponse)
async def play(track: TrackPayload, session: PlaybackSession = Depends(get_playback_session)):
    """Load and start a track (resumes it if it is already loaded)."""
    started = await session.play(track.to_track())
    if not started:
        logger.info(f"Play request for {track.id} did not start")
    state = await _state_changed(session)
    return PlayResponse(started=started, state=state)


@router.post("/player/pause", response_model=PlaybackStateResponse)
async def pause(session: PlaybackSession = Depends(get_playback_session)):
    session.pause()
    return await _state_changed(session)


@router.post("/player/toggle", response_model=PlaybackStateResponse)
async def toggle(session: PlaybackSession = Depends(get_playback_session)):
    await session.toggle_play()
    return await _state_changed(session)


@router.post("/player/seek", response_model=PlaybackStateResponse)
async def seek(request: SeekRequest, session: PlaybackSession = Depends(get_playback_session)):
    session.seek(request.time)
    return await _state_changed(session)


@router.post("/player/volume", response_model=PlaybackStateResponse)
async def set_volume(
    request: VolumeRequest, session: PlaybackSession = Depends(get_playback_session)
):
    session.set_volume(request.volume)
    return await _state_changed(session)


@router.post("/player/stop", response_model=PlaybackStateResponse)
async def stop(session: PlaybackSession = Depends(get_playback_session)):
    session.stop()
    return await _state_changed(session)
