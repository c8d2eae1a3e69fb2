from fastapi import HTTPException

from soloist.domain.playback import PlaybackSession, SessionNotInitializedError, get_session


def get_playback_session() -> PlaybackSession:
    """FastAPI dependency for the global playback session."""
    try:
        return get_session()
    except SessionNotInitializedError:
        raise HTTPException(status_code=503, detail="Playback session not initialized")
