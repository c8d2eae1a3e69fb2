"""Pytest configuration for backend tests."""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from soloist.domain.playback import (
    MemorySource,
    PlaybackSession,
    SessionConfig,
    close_session,
    init_session,
)

# Add repository root to path so `web.backend` is importable
root_dir = Path(__file__).parent.parent.parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from web.backend.main import app  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def source() -> MemorySource:
    return MemorySource(durations={"file:///music/x.mp3": 180.0})


@pytest.fixture
def session(source: MemorySource):
    """Global session on a headless source (fade and persistence off)."""
    close_session()
    session = init_session(source, SessionConfig(fade_in_enabled=False, persist_volume=False))
    yield session
    close_session()


@pytest.fixture
def client(session: PlaybackSession):
    """Client with the app lifespan running against the prepared session."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def track_payload() -> dict:
    return {
        "id": "x",
        "title": "Track X",
        "artist": "Artist",
        "audioUrl": "file:///music/x.mp3",
        "duration": 180.0,
    }
