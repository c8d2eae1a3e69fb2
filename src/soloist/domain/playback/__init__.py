"""Playback domain - session state machine and its collaborators.

This domain handles:
- The playback session owning one media source (global or standalone)
- Timed fade-in of the output level
- Process-wide play announcements for mutual exclusion
- Volume persistence
- Waveform cursor/seek synchronization
"""

from .broadcast import BroadcastChannel, PlayAnnouncement, playback_channel
from .fade import AsyncioScheduler, FadeController, Scheduler
from .models import (
    DEFAULT_FADE_DURATION_MS,
    DEFAULT_STORAGE_KEY,
    DEFAULT_VOLUME,
    FADE_STEPS,
    MIN_FADE_FLOOR,
    PlaybackState,
    SessionConfig,
    Track,
    track_from_dict,
)
from .session import (
    PlaybackSession,
    SessionClosedError,
    SessionNotInitializedError,
    close_session,
    get_session,
    has_session,
    init_session,
)
from .source import MediaSource, MemorySource, PlaybackDenied, SourceEvent
from .volume_store import JsonFileStore, KeyValueStore, MemoryStore, VolumeStore
from .waveform_sync import WaveformView, cursor_progress, format_time

__all__ = [
    # Models
    "Track",
    "PlaybackState",
    "SessionConfig",
    "track_from_dict",
    "MIN_FADE_FLOOR",
    "FADE_STEPS",
    "DEFAULT_FADE_DURATION_MS",
    "DEFAULT_STORAGE_KEY",
    "DEFAULT_VOLUME",
    # Session
    "PlaybackSession",
    "SessionClosedError",
    "SessionNotInitializedError",
    "init_session",
    "get_session",
    "has_session",
    "close_session",
    # Fade
    "FadeController",
    "Scheduler",
    "AsyncioScheduler",
    # Broadcast
    "BroadcastChannel",
    "PlayAnnouncement",
    "playback_channel",
    # Sources
    "MediaSource",
    "MemorySource",
    "PlaybackDenied",
    "SourceEvent",
    # Persistence
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "VolumeStore",
    # Waveform sync
    "WaveformView",
    "cursor_progress",
    "format_time",
]
