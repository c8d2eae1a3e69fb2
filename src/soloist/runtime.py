"""
Wiring from configuration to a running playback session.

Shared by the CLI and the web API.
"""

from typing import Any

from loguru import logger

from soloist.core.config import Config, get_settings_path
from soloist.domain.playback import (
    JsonFileStore,
    MediaSource,
    MemorySource,
    PlaybackSession,
    init_session,
)
from soloist.domain.playback.mpv import MpvSource, MpvUnavailableError


def create_source(config: Config, fallback_to_memory: bool = False) -> MediaSource:
    """Build the configured media source.

    Raises:
        MpvUnavailableError: If mpv is configured but cannot be started
            and fallback_to_memory is False
    """
    if config.player.backend == "memory":
        return MemorySource()

    try:
        return MpvSource.launch(config.player.mpv_socket_path)
    except MpvUnavailableError:
        if not fallback_to_memory:
            raise
        logger.warning("mpv unavailable, falling back to headless memory source")
        return MemorySource()


def create_session(config: Config, source: MediaSource, **callbacks: Any) -> PlaybackSession:
    """Standalone session persisting volume to the configured settings file."""
    return PlaybackSession(
        source,
        config.player.to_session_config(**callbacks),
        store=JsonFileStore(get_settings_path(config)),
    )


def init_global_session(config: Config, source: MediaSource, **callbacks: Any) -> PlaybackSession:
    """Same as create_session, but installed as the process-wide session."""
    return init_session(
        source,
        config.player.to_session_config(**callbacks),
        store=JsonFileStore(get_settings_path(config)),
    )
