"""
Playback session: the state machine that owns one media source.

A session is used either as the process-wide global session
(init_session / get_session) or transiently per widget (standalone,
usually as a context manager). Both behave identically; sessions
coordinate only through the broadcast channel.
"""

import math
import uuid
from typing import Any, Optional

from loguru import logger

from .broadcast import BroadcastChannel, PlayAnnouncement, playback_channel
from .fade import FadeController, Scheduler
from .models import MIN_FADE_FLOOR, PlaybackState, SessionConfig, Track
from .source import MediaSource, PlaybackDenied, SourceEvent
from .volume_store import KeyValueStore, VolumeStore


class SessionClosedError(RuntimeError):
    """An operation was attempted on a disposed session."""


class SessionNotInitializedError(RuntimeError):
    """get_session() was called before init_session()."""


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _as_number(value: Any) -> Optional[float]:
    """float(value), or None for non-numeric and NaN input."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


class PlaybackSession:
    """Owns a media source and the PlaybackState describing it.

    Args:
        source: The audio output this session controls exclusively
        config: Session configuration (fade, persistence, callbacks)
        channel: Broadcast channel for play announcements
        store: Key-value store for volume persistence (None = memory only)
        scheduler: Timer source for fades (defaults to the asyncio loop)
    """

    def __init__(
        self,
        source: MediaSource,
        config: Optional[SessionConfig] = None,
        channel: Optional[BroadcastChannel] = None,
        store: Optional[KeyValueStore] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.session_id = uuid.uuid4().hex
        self.config = config or SessionConfig()
        self._source = source
        self._channel = channel if channel is not None else playback_channel
        self._volume_store = VolumeStore(store if self.config.persist_volume else None)
        self._closed = False
        # Bumped by every user transition; a play() that resumes after a newer
        # transition must not publish or fade.
        self._generation = 0
        self._wants_play = False
        # True once the loaded track has reached its full level at least once
        self._faded_in = False

        volume = _clamp(self.config.default_volume, 0.0, 1.0)
        if self.config.persist_volume:
            saved = self._volume_store.load(self.config.storage_key)
            if saved is not None:
                volume = saved

        self.state = PlaybackState(volume=volume, display_volume=volume)
        self._source.volume = volume

        self._fade = FadeController(
            apply=self._apply_fade_level,
            duration_ms=self.config.fade_in_duration_ms,
            on_complete=self._on_fade_complete,
            scheduler=scheduler,
        )

        self._source_handlers = {
            SourceEvent.TIME_UPDATE: self._on_time_update,
            SourceEvent.LOADED_METADATA: self._on_loaded_metadata,
            SourceEvent.ENDED: self._on_ended,
            SourceEvent.PLAY: self._on_source_play,
            SourceEvent.PAUSE: self._on_source_pause,
        }
        for event, handler in self._source_handlers.items():
            self._source.add_listener(event, handler)

        self._unsubscribe = self._channel.subscribe(self._on_announcement)

        logger.debug(
            f"Session {self.session_id[:8]} created: volume={volume:.2f}, "
            f"fade={self.config.fade_in_enabled} ({self.config.fade_in_duration_ms}ms)"
        )

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def source(self) -> MediaSource:
        return self._source

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def current_track(self) -> Optional[Track]:
        return self.state.current_track

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def current_time(self) -> float:
        return self.state.current_time

    @property
    def duration(self) -> float:
        return self.state.duration

    @property
    def volume(self) -> float:
        return self.state.volume

    @property
    def display_volume(self) -> float:
        return self.state.display_volume

    @property
    def is_fading_in(self) -> bool:
        return self.state.is_fading_in

    def is_current(self, track: Track) -> bool:
        current = self.state.current_track
        return current is not None and current.id == track.id

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def play(self, track: Track) -> bool:
        """Load (if needed) and start track, fading in if enabled.

        Returns True if the source started. A denied start is logged and
        leaves the session loaded but paused.
        """
        self._ensure_open()

        if self.is_current(track):
            if self.state.is_playing:
                logger.debug(f"play({track.id}): already playing")
                return True
            return await self._resume()

        self._generation += 1
        self._wants_play = True
        self._fade.cancel()

        self._faded_in = False
        self.state.current_track = track
        self.state.current_time = 0.0
        self.state.duration = track.duration or 0.0
        self.state.is_fading_in = False
        self.state.display_volume = self.state.volume
        # After the state reset: a source may report metadata while loading
        self._source.load(track.audio_url)

        logger.info(f"Loading track: {track.id} ({track.title})")
        return await self._start(start_level=0.0)

    def pause(self) -> None:
        """Stop producing sound. A running fade is suspended, not finished."""
        self._ensure_open()
        if self.state.current_track is None:
            return

        self._generation += 1
        self._wants_play = False
        self._fade.cancel()
        self._source.pause()
        if self.config.on_pause:
            self.config.on_pause()

    async def toggle_play(self) -> bool:
        """Pause if playing, resume if paused. Returns whether it is now playing."""
        self._ensure_open()
        if self.state.current_track is None:
            return False

        if self.state.is_playing:
            self.pause()
            return False
        return await self._resume()

    def seek(self, seconds: Any) -> None:
        """Jump to seconds, clamped into [0, duration]."""
        self._ensure_open()
        if self.state.current_track is None:
            return

        position = _as_number(seconds)
        if position is None:
            logger.warning(f"Rejected seek to {seconds!r}")
            return

        upper = self.state.duration if self.state.duration > 0 else math.inf
        position = _clamp(position, 0.0, upper)

        self._source.seek(position)
        self.state.current_time = position

    def set_volume(self, volume: Any) -> None:
        """Set the user's volume, cancelling any fade, and persist it."""
        self._ensure_open()

        value = _as_number(volume)
        if value is None:
            logger.warning(f"Rejected volume {volume!r}")
            return
        value = _clamp(value, 0.0, 1.0)

        self._fade.cancel()
        self.state.is_fading_in = False
        if self.state.is_playing:
            self._faded_in = True

        self._source.volume = value
        self.state.volume = value
        self.state.display_volume = value

        if self.config.persist_volume:
            self._volume_store.save(self.config.storage_key, value)

    def stop(self) -> None:
        """Stop playback and release the loaded track."""
        self._ensure_open()

        self._generation += 1
        self._wants_play = False
        self._fade.cancel()
        self._source.pause()
        self._source.seek(0.0)
        self._source.unload()
        self._source.volume = self.state.volume
        self._faded_in = False
        self.state.clear_track()

    def dispose(self) -> None:
        """Tear the session down: cancel fades, detach, release the source."""
        if self._closed:
            return

        self._fade.cancel()
        self._unsubscribe()
        for event, handler in self._source_handlers.items():
            self._source.remove_listener(event, handler)

        self._source.pause()
        self._source.unload()
        self._source.close()
        self.state.clear_track()
        self._closed = True
        logger.debug(f"Session {self.session_id[:8]} disposed")

    def __enter__(self) -> "PlaybackSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    # ------------------------------------------------------------------
    # Start / resume
    # ------------------------------------------------------------------

    async def _resume(self) -> bool:
        self._generation += 1
        self._wants_play = True
        self._fade.cancel()

        if self.state.is_fading_in:
            # Continue the suspended ramp from where it was paused
            start_level = self.state.display_volume
        elif self._faded_in:
            start_level = max(self.state.volume, MIN_FADE_FLOOR)
        else:
            # Never audible yet (denied or superseded start), or ended
            start_level = 0.0
        return await self._start(start_level)

    async def _start(self, start_level: float) -> bool:
        track = self.state.current_track
        generation = self._generation
        target = max(self.state.volume, MIN_FADE_FLOOR)
        fading = self.config.fade_in_enabled and start_level < target

        self._source.volume = start_level if fading else target

        try:
            await self._source.play()
        except PlaybackDenied as e:
            logger.info(f"Playback start denied for {track.id if track else None}: {e}")
            if generation == self._generation and not self._closed:
                self._source.volume = self.state.display_volume
            return False

        if generation != self._generation or self._closed:
            logger.debug("Start superseded by a newer transition; skipping fade")
            if not self._wants_play and not self._closed:
                self._source.pause()
            return False

        if target > self.state.volume:
            # Floor lifts the level above the user's volume; keep them in step
            self.state.volume = target

        self._channel.publish(track.id, origin=self.session_id)

        if fading:
            self.state.is_fading_in = True
            self.state.display_volume = start_level
            self._fade.start(target, start_level)
        else:
            self._faded_in = True
            self.state.is_fading_in = False
            self.state.display_volume = target

        if self.config.on_play:
            self.config.on_play(track)
        return True

    # ------------------------------------------------------------------
    # Fade callbacks
    # ------------------------------------------------------------------

    def _apply_fade_level(self, level: float) -> None:
        self._source.volume = level
        self.state.display_volume = level

    def _on_fade_complete(self, target: float) -> None:
        self._faded_in = True
        self.state.is_fading_in = False
        self.state.display_volume = target

    # ------------------------------------------------------------------
    # Source events
    # ------------------------------------------------------------------

    def _on_time_update(self, seconds: float) -> None:
        if self.state.current_track is None:
            return
        self.state.current_time = seconds
        if self.config.on_time_update:
            self.config.on_time_update(seconds)

    def _on_loaded_metadata(self, duration: float) -> None:
        if self.state.current_track is None:
            return
        if not math.isfinite(duration) or duration <= 0:
            return
        self.state.duration = float(duration)

    def _on_ended(self) -> None:
        if self.state.current_track is None:
            return

        self._fade.cancel()
        self._faded_in = False
        self.state.is_playing = False
        self.state.current_time = 0.0
        self.state.is_fading_in = False
        self.state.display_volume = self.state.volume
        logger.info(f"Track ended: {self.state.current_track.id}")
        if self.config.on_end:
            self.config.on_end()

    def _on_source_play(self) -> None:
        if self.state.current_track is None:
            return
        self.state.is_playing = True

    def _on_source_pause(self) -> None:
        self.state.is_playing = False

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------

    def _on_announcement(self, announcement: PlayAnnouncement) -> None:
        if self._closed or announcement.origin == self.session_id:
            return

        current = self.state.current_track
        if current is None:
            return
        if announcement.origin is None and announcement.track_id == current.id:
            return

        if self.state.is_playing:
            logger.debug(
                f"Session {self.session_id[:8]} pausing: {announcement.track_id} "
                f"started elsewhere"
            )
            self.pause()

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Playback session {self.session_id[:8]} is closed")


# Global session (one per process)
_session: Optional[PlaybackSession] = None


def init_session(
    source: MediaSource,
    config: Optional[SessionConfig] = None,
    channel: Optional[BroadcastChannel] = None,
    store: Optional[KeyValueStore] = None,
    scheduler: Optional[Scheduler] = None,
) -> PlaybackSession:
    """Create the global session, disposing any previous one."""
    global _session
    if _session is not None:
        _session.dispose()
    _session = PlaybackSession(source, config, channel=channel, store=store, scheduler=scheduler)
    return _session


def get_session() -> PlaybackSession:
    """Get the global session.

    Raises:
        SessionNotInitializedError: If init_session() has not been called
    """
    if _session is None:
        raise SessionNotInitializedError("get_session() called before init_session()")
    return _session


def has_session() -> bool:
    return _session is not None


def close_session() -> None:
    """Dispose the global session, if any."""
    global _session
    if _session is not None:
        _session.dispose()
        _session = None
