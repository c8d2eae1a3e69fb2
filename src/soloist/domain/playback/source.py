"""
Media sources: the audio-producing resource a playback session owns.

A source reports its own transitions through events (time progress,
metadata, end of track, play, pause); the session treats those as the
truth about whether sound is being produced.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from enum import Enum
from typing import Callable, Optional

from loguru import logger


class PlaybackDenied(Exception):
    """The source refused to start producing sound."""


class SourceEvent(Enum):
    TIME_UPDATE = "timeupdate"  # (seconds)
    LOADED_METADATA = "loadedmetadata"  # (duration)
    ENDED = "ended"
    PLAY = "play"
    PAUSE = "pause"


class MediaSource(ABC):
    """Base class for audio output backends.

    Subclasses call emit() for every transition; listeners run
    synchronously on the caller's (event loop) thread.
    """

    def __init__(self):
        self._listeners: dict[SourceEvent, list[Callable[..., None]]] = defaultdict(list)

    def add_listener(self, event: SourceEvent, callback: Callable[..., None]) -> None:
        self._listeners[event].append(callback)

    def remove_listener(self, event: SourceEvent, callback: Callable[..., None]) -> None:
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    def emit(self, event: SourceEvent, *args) -> None:
        for callback in list(self._listeners[event]):
            callback(*args)

    @property
    @abstractmethod
    def url(self) -> Optional[str]:
        """Currently assigned locator, or None."""

    @property
    @abstractmethod
    def volume(self) -> float: ...

    @volume.setter
    @abstractmethod
    def volume(self, value: float) -> None: ...

    @abstractmethod
    def load(self, url: str) -> None:
        """Assign a new locator. Does not start playback."""

    @abstractmethod
    def unload(self) -> None:
        """Release the current locator."""

    @abstractmethod
    async def play(self) -> None:
        """Start producing sound.

        Raises:
            PlaybackDenied: If the backend refuses to start
        """

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def seek(self, seconds: float) -> None: ...

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""


class MemorySource(MediaSource):
    """Headless source that keeps position and output level in memory.

    Time only moves through advance(); useful for tests, for standalone
    widgets without a real backend, and for running the web API headless.

    Args:
        allow_play: When False, every play() raises PlaybackDenied
        durations: Optional url -> duration map reported on load
    """

    def __init__(self, allow_play: bool = True, durations: Optional[dict[str, float]] = None):
        super().__init__()
        self.allow_play = allow_play
        self.durations = dict(durations or {})
        self.is_playing = False
        self.position = 0.0
        self.duration = 0.0
        self.closed = False
        self._url: Optional[str] = None
        self._volume = 1.0

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = max(0.0, min(1.0, value))

    def load(self, url: str) -> None:
        was_playing = self.is_playing
        self.is_playing = False
        self._url = url
        self.position = 0.0
        self.duration = 0.0
        if was_playing:
            self.emit(SourceEvent.PAUSE)
        if url in self.durations:
            self.report_metadata(self.durations[url])

    def unload(self) -> None:
        self.pause()
        self._url = None
        self.position = 0.0
        self.duration = 0.0

    async def play(self) -> None:
        if self._url is None:
            raise PlaybackDenied("no media loaded")
        if not self.allow_play:
            raise PlaybackDenied("playback start not allowed")
        if not self.is_playing:
            self.is_playing = True
            self.emit(SourceEvent.PLAY)

    def pause(self) -> None:
        if self.is_playing:
            self.is_playing = False
            self.emit(SourceEvent.PAUSE)

    def seek(self, seconds: float) -> None:
        self.position = max(0.0, seconds)

    def close(self) -> None:
        self.unload()
        self.closed = True

    def report_metadata(self, duration: float) -> None:
        self.duration = duration
        self.emit(SourceEvent.LOADED_METADATA, duration)

    def advance(self, seconds: float) -> None:
        """Move the playhead forward, ending the track if it runs past duration."""
        if not self.is_playing:
            return

        self.position += seconds
        if self.duration > 0 and self.position >= self.duration:
            logger.debug(f"MemorySource reached end of {self._url}")
            self.position = 0.0
            self.is_playing = False
            self.emit(SourceEvent.PAUSE)
            self.emit(SourceEvent.ENDED)
            return

        self.emit(SourceEvent.TIME_UPDATE, self.position)
