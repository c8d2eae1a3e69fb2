"""
Playback domain models.

Contains the track value type, the mutable state owned by a playback
session, and the per-session configuration.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, NamedTuple, Optional

# Minimum output level a start/resume ramps to, so playback is never silent
MIN_FADE_FLOOR = 0.1

# Number of discrete steps in a fade ramp
FADE_STEPS = 30

DEFAULT_FADE_DURATION_MS = 3000
DEFAULT_STORAGE_KEY = "player.volume"
DEFAULT_VOLUME = 1.0


class Track(NamedTuple):
    """An identified playable audio item.

    The id is the equality key for "same track". Duration is only
    authoritative until the media source reports the real one.
    """

    id: str
    title: str
    audio_url: str
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[float] = None  # in seconds
    peaks: Optional[tuple[float, ...]] = None  # pre-computed amplitude samples

    @property
    def has_peaks(self) -> bool:
        return bool(self.peaks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "audioUrl": self.audio_url,
            "duration": self.duration,
            "peaks": list(self.peaks) if self.peaks is not None else None,
        }


def track_from_dict(data: dict[str, Any]) -> Track:
    """Build a Track from a camelCase or snake_case mapping.

    Raises:
        KeyError: If id, title or the audio locator is missing
    """
    audio_url = data.get("audioUrl", data.get("audio_url"))
    if audio_url is None:
        raise KeyError("audioUrl")

    peaks = data.get("peaks")
    duration = data.get("duration")
    return Track(
        id=str(data["id"]),
        title=data["title"],
        audio_url=audio_url,
        artist=data.get("artist"),
        album=data.get("album"),
        duration=float(duration) if duration is not None else None,
        peaks=tuple(float(p) for p in peaks) if peaks is not None else None,
    )


@dataclass
class PlaybackState:
    """Mutable playback state, owned exclusively by one PlaybackSession."""

    current_track: Optional[Track] = None
    is_playing: bool = False
    current_time: float = 0.0  # seconds
    duration: float = 0.0  # seconds
    volume: float = DEFAULT_VOLUME  # user's persisted target level
    display_volume: float = DEFAULT_VOLUME  # actual output level, follows fades
    is_fading_in: bool = False

    def clear_track(self) -> None:
        """Reset every track-dependent field to the empty state."""
        self.current_track = None
        self.is_playing = False
        self.current_time = 0.0
        self.duration = 0.0
        self.is_fading_in = False
        self.display_volume = self.volume

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentTrack": self.current_track.to_dict() if self.current_track else None,
            "isPlaying": self.is_playing,
            "currentTime": self.current_time,
            "duration": self.duration,
            "volume": self.volume,
            "displayVolume": self.display_volume,
            "isFadingIn": self.is_fading_in,
        }


@dataclass(frozen=True)
class SessionConfig:
    """Immutable per-session configuration supplied at construction."""

    fade_in_enabled: bool = True
    fade_in_duration_ms: int = DEFAULT_FADE_DURATION_MS
    persist_volume: bool = True
    storage_key: str = DEFAULT_STORAGE_KEY
    default_volume: float = DEFAULT_VOLUME

    # Lifecycle callbacks, invoked synchronously from the matching transition
    on_play: Optional[Callable[[Track], None]] = field(default=None, compare=False)
    on_pause: Optional[Callable[[], None]] = field(default=None, compare=False)
    on_end: Optional[Callable[[], None]] = field(default=None, compare=False)
    on_time_update: Optional[Callable[[float], None]] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.fade_in_duration_ms < 0:
            raise ValueError(
                f"fade_in_duration_ms must be >= 0, got {self.fade_in_duration_ms}"
            )
        if not self.storage_key:
            raise ValueError("storage_key must not be empty")
