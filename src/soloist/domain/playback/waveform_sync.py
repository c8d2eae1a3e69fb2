"""
Position/seek contract between a playback session and waveform visualizers.

A visualizer draws one track. When that track is the session's active
track, its cursor follows the session and clicks seek the session.
Otherwise it keeps an isolated local position and never touches the
session.
"""

import math
from typing import Optional

from .models import Track
from .session import PlaybackSession


def format_time(seconds: Optional[float]) -> str:
    """Format seconds as M:SS ("0:00" for missing, negative or NaN input)."""
    if not seconds or math.isnan(seconds) or seconds < 0:
        return "0:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def cursor_progress(current_time: float, total_duration: float) -> float:
    """Cursor position in [0, 1] for current_time within total_duration."""
    if not total_duration or total_duration <= 0 or math.isnan(total_duration):
        return 0.0
    if math.isnan(current_time):
        return 0.0
    return max(0.0, min(1.0, current_time / total_duration))


class WaveformView:
    """Binding between one visualizer (showing track) and a session."""

    def __init__(self, track: Track, session: PlaybackSession):
        self.track = track
        self.session = session
        self.local_position = 0.0
        self._reported_duration: Optional[float] = None

    @property
    def is_active(self) -> bool:
        """True when this view's track is loaded in the session."""
        return self.session.is_current(self.track)

    @property
    def is_playing(self) -> bool:
        return self.is_active and self.session.is_playing

    @property
    def needs_decode(self) -> bool:
        """Without pre-computed peaks the visualizer must decode the audio itself."""
        return not self.track.has_peaks

    @property
    def total_duration(self) -> float:
        if self._reported_duration:
            return self._reported_duration
        return self.track.duration or 0.0

    @property
    def position(self) -> float:
        if self.is_active:
            return self.session.current_time
        return self.local_position

    @property
    def progress(self) -> float:
        return cursor_progress(self.position, self.total_duration)

    def report_duration(self, seconds: float) -> None:
        """The visualizer finished loading and knows the real duration."""
        if seconds and math.isfinite(seconds) and seconds > 0:
            self._reported_duration = float(seconds)

    def interact(self, seconds: float) -> None:
        """User clicked/dragged the waveform at an absolute time."""
        if math.isnan(seconds):
            return

        if self.is_active:
            self.session.seek(seconds)
            return

        upper = self.total_duration if self.total_duration > 0 else math.inf
        self.local_position = max(0.0, min(upper, seconds))

    async def activate(self) -> bool:
        """Play button: toggle when active, otherwise play through the session."""
        if self.is_active:
            return await self.session.toggle_play()
        return await self.session.play(self.track)

    def time_labels(self) -> tuple[str, str]:
        return format_time(self.position), format_time(self.total_duration)
