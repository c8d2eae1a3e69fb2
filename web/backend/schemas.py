from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from soloist.domain.playback import PlaybackState, Track


class TrackPayload(BaseModel):
    """A track as sent by clients and returned in state."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    audio_url: str
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    peaks: Optional[list[float]] = None

    def to_track(self) -> Track:
        return Track(
            id=self.id,
            title=self.title,
            audio_url=self.audio_url,
            artist=self.artist,
            album=self.album,
            duration=self.duration,
            peaks=tuple(self.peaks) if self.peaks is not None else None,
        )

    @classmethod
    def from_track(cls, track: Track) -> "TrackPayload":
        return cls(
            id=track.id,
            title=track.title,
            audio_url=track.audio_url,
            artist=track.artist,
            album=track.album,
            duration=track.duration,
            peaks=list(track.peaks) if track.peaks is not None else None,
        )


class SeekRequest(BaseModel):
    """Request to seek to a position (seconds; clamped to the track)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    time: float = Field(allow_inf_nan=False)


class VolumeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    volume: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)


class PlaybackStateResponse(BaseModel):
    """Current playback state."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_track: Optional[TrackPayload] = None
    is_playing: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    volume: float = 1.0
    display_volume: float = 1.0
    is_fading_in: bool = False

    @classmethod
    def from_state(cls, state: PlaybackState) -> "PlaybackStateResponse":
        return cls(
            current_track=TrackPayload.from_track(state.current_track)
            if state.current_track
            else None,
            is_playing=state.is_playing,
            current_time=state.current_time,
            duration=state.duration,
            volume=state.volume,
            display_volume=state.display_volume,
            is_fading_in=state.is_fading_in,
        )


class PlayResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    started: bool
    state: PlaybackStateResponse
