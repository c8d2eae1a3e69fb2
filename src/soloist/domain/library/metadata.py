"""
Build playable tracks from local audio files.

Reads tags with Mutagen and falls back to the filename when a file has
no usable metadata.
"""

import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError

from soloist.domain.playback.models import Track


def get_tag_value(audio_file: Any, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
            if value:
                if isinstance(value, list) and value:
                    return str(value[0])
                return str(value)
        except (KeyError, ValueError):
            # Some formats (like Vorbis) raise ValueError for non-existent keys
            continue
    return None


def extract_metadata_from_filename(local_path: str) -> dict[str, Optional[str]]:
    """Parse "Artist - Title" from the filename as a fallback."""
    title = Path(local_path).stem
    artist = None

    if " - " in title:
        artist, title = (part.strip() for part in title.split(" - ", 1))

    return {"title": title, "artist": artist}


def load_peaks(path: Path) -> Optional[tuple[float, ...]]:
    """Read cached peaks from a WaveSurfer-format JSON file, if present."""
    path = Path(path)
    if not path.exists():
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        peaks = data["peaks"] if isinstance(data, dict) else data
        return tuple(float(p) for p in peaks)
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"Ignoring unreadable peaks file {path}: {e}")
        return None


def track_from_file(local_path: str, peaks_path: Optional[Path] = None) -> Track:
    """Create a Track for a local audio file.

    The resolved path is the track id and its file:// URI the locator.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(local_path).expanduser().resolve()
    if not path.exists():
        raise FileNotFoundError(f"Audio file not found: {path}")

    fallback = extract_metadata_from_filename(str(path))
    title = fallback["title"]
    artist = fallback["artist"]
    album = None
    duration = None

    try:
        audio_file = MutagenFile(str(path))
    except (MutagenError, OSError) as e:
        logger.warning(f"Could not read metadata from {path}: {e}")
        audio_file = None

    if audio_file is not None:
        # ID3 (MP3), MP4, and Vorbis/Opus tags (lowercase)
        title = get_tag_value(audio_file, ["TIT2", "\xa9nam", "TITLE", "title"]) or title
        artist = get_tag_value(audio_file, ["TPE1", "\xa9ART", "ARTIST", "artist"]) or artist
        album = get_tag_value(audio_file, ["TALB", "\xa9alb", "ALBUM", "album"])
        if hasattr(audio_file, "info"):
            duration = getattr(audio_file.info, "length", None)

    return Track(
        id=str(path),
        title=title,
        audio_url=path.as_uri(),
        artist=artist,
        album=album,
        duration=duration,
        peaks=load_peaks(peaks_path) if peaks_path else None,
    )


def get_display_name(track: Track) -> str:
    """Get a display-friendly name for the track."""
    if track.artist and track.title:
        return f"{track.artist} - {track.title}"
    return track.title or "<Unknown Track>"
