"""Library domain - turning audio files into playable tracks."""

from .metadata import (
    extract_metadata_from_filename,
    get_display_name,
    get_tag_value,
    load_peaks,
    track_from_file,
)

__all__ = [
    "extract_metadata_from_filename",
    "get_display_name",
    "get_tag_value",
    "load_peaks",
    "track_from_file",
]
