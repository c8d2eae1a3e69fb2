"""
Volume persistence over a simple key-value string store.
"""

import json
import math
from pathlib import Path
from typing import Optional, Protocol

from loguru import logger


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """In-memory store (lost on exit)."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """String values kept in a single JSON object file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Settings file is not a JSON object: {self.path}")
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


def format_volume(value: float) -> str:
    """Shortest decimal string for a volume ("0.42", "1", "0")."""
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def parse_volume(raw: Optional[str]) -> Optional[float]:
    """Parse a stored volume, returning None unless it is a number in [0, 1]."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        return None
    return value


class VolumeStore:
    """Load/save the user's volume, tolerating a missing or broken store.

    With store=None the session keeps volume in memory only.
    """

    def __init__(self, store: Optional[KeyValueStore]):
        self.store = store

    def load(self, key: str) -> Optional[float]:
        if self.store is None:
            return None
        try:
            raw = self.store.get(key)
        except Exception as e:
            logger.warning(f"Could not read saved volume '{key}': {e}")
            return None

        value = parse_volume(raw)
        if raw is not None and value is None:
            logger.warning(f"Ignoring malformed saved volume '{key}'={raw!r}")
        return value

    def save(self, key: str, value: float) -> bool:
        """Persist value. Returns False when the store was unavailable."""
        if self.store is None:
            return False
        try:
            self.store.set(key, format_volume(value))
            return True
        except Exception as e:
            logger.warning(f"Could not save volume '{key}': {e}")
            return False
