"""Tests for volume persistence."""

import json
from pathlib import Path

import pytest

from soloist.domain.playback.volume_store import (
    JsonFileStore,
    MemoryStore,
    VolumeStore,
    format_volume,
    parse_volume,
)


class BrokenStore:
    def get(self, key: str):
        raise OSError("storage unavailable")

    def set(self, key: str, value: str) -> None:
        raise OSError("storage unavailable")


class TestParseVolume:
    @pytest.mark.parametrize("raw,expected", [("0.42", 0.42), ("0", 0.0), ("1", 1.0)])
    def test_valid(self, raw: str, expected: float) -> None:
        assert parse_volume(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", "nan", "1.5", "-0.1", None])
    def test_invalid_is_absent(self, raw) -> None:
        assert parse_volume(raw) is None


def test_format_volume_is_canonical() -> None:
    assert format_volume(0.42) == "0.42"
    assert format_volume(1.0) == "1"
    assert format_volume(0) == "0"


class TestVolumeStore:
    def test_save_then_load(self) -> None:
        volumes = VolumeStore(MemoryStore())

        assert volumes.save("player.volume", 0.42)
        assert volumes.load("player.volume") == 0.42

    def test_missing_key_is_absent(self) -> None:
        assert VolumeStore(MemoryStore()).load("player.volume") is None

    def test_malformed_value_is_absent(self) -> None:
        volumes = VolumeStore(MemoryStore({"player.volume": "abc"}))
        assert volumes.load("player.volume") is None

    def test_broken_store_is_tolerated(self) -> None:
        volumes = VolumeStore(BrokenStore())

        assert volumes.load("player.volume") is None
        assert volumes.save("player.volume", 0.5) is False

    def test_no_store_keeps_nothing(self) -> None:
        volumes = VolumeStore(None)

        assert volumes.save("player.volume", 0.5) is False
        assert volumes.load("player.volume") is None


class TestJsonFileStore:
    def test_round_trip_through_file(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "settings.json"
        store = JsonFileStore(path)

        store.set("player.volume", "0.3")

        assert json.loads(path.read_text()) == {"player.volume": "0.3"}
        assert JsonFileStore(path).get("player.volume") == "0.3"

    def test_keeps_other_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"theme": "dark"}))

        JsonFileStore(path).set("player.volume", "1")

        assert json.loads(path.read_text()) == {"theme": "dark", "player.volume": "1"}

    def test_missing_file_reads_absent(self, tmp_path: Path) -> None:
        assert JsonFileStore(tmp_path / "none.json").get("player.volume") is None

    def test_corrupt_file_degrades_through_volume_store(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("not json")

        assert VolumeStore(JsonFileStore(path)).load("player.volume") is None

    def test_non_object_file_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")

        with pytest.raises(ValueError):
            JsonFileStore(path).get("player.volume")
