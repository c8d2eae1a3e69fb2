"""Tests for configuration loading."""

import tomllib
from pathlib import Path

import pytest

from soloist.core.config import (
    Config,
    PlayerConfig,
    create_default_config,
    get_config_dir,
    get_data_dir,
    get_log_file_path,
    get_settings_path,
    load_config,
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point XDG dirs at tmp and make sure env overrides are restored."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for name in ("SOLOIST_ALLOWED_ORIGINS", "SOLOIST_LOG_LEVEL"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(content)
    return path


class TestLoadConfig:
    def test_parses_all_sections(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path,
            """
[player]
backend = "memory"
fade_in_enabled = false
fade_in_duration_ms = 1500
persist_volume = false
storage_key = "widget.volume"
default_volume = 0.5

[storage]
settings_file = "/var/lib/soloist/settings.json"

[logging]
level = "debug"
console_output = true

[web]
host = "0.0.0.0"
port = 9000
allowed_origins = ["https://example.com"]
""",
        )

        config = load_config(path)

        assert config.player == PlayerConfig(
            backend="memory",
            fade_in_enabled=False,
            fade_in_duration_ms=1500,
            persist_volume=False,
            storage_key="widget.volume",
            default_volume=0.5,
        )
        assert config.storage.settings_file == "/var/lib/soloist/settings.json"
        assert config.logging.level == "DEBUG"
        assert config.logging.console_output is True
        assert config.web.port == 9000
        assert config.web.allowed_origins == ["https://example.com"]

    def test_missing_sections_use_defaults(self, tmp_path: Path) -> None:
        config = load_config(write_config(tmp_path, "[web]\nport = 1234\n"))

        assert config.player == PlayerConfig()
        assert config.web.port == 1234

    def test_invalid_player_section_falls_back(self, tmp_path: Path, capsys) -> None:
        config = load_config(write_config(tmp_path, '[player]\nbackend = "cassette"\n'))

        assert config.player == PlayerConfig()
        assert "Invalid player configuration" in capsys.readouterr().out

    def test_malformed_toml_falls_back(self, tmp_path: Path, capsys) -> None:
        config = load_config(write_config(tmp_path, "[player\n"))

        assert config == Config()
        assert "Error loading configuration" in capsys.readouterr().out

    def test_creates_default_file_when_missing(self, tmp_path: Path) -> None:
        path = tmp_path / "new" / "config.toml"

        config = load_config(path)

        assert path.exists()
        assert config == Config()
        assert load_config(path) == Config()

    def test_env_overrides(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SOLOIST_ALLOWED_ORIGINS", "https://a.test, https://b.test")
        monkeypatch.setenv("SOLOIST_LOG_LEVEL", "warning")

        config = load_config(write_config(tmp_path, ""))

        assert config.web.allowed_origins == ["https://a.test", "https://b.test"]
        assert config.logging.level == "WARNING"

    def test_dotenv_in_config_dir(self, tmp_path: Path) -> None:
        env_dir = get_config_dir()
        env_dir.mkdir(parents=True)
        (env_dir / ".env").write_text("SOLOIST_LOG_LEVEL=ERROR\n")

        config = load_config(write_config(tmp_path, ""))

        assert config.logging.level == "ERROR"


def test_default_config_is_valid_toml() -> None:
    data = tomllib.loads(create_default_config())
    assert set(data) == {"player", "storage", "logging", "web"}
    assert data["player"]["fade_in_duration_ms"] == 3000


class TestPlayerConfig:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"backend": "cassette"},
            {"fade_in_duration_ms": -1},
            {"default_volume": 1.5},
            {"storage_key": ""},
        ],
    )
    def test_validate_rejects(self, kwargs) -> None:
        with pytest.raises(ValueError):
            PlayerConfig(**kwargs).validate()

    def test_to_session_config(self) -> None:
        def on_end() -> None:
            pass

        session_config = PlayerConfig(fade_in_duration_ms=500).to_session_config(on_end=on_end)

        assert session_config.fade_in_duration_ms == 500
        assert session_config.on_end is on_end


class TestPaths:
    def test_xdg_dirs(self, tmp_path: Path) -> None:
        assert get_config_dir() == tmp_path / "config" / "soloist"
        assert get_data_dir() == tmp_path / "data" / "soloist"

    def test_settings_and_log_defaults(self, tmp_path: Path) -> None:
        config = Config()
        assert get_settings_path(config) == tmp_path / "data" / "soloist" / "settings.json"
        assert get_log_file_path(config) == tmp_path / "data" / "soloist" / "soloist.log"

    def test_settings_override(self, tmp_path: Path) -> None:
        config = Config()
        config.storage.settings_file = str(tmp_path / "s.json")
        assert get_settings_path(config) == tmp_path / "s.json"
