"""
Configuration management for soloist
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from soloist.domain.playback.models import (
    DEFAULT_FADE_DURATION_MS,
    DEFAULT_STORAGE_KEY,
    DEFAULT_VOLUME,
    SessionConfig,
)

VALID_BACKENDS = {"mpv", "memory"}


@dataclass
class PlayerConfig:
    """Configuration for the playback session."""

    backend: str = "mpv"  # 'mpv' or 'memory' (headless)
    mpv_socket_path: Optional[str] = None
    fade_in_enabled: bool = True
    fade_in_duration_ms: int = DEFAULT_FADE_DURATION_MS
    persist_volume: bool = True
    storage_key: str = DEFAULT_STORAGE_KEY
    default_volume: float = DEFAULT_VOLUME

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.backend not in VALID_BACKENDS:
            raise ValueError(
                f"Invalid backend: {self.backend!r}. Valid backends are: {VALID_BACKENDS}"
            )
        if self.fade_in_duration_ms < 0:
            raise ValueError(f"fade_in_duration_ms must be >= 0, got {self.fade_in_duration_ms}")
        if not 0.0 <= self.default_volume <= 1.0:
            raise ValueError(f"default_volume must be in [0, 1], got {self.default_volume}")
        if not self.storage_key:
            raise ValueError("storage_key must not be empty")

    def to_session_config(self, **callbacks: Any) -> SessionConfig:
        """Build a SessionConfig, passing through on_play/on_pause/on_end/on_time_update."""
        return SessionConfig(
            fade_in_enabled=self.fade_in_enabled,
            fade_in_duration_ms=self.fade_in_duration_ms,
            persist_volume=self.persist_volume,
            storage_key=self.storage_key,
            default_volume=self.default_volume,
            **callbacks,
        )


@dataclass
class StorageConfig:
    """Configuration for persisted settings."""

    settings_file: Optional[str] = None  # default: ~/.local/share/soloist/settings.json


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = None  # default: ~/.local/share/soloist/soloist.log
    console_output: bool = False  # Also output to stderr (for debugging)


@dataclass
class WebConfig:
    """Configuration for the web API."""

    host: str = "127.0.0.1"
    port: int = 8642
    allowed_origins: List[str] = field(default_factory=lambda: ["http://localhost:5173"])


@dataclass
class Config:
    """Main configuration object."""

    player: PlayerConfig = field(default_factory=PlayerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    web: WebConfig = field(default_factory=WebConfig)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "soloist"
    return Path.home() / ".config" / "soloist"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "soloist"
    return Path.home() / ".local" / "share" / "soloist"


def get_settings_path(config: Config) -> Path:
    """Path of the key-value settings file holding the saved volume."""
    if config.storage.settings_file:
        return Path(config.storage.settings_file).expanduser()
    return get_data_dir() / "settings.json"


def get_log_file_path(config: Config) -> Path:
    if config.logging.log_file:
        return Path(config.logging.log_file).expanduser()
    return get_data_dir() / "soloist.log"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in the project root (marked by pyproject.toml).

    Used during development so the project's config file is picked up
    regardless of the working directory.
    """
    try:
        current = Path(__file__).resolve().parent
        for parent in [current] + list(current.parents):
            if (parent / "pyproject.toml").exists():
                config_path = parent / "config.toml"
                return config_path if config_path.exists() else None
    except OSError:
        pass
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/soloist (or ~/.config/soloist)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# soloist configuration

[player]
# Audio backend: "mpv" (needs mpv installed) or "memory" (headless)
backend = "mpv"

# Path for mpv socket (auto-generated if not specified)
# mpv_socket_path = "/tmp/soloist-mpv"

# Fade the volume in when playback starts
fade_in_enabled = true

# Duration of the fade-in in milliseconds
fade_in_duration_ms = 3000

# Remember the volume between runs
persist_volume = true

# Key the volume is stored under
storage_key = "player.volume"

# Volume used when nothing has been saved yet (0.0 - 1.0)
default_volume = 1.0

[storage]
# Settings file (default: ~/.local/share/soloist/settings.json)
# settings_file = "/path/to/settings.json"

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/soloist/soloist.log)
# log_file = "/path/to/soloist.log"

# Also output logs to console (useful for debugging)
console_output = false

[web]
host = "127.0.0.1"
port = 8642
allowed_origins = ["http://localhost:5173"]
""".strip()


def _parse_config(toml_data: dict[str, Any]) -> Config:
    config = Config()

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            backend=player_data.get("backend", config.player.backend),
            mpv_socket_path=player_data.get("mpv_socket_path"),
            fade_in_enabled=player_data.get("fade_in_enabled", config.player.fade_in_enabled),
            fade_in_duration_ms=int(
                player_data.get("fade_in_duration_ms", config.player.fade_in_duration_ms)
            ),
            persist_volume=player_data.get("persist_volume", config.player.persist_volume),
            storage_key=player_data.get("storage_key", config.player.storage_key),
            default_volume=float(
                player_data.get("default_volume", config.player.default_volume)
            ),
        )
        try:
            config.player.validate()
        except ValueError as e:
            print(f"Warning: Invalid player configuration: {e}")
            print("Using default player configuration.")
            config.player = PlayerConfig()

    if "storage" in toml_data:
        storage_data = toml_data["storage"]
        settings_file = storage_data.get("settings_file")
        config.storage = StorageConfig(
            settings_file=str(Path(settings_file).expanduser()) if settings_file else None
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            console_output=logging_data.get("console_output", config.logging.console_output),
        )

    if "web" in toml_data:
        web_data = toml_data["web"]
        config.web = WebConfig(
            host=web_data.get("host", config.web.host),
            port=int(web_data.get("port", config.web.port)),
            allowed_origins=web_data.get("allowed_origins", config.web.allowed_origins),
        )

    return config


def _apply_env_overrides(config: Config) -> Config:
    """Environment variables override TOML values."""
    allowed_origins = os.environ.get("SOLOIST_ALLOWED_ORIGINS")
    if allowed_origins:
        config.web.allowed_origins = [o.strip() for o in allowed_origins.split(",") if o.strip()]

    log_level = os.environ.get("SOLOIST_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()

    return config


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - SOLOIST_ALLOWED_ORIGINS (comma-separated)
    - SOLOIST_LOG_LEVEL
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = config_path or get_config_path()

    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(create_default_config())
            print(f"Created default configuration at: {config_path}")
        except OSError as e:
            print(f"Could not create default configuration at {config_path}: {e}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
        config = _parse_config(toml_data)
    except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        config = Config()

    return _apply_env_overrides(config)


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
