"""Configuration management for redcul."""

import os
from pathlib import Path

import tomli
from pydantic import BaseModel, Field, field_validator


class RedculConfig(BaseModel):
    """Main configuration for redcul."""

    # Paths
    transcode_dir: Path = Field(default=Path("~"))
    torrent_dir: Path = Field(default=Path("~"))
    log_dir: Path = Field(default=Path("~/.local/share/redcul/logs"))

    # Catalogue API
    api_key: str | None = Field(default=None, validate_default=True)
    api_url: str = Field(default="https://redacted.ch/ajax.php")
    announce_url: str | None = None

    # External tools
    sox_binary: str = Field(default="sox")
    ffprobe_binary: str = Field(default="ffprobe")
    mktorrent_binary: str = Field(default="mktorrent")
    flac2mp3_path: str | None = Field(default=None, validate_default=True)

    # Encoding
    mp3_processes: int = Field(default_factory=lambda: os.cpu_count() or 1)
    sox_buffer_size: int = Field(default=131072)

    # Torrent creation
    torrent_source: str = Field(default="RED")
    torrent_piece_length: int = Field(default=20)  # 2^20 = 1 MiB

    # Notifications
    ntfy_topic: str | None = None

    # Timeout Settings (seconds)
    request_timeout: int = Field(default=60)
    ntfy_request_timeout: int = Field(default=10)

    @field_validator("transcode_dir", "torrent_dir", "log_dir", mode="before")
    @classmethod
    def expand_paths(cls, v: Path | str) -> Path:
        """Expand user home directory in paths."""
        if isinstance(v, str):
            v = Path(v)
        return v.expanduser().resolve()

    @field_validator("api_key", mode="after")
    @classmethod
    def api_key_from_env(cls, v: str | None) -> str | None:
        """Fall back to RED_API_KEY when no key is configured."""
        return v or os.getenv("RED_API_KEY")

    @field_validator("flac2mp3_path", mode="after")
    @classmethod
    def flac2mp3_from_env(cls, v: str | None) -> str:
        """Fall back to FLAC2MP3, then to flac2mp3.pl on PATH."""
        return v or os.getenv("FLAC2MP3") or "flac2mp3.pl"

    @field_validator("mp3_processes", "torrent_piece_length", mode="after")
    @classmethod
    def positive(cls, v: int) -> int:
        if v < 1:
            msg = "must be a positive integer"
            raise ValueError(msg)
        return v

    @property
    def user_agent(self) -> str:
        from . import __version__

        return f"redcul@{__version__}"

    def ensure_directories(self) -> None:
        """Create the log directory if it doesn't exist.

        Transcode and torrent directories are never created implicitly;
        they are checked by :meth:`missing_directories` instead.
        """
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def missing_directories(self) -> list[Path]:
        """Return configured output directories that do not exist."""
        return [
            path for path in (self.transcode_dir, self.torrent_dir) if not path.is_dir()
        ]


def load_config(config_path: Path | None = None) -> RedculConfig:
    """Load configuration from file or defaults."""
    if config_path is None:
        possible_paths = [
            Path.home() / ".config" / "redcul" / "config.toml",
            Path.cwd() / "redcul.toml",
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break

    if config_path and config_path.exists():
        with open(config_path, "rb") as f:
            config_data = tomli.load(f)
        return RedculConfig(**config_data)
    return RedculConfig()


def create_sample_config(path: Path) -> None:
    """Create a sample configuration file."""
    sample_config = """# redcul Configuration
# ====================

# ============================================================================
# REQUIRED SETTINGS
# ============================================================================

# API token with the Torrents capability (or set RED_API_KEY)
api_key = "your_api_key_here"

# Full announce URL from the upload page
announce_url = "https://flacsfor.me/your_passkey/announce"

# MUST EXIST: transcodes are written here, one directory per variant
transcode_dir = "~/music/transcodes"

# MUST EXIST: finished .torrent files end up here (point your client's watch dir here)
torrent_dir = "~/watch"

# ============================================================================
# OPTIONAL SETTINGS
# ============================================================================

log_dir = "~/.local/share/redcul/logs"

# flac2mp3 script (or set FLAC2MP3)
# flac2mp3_path = "~/.local/bin/flac2mp3.pl"
# mp3_processes = 8                  # Defaults to the number of CPUs

# sox_binary = "sox"
# ffprobe_binary = "ffprobe"
# mktorrent_binary = "mktorrent"

# torrent_source = "RED"
# torrent_piece_length = 20          # 2^20 bytes = 1 MiB pieces

# Notifications (optional)
# ntfy_topic = "https://ntfy.sh/your_topic"

# request_timeout = 60               # Catalogue API timeout (seconds)
# ntfy_request_timeout = 10
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(sample_config)
