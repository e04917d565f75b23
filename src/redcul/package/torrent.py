"""Create private torrents for transcoded directories with mktorrent."""

import logging
from pathlib import Path

from redcul.config import RedculConfig
from redcul.encode.runner import run_tool
from redcul.error_handling import ConfigurationError
from redcul.release.naming import torrent_path_for

logger = logging.getLogger(__name__)


class TorrentBuilder:
    """Wrapper for mktorrent."""

    def __init__(self, config: RedculConfig):
        self.config = config
        self.mktorrent_binary = config.mktorrent_binary

    def build_command(self, target_dir: Path, torrent_path: Path) -> list[str]:
        if not self.config.announce_url:
            msg = "Announce URL is required to create torrents"
            raise ConfigurationError(
                msg,
                solution="Pass --announce or set announce_url in the config",
            )
        return [
            self.mktorrent_binary,
            f"--piece-length={self.config.torrent_piece_length}",
            "--private",
            f"--source={self.config.torrent_source}",
            f"--announce={self.config.announce_url}",
            str(target_dir),
            f"--output={torrent_path}",
        ]

    def build(self, target_dir: Path) -> Path:
        """Create ``<torrent_dir>/<target dir name>.torrent``.

        Raises:
            ExternalToolError: if mktorrent fails.
        """
        torrent_path = torrent_path_for(self.config.torrent_dir, target_dir)
        # mktorrent refuses to overwrite
        if torrent_path.exists():
            logger.warning("Replacing existing torrent %s", torrent_path)
            torrent_path.unlink()

        logger.info("Creating torrent %s", torrent_path)
        run_tool(self.build_command(target_dir, torrent_path))
        return torrent_path
