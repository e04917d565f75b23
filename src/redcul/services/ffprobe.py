"""ffprobe wrapper producing :class:`ProbeResult` records."""

import asyncio
import json
import logging
import subprocess
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from redcul.config import RedculConfig
from redcul.error_handling import ExternalToolError, ValidationFailure
from redcul.release.validation import ProbeResult

logger = logging.getLogger(__name__)


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_probe_output(data: dict[str, Any], path: Path | None = None) -> ProbeResult:
    """Pick the FLAC stream out of ffprobe's JSON output."""
    streams = data.get("streams") or []
    stream = next(
        (s for s in streams if s.get("codec_name") == "flac"),
        None,
    )
    if stream is None:
        codecs = [s.get("codec_name") for s in streams]
        raise ValidationFailure(
            f"No FLAC stream found in {path or 'file'}",
            values=codecs,
        )

    tags = (data.get("format") or {}).get("tags") or {}

    return ProbeResult(
        codec=stream["codec_name"],
        sample_rate=_int_or_none(stream.get("sample_rate")),
        bits_per_sample=_int_or_none(stream.get("bits_per_raw_sample")),
        tags=tags,
    )


class AudioProber:
    """Reads codec, sample rate, bit depth and tags from audio files."""

    def __init__(self, config: RedculConfig):
        self.config = config
        self.ffprobe_binary = config.ffprobe_binary

    def build_command(self, path: Path) -> list[str]:
        return [
            self.ffprobe_binary,
            "-v",
            "quiet",
            "-show_streams",
            "-show_format",
            "-print_format",
            "json",
            str(path),
        ]

    def probe_file(self, path: Path) -> ProbeResult:
        """Probe a single file."""
        try:
            result = subprocess.run(
                self.build_command(path),
                capture_output=True,
                text=True,
                errors="replace",
                check=True,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(
                "ffprobe",
                solution="Install ffmpeg or set ffprobe_binary in the config",
                original_error=e,
            ) from e
        except subprocess.CalledProcessError as e:
            raise ExternalToolError(
                "ffprobe",
                exit_code=e.returncode,
                stderr=e.stderr or f"could not probe {path}",
                original_error=e,
            ) from e

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ExternalToolError(
                "ffprobe",
                details=f"Invalid ffprobe output for {path}: {e}",
                original_error=e,
            ) from e

        return parse_probe_output(data, path)

    async def probe_files(self, paths: Iterable[Path]) -> list[ProbeResult]:
        """Probe all files concurrently; results keep the order of ``paths``."""
        paths = list(paths)
        logger.info("Probing %d files", len(paths))

        loop = asyncio.get_running_loop()
        return list(
            await asyncio.gather(
                *(loop.run_in_executor(None, self.probe_file, path) for path in paths),
            ),
        )
