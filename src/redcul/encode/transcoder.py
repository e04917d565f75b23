"""Transcode executors: 24 to 16 bit FLAC with sox, MP3 with flac2mp3."""

import logging
import shutil
from pathlib import Path

from redcul.config import RedculConfig
from redcul.encode.runner import run_tool
from redcul.error_handling import ExternalToolError
from redcul.origin.descriptor import is_flac_file
from redcul.release.planner import FormatKind, VariantPlan

logger = logging.getLogger(__name__)

ARTWORK_SUFFIXES = {".jpg", ".jpeg", ".png"}


class TranscodeResult:
    """Result of producing one variant."""

    def __init__(
        self,
        success: bool,
        input_dir: Path,
        output_dir: Path,
        method: str | None = None,
        error_message: str | None = None,
        files_transcoded: int = 0,
    ):
        self.success = success
        self.input_dir = input_dir
        self.output_dir = output_dir
        self.method = method
        self.error_message = error_message
        self.files_transcoded = files_transcoded

    def __str__(self) -> str:
        if self.success:
            return f"Transcoded {self.input_dir.name} -> {self.output_dir.name}"
        return f"Failed to transcode {self.input_dir.name}: {self.error_message}"


def copy_artwork(input_dir: Path, output_dir: Path) -> list[Path]:
    """Copy cover images next to the transcoded files."""
    copied = []
    for path in sorted(input_dir.iterdir()):
        if path.is_file() and path.suffix.lower() in ARTWORK_SUFFIXES:
            target = output_dir / path.name
            shutil.copyfile(path, target)
            copied.append(target)
    return copied


class FlacTranscoder:
    """Downsample 24 bit FLAC to 16 bit with sox."""

    def __init__(self, config: RedculConfig):
        self.config = config
        self.sox_binary = config.sox_binary

    @staticmethod
    def method(sample_rate: int) -> str:
        return f"sox -G input.flac -b16 output.flac rate -v -L {sample_rate} dither"

    def build_command(self, input_file: Path, output_file: Path, sample_rate: int) -> list[str]:
        return [
            self.sox_binary,
            "--multi-threaded",
            f"--buffer={self.config.sox_buffer_size}",
            "-G",
            str(input_file),
            "-b16",
            str(output_file),
            "rate",
            "-v",
            "-L",
            str(sample_rate),
            "dither",
        ]

    def transcode(self, input_dir: Path, output_dir: Path, sample_rate: int) -> TranscodeResult:
        logger.info(f"FLAC transcode {input_dir} -> {output_dir}")
        try:
            count = self._transcode_dir(input_dir, output_dir, sample_rate)
        except (ExternalToolError, OSError) as e:
            logger.exception(f"FLAC transcode failed: {e}")
            return TranscodeResult(
                success=False,
                input_dir=input_dir,
                output_dir=output_dir,
                error_message=str(e),
            )

        return TranscodeResult(
            success=True,
            input_dir=input_dir,
            output_dir=output_dir,
            method=self.method(sample_rate),
            files_transcoded=count,
        )

    def _transcode_dir(self, input_dir: Path, output_dir: Path, sample_rate: int) -> int:
        output_dir.mkdir(parents=True, exist_ok=True)
        count = 0

        for path in sorted(input_dir.iterdir()):
            if path.is_dir():
                count += self._transcode_dir(path, output_dir / path.name, sample_rate)
            elif is_flac_file(path):
                logger.info(f"Transcoding {path.name}...")
                run_tool(self.build_command(path, output_dir / path.name, sample_rate))
                count += 1

        copy_artwork(input_dir, output_dir)
        return count


class Mp3Transcoder:
    """Encode a FLAC directory to MP3 with flac2mp3."""

    def __init__(self, config: RedculConfig):
        self.config = config
        self.flac2mp3_path = config.flac2mp3_path

    @staticmethod
    def method(preset: str) -> str:
        return f"flac2mp3 --preset={preset}"

    def build_command(self, input_dir: Path, output_dir: Path, preset: str) -> list[str]:
        return [
            self.flac2mp3_path,
            f"--preset={preset}",
            f"--processes={self.config.mp3_processes}",
            str(input_dir),
            str(output_dir),
        ]

    def transcode(self, input_dir: Path, output_dir: Path, preset: str) -> TranscodeResult:
        logger.info(f"MP3 {preset} transcode {input_dir} -> {output_dir}")
        try:
            run_tool(self.build_command(input_dir, output_dir, preset))
            output_dir.mkdir(parents=True, exist_ok=True)
            copy_artwork(input_dir, output_dir)
        except (ExternalToolError, OSError) as e:
            logger.exception(f"MP3 transcode failed: {e}")
            return TranscodeResult(
                success=False,
                input_dir=input_dir,
                output_dir=output_dir,
                error_message=str(e),
            )

        return TranscodeResult(
            success=True,
            input_dir=input_dir,
            output_dir=output_dir,
            method=self.method(preset),
        )


class TranscodeService:
    """Dispatches a :class:`VariantPlan` to the right executor."""

    def __init__(self, config: RedculConfig):
        self.config = config
        self.flac = FlacTranscoder(config)
        self.mp3 = Mp3Transcoder(config)

    def produce(self, variant: VariantPlan, input_dir: Path, output_dir: Path) -> TranscodeResult:
        if variant.format_kind is FormatKind.FLAC:
            return self.flac.transcode(input_dir, output_dir, variant.sample_rate)
        return self.mp3.transcode(input_dir, output_dir, variant.preset)
