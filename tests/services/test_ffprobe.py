"""Tests for the ffprobe wrapper."""

import json
import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from redcul.config import RedculConfig
from redcul.error_handling import ExternalToolError, ValidationFailure
from redcul.release.validation import ProbeResult
from redcul.services.ffprobe import AudioProber, parse_probe_output

FFPROBE_OUTPUT = {
    "streams": [
        {"codec_name": "mjpeg", "codec_type": "video"},
        {
            "codec_name": "flac",
            "codec_type": "audio",
            "sample_rate": "96000",
            "bits_per_raw_sample": "24",
        },
    ],
    "format": {
        "format_name": "flac",
        "tags": {
            "TITLE": "Pointbreak",
            "ARTIST": "Vanilla",
            "ALBUM": "Pointbreak",
            "track": "1",
            "album_artist": "Vanilla",
        },
    },
}


@pytest.fixture
def prober():
    return AudioProber(RedculConfig(ffprobe_binary="/usr/bin/ffprobe"))


class TestParseProbeOutput:
    def test_flac_stream_is_used(self):
        probe = parse_probe_output(FFPROBE_OUTPUT)

        assert probe.codec == "flac"
        assert probe.sample_rate == 96000
        assert probe.bits_per_sample == 24
        assert probe.tags["TRACK"] == "1"
        assert probe.tags["ALBUM_ARTIST"] == "Vanilla"

    def test_no_flac_stream(self):
        with pytest.raises(ValidationFailure) as exc_info:
            parse_probe_output({"streams": [{"codec_name": "mp3"}]}, Path("a.flac"))

        assert exc_info.value.values == ["mp3"]

    def test_missing_values(self):
        probe = parse_probe_output({"streams": [{"codec_name": "flac"}], "format": {}})

        assert probe.sample_rate is None
        assert probe.bits_per_sample is None
        assert probe.tags == {}


class TestAudioProber:
    def test_build_command(self, prober):
        command = prober.build_command(Path("/music/a.flac"))

        assert command[0] == "/usr/bin/ffprobe"
        assert "-show_streams" in command
        assert "-show_format" in command
        assert command[-1] == "/music/a.flac"

    @patch("redcul.services.ffprobe.subprocess.run")
    def test_probe_file(self, mock_run, prober):
        mock_run.return_value = Mock(stdout=json.dumps(FFPROBE_OUTPUT), returncode=0)

        probe = prober.probe_file(Path("/music/a.flac"))

        assert probe.sample_rate == 96000
        assert mock_run.call_args.kwargs["check"] is True

    @patch("redcul.services.ffprobe.subprocess.run")
    def test_probe_file_tool_failure(self, mock_run, prober):
        mock_run.side_effect = subprocess.CalledProcessError(1, "ffprobe", stderr="bad")

        with pytest.raises(ExternalToolError) as exc_info:
            prober.probe_file(Path("/music/a.flac"))

        assert exc_info.value.exit_code == 1

    @patch("redcul.services.ffprobe.subprocess.run")
    def test_probe_file_invalid_json(self, mock_run, prober):
        mock_run.return_value = Mock(stdout="not json", returncode=0)

        with pytest.raises(ExternalToolError):
            prober.probe_file(Path("/music/a.flac"))

    @patch("redcul.services.ffprobe.subprocess.run")
    def test_probe_file_missing_binary(self, mock_run, prober):
        mock_run.side_effect = FileNotFoundError("ffprobe")

        with pytest.raises(ExternalToolError):
            prober.probe_file(Path("/music/a.flac"))

    @pytest.mark.asyncio
    async def test_probe_files_keeps_order(self, prober):
        rates = {"a.flac": 44100, "b.flac": 48000, "c.flac": 96000}
        prober.probe_file = Mock(
            side_effect=lambda path: ProbeResult("flac", rates[path.name], 24, {}),
        )

        probes = await prober.probe_files(Path("/music") / name for name in rates)

        assert [p.sample_rate for p in probes] == [44100, 48000, 96000]
        assert prober.probe_file.call_count == 3

    @pytest.mark.asyncio
    async def test_probe_files_propagates_errors(self, prober):
        prober.probe_file = Mock(side_effect=ExternalToolError("ffprobe", exit_code=1))

        with pytest.raises(ExternalToolError):
            await prober.probe_files([Path("/music/a.flac")])
