"""Tests for the transcode executors."""

from unittest.mock import patch

import pytest

from redcul.config import RedculConfig
from redcul.encode.transcoder import (
    FlacTranscoder,
    Mp3Transcoder,
    TranscodeService,
    copy_artwork,
)
from redcul.error_handling import ExternalToolError
from redcul.release.planner import flac16_plan, mp3_plan


@pytest.fixture
def config():
    return RedculConfig(
        sox_binary="sox",
        flac2mp3_path="/opt/flac2mp3.pl",
        mp3_processes=4,
        sox_buffer_size=131072,
    )


@pytest.fixture
def release_dir(tmp_path):
    source = tmp_path / "source"
    (source / "CD2").mkdir(parents=True)
    (source / "01.flac").write_bytes(b"fLaC")
    (source / "02.flac").write_bytes(b"fLaC")
    (source / "CD2" / "01.flac").write_bytes(b"fLaC")
    (source / "cover.jpg").write_bytes(b"jpg")
    (source / "notes.txt").write_text("ignored")
    return source


def test_copy_artwork(release_dir, tmp_path):
    output = tmp_path / "out"
    output.mkdir()

    copied = copy_artwork(release_dir, output)

    assert copied == [output / "cover.jpg"]
    assert (output / "cover.jpg").read_bytes() == b"jpg"


class TestFlacTranscoder:
    def test_build_command(self, config, tmp_path):
        command = FlacTranscoder(config).build_command(
            tmp_path / "in.flac", tmp_path / "out.flac", 48000
        )

        assert command == [
            "sox",
            "--multi-threaded",
            "--buffer=131072",
            "-G",
            str(tmp_path / "in.flac"),
            "-b16",
            str(tmp_path / "out.flac"),
            "rate",
            "-v",
            "-L",
            "48000",
            "dither",
        ]

    def test_method(self):
        assert FlacTranscoder.method(44100) == (
            "sox -G input.flac -b16 output.flac rate -v -L 44100 dither"
        )

    @patch("redcul.encode.transcoder.run_tool")
    def test_transcode_walks_subdirectories(self, mock_run, config, release_dir, tmp_path):
        output = tmp_path / "A - B - WEB FLAC"

        result = FlacTranscoder(config).transcode(release_dir, output, 48000)

        assert result.success
        assert result.files_transcoded == 3
        assert result.method == FlacTranscoder.method(48000)
        assert mock_run.call_count == 3
        assert (output / "CD2").is_dir()
        assert (output / "cover.jpg").exists()

    @patch("redcul.encode.transcoder.run_tool")
    def test_upper_case_extension_is_transcoded(self, mock_run, config, tmp_path):
        source = tmp_path / "source"
        source.mkdir()
        (source / "01.FLAC").write_bytes(b"fLaC")
        (source / "02.flac").write_bytes(b"fLaC")

        result = FlacTranscoder(config).transcode(source, tmp_path / "out", 44100)

        assert result.files_transcoded == 2
        inputs = [c.args[0][4] for c in mock_run.call_args_list]
        assert inputs == [str(source / "01.FLAC"), str(source / "02.flac")]

    @patch("redcul.encode.transcoder.run_tool")
    def test_transcode_failure(self, mock_run, config, release_dir, tmp_path):
        mock_run.side_effect = ExternalToolError("sox", exit_code=1)

        result = FlacTranscoder(config).transcode(release_dir, tmp_path / "out", 48000)

        assert not result.success
        assert "sox failed" in result.error_message
        assert result.method is None


class TestMp3Transcoder:
    def test_build_command(self, config, tmp_path):
        command = Mp3Transcoder(config).build_command(tmp_path / "in", tmp_path / "out", "V0")

        assert command == [
            "/opt/flac2mp3.pl",
            "--preset=V0",
            "--processes=4",
            str(tmp_path / "in"),
            str(tmp_path / "out"),
        ]

    @patch("redcul.encode.transcoder.run_tool")
    def test_transcode(self, mock_run, config, release_dir, tmp_path):
        output = tmp_path / "A - B - WEB 320"

        result = Mp3Transcoder(config).transcode(release_dir, output, "320")

        assert result.success
        assert result.method == "flac2mp3 --preset=320"
        mock_run.assert_called_once()
        assert (output / "cover.jpg").exists()

    @patch("redcul.encode.transcoder.run_tool")
    def test_transcode_failure(self, mock_run, config, release_dir, tmp_path):
        mock_run.side_effect = ExternalToolError("flac2mp3", exit_code=255)

        result = Mp3Transcoder(config).transcode(release_dir, tmp_path / "out", "V0")

        assert not result.success
        assert "255" in result.error_message


class TestTranscodeService:
    @patch("redcul.encode.transcoder.run_tool")
    def test_dispatches_flac(self, mock_run, config, release_dir, tmp_path):
        result = TranscodeService(config).produce(
            flac16_plan(96000), release_dir, tmp_path / "out"
        )

        assert result.method == FlacTranscoder.method(48000)

    @patch("redcul.encode.transcoder.run_tool")
    def test_dispatches_mp3(self, mock_run, config, release_dir, tmp_path):
        result = TranscodeService(config).produce(
            mp3_plan("V0", "V0 (VBR)"), release_dir, tmp_path / "out"
        )

        assert result.method == "flac2mp3 --preset=V0"
