"""Tests for the external tool runner."""

import io
import logging
from unittest.mock import Mock, patch

import pytest

from redcul.encode.runner import run_tool
from redcul.error_handling import ExternalToolError


def fake_process(returncode=0, stdout="", stderr="", pid=4242):
    process = Mock()
    process.pid = pid
    process.stdout = io.StringIO(stdout)
    process.stderr = io.StringIO(stderr)
    process.wait.return_value = returncode
    return process


@patch("redcul.encode.runner.subprocess.Popen")
def test_output_is_collected_and_logged(mock_popen, caplog):
    mock_popen.return_value = fake_process(stdout="one\ntwo\n", stderr="warn\n")

    with caplog.at_level(logging.INFO, logger="redcul.encode.runner"):
        result = run_tool(["sox", "in.flac", "out.flac"])

    assert result.returncode == 0
    assert result.stdout == "one\ntwo\n"
    assert result.stderr == "warn\n"
    assert ">> [4242] one" in caplog.text
    assert "!! [4242] warn" in caplog.text


@patch("redcul.encode.runner.subprocess.Popen")
def test_quiet_does_not_log_output(mock_popen, caplog):
    mock_popen.return_value = fake_process(stdout="noise\n")

    with caplog.at_level(logging.INFO, logger="redcul.encode.runner"):
        result = run_tool(["mktorrent"], quiet=True)

    assert result.stdout == "noise\n"
    assert "noise" not in caplog.text


@patch("redcul.encode.runner.subprocess.Popen")
def test_nonzero_exit_raises(mock_popen, caplog):
    mock_popen.return_value = fake_process(returncode=2, stderr="boom\n")

    with pytest.raises(ExternalToolError) as exc_info:
        run_tool(["sox", "a", "b"])

    assert exc_info.value.tool == "sox"
    assert exc_info.value.exit_code == 2
    assert exc_info.value.details == "boom\n"
    assert "cmd failed: sox a b" in caplog.text


@patch("redcul.encode.runner.subprocess.Popen")
def test_missing_binary_raises(mock_popen):
    mock_popen.side_effect = FileNotFoundError("flac2mp3.pl")

    with pytest.raises(ExternalToolError) as exc_info:
        run_tool(["flac2mp3.pl", "--preset=V0"])

    assert exc_info.value.tool == "flac2mp3.pl"
    assert exc_info.value.exit_code is None


@patch("redcul.encode.runner.subprocess.Popen")
def test_unexecutable_binary_raises(mock_popen):
    mock_popen.side_effect = PermissionError(13, "Permission denied", "mktorrent")

    with pytest.raises(ExternalToolError) as exc_info:
        run_tool(["mktorrent", "--private"])

    assert exc_info.value.tool == "mktorrent"
    assert "Permission denied" in exc_info.value.details
