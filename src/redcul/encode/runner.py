"""Run external tools with their output streamed into the log."""

import logging
import subprocess
import threading
from dataclasses import dataclass
from typing import IO

from redcul.error_handling import ExternalToolError

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    returncode: int
    stdout: str
    stderr: str


def _pump(
    stream: IO[str] | None,
    prefix: str,
    sink: list[str],
    level: int,
    quiet: bool,
) -> None:
    if stream is None:
        return
    for line in stream:
        sink.append(line)
        if not quiet:
            logger.log(level, "%s%s", prefix, line.rstrip("\n"))


def run_tool(cmd: list[str], *, quiet: bool = False) -> ToolResult:
    """Run ``cmd`` to completion.

    Each output line is logged as ``>> [pid] ...`` (stdout) or
    ``!! [pid] ...`` (stderr) unless ``quiet`` is set.

    Raises:
        ExternalToolError: if the tool cannot be started or exits non-zero.
    """
    tool = cmd[0]
    try:
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            bufsize=1,
        )
    except OSError as e:
        raise ExternalToolError(tool, details=str(e), original_error=e) from e

    stdout_lines: list[str] = []
    stderr_lines: list[str] = []
    readers = [
        threading.Thread(
            target=_pump,
            args=(process.stdout, f">> [{process.pid}] ", stdout_lines, logging.INFO, quiet),
        ),
        threading.Thread(
            target=_pump,
            args=(process.stderr, f"!! [{process.pid}] ", stderr_lines, logging.WARNING, quiet),
        ),
    ]
    for reader in readers:
        reader.start()

    returncode = process.wait()
    for reader in readers:
        reader.join()

    result = ToolResult(returncode, "".join(stdout_lines), "".join(stderr_lines))

    if returncode != 0:
        logger.error("cmd failed: %s", " ".join(cmd))
        raise ExternalToolError(tool, exit_code=returncode, stderr=result.stderr)

    return result
