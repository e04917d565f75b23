"""Error types and user-facing error display."""

import logging
import shutil
import sys
from enum import Enum
from pathlib import Path

from rich.console import Console

logger = logging.getLogger(__name__)
console = Console()


class ErrorCategory(Enum):
    """Categories of errors for better user experience."""

    CONFIGURATION = "configuration"
    DEPENDENCY = "dependency"
    NETWORK = "network"
    FILESYSTEM = "filesystem"
    SOURCE = "source"
    VALIDATION = "validation"
    EXTERNAL_TOOL = "external_tool"
    REMOTE = "remote"
    SYSTEM = "system"


class RedculError(Exception):
    """Base exception for redcul with enhanced user experience."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        *,
        solution: str | None = None,
        details: str | None = None,
        recoverable: bool = True,
        log_level: int = logging.ERROR,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.solution = solution
        self.details = details
        self.recoverable = recoverable
        self.log_level = log_level
        self.original_error = original_error

    def display_to_user(self) -> None:
        """Display error to user with helpful context."""
        category_styles = {
            ErrorCategory.CONFIGURATION: ("⚙️", "yellow"),
            ErrorCategory.DEPENDENCY: ("📦", "red"),
            ErrorCategory.NETWORK: ("🌐", "orange"),
            ErrorCategory.FILESYSTEM: ("📁", "red"),
            ErrorCategory.SOURCE: ("💿", "blue"),
            ErrorCategory.VALIDATION: ("🔎", "yellow"),
            ErrorCategory.EXTERNAL_TOOL: ("🔧", "red"),
            ErrorCategory.REMOTE: ("📡", "red"),
            ErrorCategory.SYSTEM: ("💻", "red"),
        }

        emoji, color = category_styles.get(self.category, ("❌", "red"))

        console.print(
            f"\n{emoji} [{color}bold]{self.category.value.title()} Error[/{color}bold]",
        )
        console.print(f"[{color}]{self.message}[/{color}]")

        if self.details:
            console.print(f"\n[dim]Details:[/dim] {self.details}")

        if self.solution:
            console.print(f"\n[green]💡 Solution:[/green] {self.solution}")

        if self.recoverable:
            console.print(
                "\n[dim]This error may be temporary. You can try again.[/dim]",
            )
        else:
            console.print(
                "\n[dim]This error requires intervention before continuing.[/dim]",
            )

        if self.original_error:
            logger.log(
                self.log_level,
                "%s: %s",
                self.category.value,
                self.message,
                exc_info=self.original_error,
            )
        else:
            logger.log(self.log_level, "%s: %s", self.category.value, self.message)


class ConfigurationError(RedculError):
    """Configuration-related errors."""

    def __init__(self, message: str, *, config_path: Path | None = None, **kwargs):
        solution = kwargs.pop("solution", None)
        if not solution and config_path:
            solution = f"Check your configuration file at {config_path}"
        super().__init__(
            message,
            ErrorCategory.CONFIGURATION,
            solution=solution,
            **kwargs,
        )


class DependencyError(RedculError):
    """Missing or broken dependency errors."""

    def __init__(
        self,
        dependency: str,
        *,
        install_command: str | None = None,
        **kwargs,
    ):
        message = f"Required dependency '{dependency}' is not available"
        solution = kwargs.pop("solution", None)
        if not solution and install_command:
            solution = f"Install with: {install_command}"
        super().__init__(
            message,
            ErrorCategory.DEPENDENCY,
            solution=solution,
            recoverable=False,
            **kwargs,
        )


class NetworkError(RedculError):
    """Transport-level failures talking to the catalogue."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.NETWORK, **kwargs)


class ExternalToolError(RedculError):
    """External tool execution errors (transcoders, mktorrent)."""

    def __init__(
        self,
        tool: str,
        exit_code: int | None = None,
        stderr: str | None = None,
        **kwargs,
    ):
        message = f"{tool} failed"
        if exit_code is not None:
            message += f" with exit code {exit_code}"

        details = kwargs.pop("details", stderr)
        solution = kwargs.pop(
            "solution",
            f"Check {tool} is properly installed and configured",
        )

        super().__init__(
            message,
            ErrorCategory.EXTERNAL_TOOL,
            details=details,
            solution=solution,
            **kwargs,
        )
        self.tool = tool
        self.exit_code = exit_code


class SourceMismatch(RedculError):
    """The release is not a FLAC source. Not a failure, just nothing to do."""

    def __init__(self, source_format: str | None, **kwargs):
        super().__init__(
            f"Source format is {source_format or 'unknown'}, not FLAC",
            ErrorCategory.SOURCE,
            log_level=logging.INFO,
            **kwargs,
        )
        self.source_format = source_format


class ValidationFailure(RedculError):
    """Probe results are inconsistent or incomplete."""

    def __init__(self, message: str, *, values: list | None = None, **kwargs):
        values = list(values or [])
        log_level = kwargs.pop("log_level", logging.WARNING)
        details = kwargs.pop("details", None)
        if details is None and values:
            details = ", ".join(str(v) for v in values)
        super().__init__(
            message,
            ErrorCategory.VALIDATION,
            details=details,
            log_level=log_level,
            **kwargs,
        )
        self.values = values


class BitDepthMismatch(ValidationFailure):
    """Some files are not 24 bit although the source claims to be."""

    def __init__(self, bit_depths: list[int | None], **kwargs):
        found = ",".join(str(depth) for depth in bit_depths)
        super().__init__(
            f"These are not 24bit flac. Found {found}-bit too",
            values=bit_depths,
            **kwargs,
        )


class RemoteRejection(RedculError):
    """The catalogue answered with a non-success status."""

    def __init__(self, action: str, status: str | None, **kwargs):
        super().__init__(
            f"{action}: {status or 'no status'}",
            ErrorCategory.REMOTE,
            recoverable=False,
            **kwargs,
        )
        self.action = action
        self.status = status


def handle_error(
    error: Exception,
    *,
    category: ErrorCategory | None = None,
    **kwargs,
) -> None:
    """Convert generic exceptions to RedculError and display to user."""
    if isinstance(error, RedculError):
        error.display_to_user()
        return

    if category is None:
        if isinstance(error, FileNotFoundError | PermissionError):
            category = ErrorCategory.FILESYSTEM
        elif isinstance(error, ConnectionError | TimeoutError):
            category = ErrorCategory.NETWORK
        else:
            category = ErrorCategory.SYSTEM

    redcul_error = RedculError(
        message=str(error) or "An unexpected error occurred",
        category=category,
        original_error=error,
        **kwargs,
    )
    redcul_error.display_to_user()


def check_dependencies(
    *,
    sox: str = "sox",
    ffprobe: str = "ffprobe",
    mktorrent: str = "mktorrent",
    flac2mp3: str = "flac2mp3.pl",
) -> list[DependencyError]:
    """Check for missing external tools and return list of errors."""
    errors = []

    if not shutil.which(sox):
        errors.append(
            DependencyError(
                "sox",
                solution="Install SoX with FLAC support from your package manager",
                details="sox is required for 24 to 16 bit FLAC transcodes",
            ),
        )

    if not shutil.which(ffprobe):
        errors.append(
            DependencyError(
                "ffprobe",
                solution="Install ffmpeg from your package manager",
                details="ffprobe is required to inspect source files",
            ),
        )

    if not shutil.which(mktorrent):
        errors.append(
            DependencyError(
                "mktorrent",
                solution="Install mktorrent 1.1 or newer from your package manager",
                details="mktorrent is required to create torrent files",
            ),
        )

    if not shutil.which(flac2mp3):
        errors.append(
            DependencyError(
                "flac2mp3",
                solution="Install flac2mp3 from https://github.com/robinbowes/flac2mp3 "
                "or point FLAC2MP3 at the script",
                details="flac2mp3 is required for MP3 transcodes",
            ),
        )

    return errors


def graceful_exit(exit_code: int = 1) -> None:
    """Exit gracefully with helpful message."""
    if exit_code == 0:
        console.print("\n[green]✨ redcul completed successfully[/green]")
    else:
        console.print("\n[red]redcul encountered errors[/red]")
        console.print("[dim]Check the logs above for details on what went wrong[/dim]")
        console.print(
            "[dim]Run 'redcul config validate' to check your configuration[/dim]",
        )

    sys.exit(exit_code)
