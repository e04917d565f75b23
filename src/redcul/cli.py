"""Command-line interface for redcul."""

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import RedculConfig, create_sample_config, load_config
from .error_handling import (
    ConfigurationError,
    RedculError,
    check_dependencies,
    graceful_exit,
    handle_error,
)
from .notify.ntfy import NtfyNotifier
from .processor import ReleaseOutcome, ReleaseProcessor, ReleaseStatus

console = Console()

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "redcul" / "config.toml"


def setup_logging(
    *,
    verbose: bool = False,
    config: RedculConfig | None = None,
) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    cleanup_logging()

    show_path = level == logging.DEBUG
    handlers: list[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, show_path=show_path),
    ]

    if config and config.log_dir:
        config.ensure_directories()
        log_file = config.log_dir / "redcul.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            ),
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )


def cleanup_logging() -> None:
    """Clean up logging handlers to prevent ResourceWarnings."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
            root_logger.removeHandler(handler)


def apply_overrides(config: RedculConfig, **overrides) -> RedculConfig:
    """Return a copy of ``config`` with command-line values applied."""
    values = {key: value for key, value in overrides.items() if value is not None}
    if not values:
        return config
    return RedculConfig(**{**config.model_dump(), **values})


def require_run_settings(config: RedculConfig, *, dry_run: bool) -> None:
    """Fail early on settings a real run cannot do without."""
    if not config.api_key:
        msg = "Missing required argument '--api-key'"
        raise ConfigurationError(
            msg,
            solution="Pass --api-key, set RED_API_KEY or add api_key to the config",
            recoverable=False,
        )
    if dry_run:
        return
    if not config.announce_url:
        msg = "Missing required argument '--announce'"
        raise ConfigurationError(
            msg,
            solution="Copy the announce URL from the upload page",
            recoverable=False,
        )
    for path in config.missing_directories():
        msg = f"{path} does not exist! Please create it."
        raise ConfigurationError(msg, recoverable=False)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file path",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool) -> None:
    """redcul - transcode FLAC releases into missing formats and upload them."""
    try:
        ctx.ensure_object(dict)
        loaded_config = load_config(config)
        ctx.obj["config"] = loaded_config
        ctx.obj["verbose"] = verbose

        setup_logging(verbose=verbose, config=loaded_config)
    except (OSError, ValueError, RuntimeError) as e:
        config_error = ConfigurationError(
            f"Failed to load configuration: {e}",
            config_path=config,
            solution="Run 'redcul config validate' to check your configuration file",
        )
        console.print(f"[red]Configuration Error:[/red] {config_error}")
        sys.exit(1)


def _run_options(func):
    options = [
        click.option(
            "--api-key",
            envvar="RED_API_KEY",
            help="API token with Torrents capability. Can be set in env as RED_API_KEY",
        ),
        click.option(
            "--announce",
            "-a",
            "announce_url",
            help="Full announce URL found on the upload page",
        ),
        click.option(
            "--transcode-dir",
            "-t",
            type=click.Path(path_type=Path),
            help="Output directory of transcodes (e.g. ~/my_music)",
        ),
        click.option(
            "--torrent-dir",
            "-o",
            type=click.Path(path_type=Path),
            help="Where to output torrent files",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _configure_run(ctx: click.Context, *, dry_run: bool, **overrides) -> RedculConfig:
    try:
        config = apply_overrides(ctx.obj["config"], **overrides)
        require_run_settings(config, dry_run=dry_run)
    except RedculError as e:
        e.display_to_user()
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid option:[/red] {e}")
        sys.exit(1)
    return config


@cli.command()
@click.argument(
    "release_dirs",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@_run_options
@click.option("--dry-run", is_flag=True, help="Plan only, don't transcode or upload")
@click.pass_context
def run(
    ctx: click.Context,
    release_dirs: tuple[Path, ...],
    api_key: str | None,
    announce_url: str | None,
    transcode_dir: Path | None,
    torrent_dir: Path | None,
    dry_run: bool,
) -> None:
    """Transcode and upload every missing variant of each FLAC-DIR."""
    config = _configure_run(
        ctx,
        dry_run=dry_run,
        api_key=api_key,
        announce_url=announce_url,
        transcode_dir=transcode_dir,
        torrent_dir=torrent_dir,
    )

    processor = ReleaseProcessor(config)
    outcomes = asyncio.run(processor.process_batch(release_dirs, dry_run=dry_run))

    console.print(format_outcome_table(outcomes))

    failed = [
        outcome
        for outcome in outcomes
        if outcome.status in (ReleaseStatus.FAILED, ReleaseStatus.INVALID)
    ]
    if failed:
        graceful_exit(1)


@cli.command()
@click.argument(
    "release_dirs",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--api-key",
    envvar="RED_API_KEY",
    help="API token with Torrents capability. Can be set in env as RED_API_KEY",
)
@click.pass_context
def plan(ctx: click.Context, release_dirs: tuple[Path, ...], api_key: str | None) -> None:
    """Show which variants would be made, without transcoding anything."""
    config = _configure_run(ctx, dry_run=True, api_key=api_key)

    processor = ReleaseProcessor(config)
    outcomes = asyncio.run(processor.process_batch(release_dirs, dry_run=True))

    for outcome in outcomes:
        console.print(format_plan_table(outcome))


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check that the external tools are installed."""
    config: RedculConfig = ctx.obj["config"]
    missing = check_dependencies(
        sox=config.sox_binary,
        ffprobe=config.ffprobe_binary,
        mktorrent=config.mktorrent_binary,
        flac2mp3=config.flac2mp3_path,
    )
    if not missing:
        console.print("[green]✓[/green] All external tools found")
        return

    for error in missing:
        error.display_to_user()
    sys.exit(1)


@cli.group("config")
@click.pass_context
def config_cmd(ctx: click.Context) -> None:
    """Configuration management commands."""


@config_cmd.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config: RedculConfig = ctx.obj["config"]

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Transcode Directory", str(config.transcode_dir))
    table.add_row("Torrent Directory", str(config.torrent_dir))
    table.add_row("Log Directory", str(config.log_dir))
    table.add_row("API URL", config.api_url)
    table.add_row("API Key", "***" if config.api_key else "Not configured")
    table.add_row("Announce URL", "***" if config.announce_url else "Not configured")
    table.add_row("flac2mp3", config.flac2mp3_path)
    table.add_row("MP3 Processes", str(config.mp3_processes))
    table.add_row("Ntfy Topic", config.ntfy_topic or "Not configured")

    console.print(table)


@config_cmd.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate current configuration."""
    config: RedculConfig = ctx.obj["config"]

    console.print("[bold]Configuration Validation[/bold]")

    errors = []

    for name, path in [
        ("Transcode", config.transcode_dir),
        ("Torrent", config.torrent_dir),
    ]:
        if path.is_dir():
            console.print(f"[green]✓[/green] {name} directory: {path}")
        else:
            console.print(f"[red]✗[/red] {name} directory does not exist: {path}")
            errors.append(f"{name} directory missing")

    if config.api_key:
        console.print("[green]✓[/green] API key configured")
    else:
        console.print("[red]✗[/red] API key not configured")
        errors.append("API key not configured")

    if config.announce_url:
        console.print("[green]✓[/green] Announce URL configured")
    else:
        console.print("[red]✗[/red] Announce URL not configured")
        errors.append("Announce URL not configured")

    if errors:
        console.print(f"\n[red]Found {len(errors)} configuration errors[/red]")
        sys.exit(1)
    else:
        console.print("\n[green]Configuration is valid[/green]")


@config_cmd.command("init")
@click.option(
    "--path",
    "-p",
    type=click.Path(path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    help="Path for the configuration file",
)
def config_init(path: Path) -> None:
    """Create a sample configuration file."""
    try:
        create_sample_config(path)
        console.print(f"[green]Created sample configuration at {path}[/green]")
        console.print("Please edit the configuration file with your settings.")
    except OSError as e:
        handle_error(e, solution=f"Check that {path.parent} is writable")
        sys.exit(1)


@cli.command("test-notify")
@click.pass_context
def test_notify(ctx: click.Context) -> None:
    """Send a test notification."""
    config: RedculConfig = ctx.obj["config"]
    notifier = NtfyNotifier(config)

    if notifier.send_notification("redcul notifications are working", title="🧪 Test"):
        console.print("[green]Test notification sent successfully[/green]")
    else:
        console.print("[red]Failed to send test notification[/red]")


def get_status_color(status: ReleaseStatus) -> str:
    """Get color code for status display."""
    status_colors = {
        ReleaseStatus.UPLOADED: "green",
        ReleaseStatus.PLANNED: "blue",
        ReleaseStatus.NOTHING_TO_DO: "dim",
        ReleaseStatus.SKIPPED: "dim",
        ReleaseStatus.INVALID: "yellow",
        ReleaseStatus.FAILED: "red",
    }
    return status_colors.get(status, "white")


def format_outcome_table(outcomes: list[ReleaseOutcome]) -> Table:
    """Format batch results into a table."""
    table = Table()
    table.add_column("Release")
    table.add_column("Status")
    table.add_column("Variants")
    table.add_column("Notes")

    for outcome in outcomes:
        color = get_status_color(outcome.status)
        status = outcome.status.value.replace("_", " ").title()
        if outcome.packages:
            variants = ", ".join(package.label for package in outcome.packages)
        elif outcome.prepared:
            variants = ", ".join(outcome.prepared.plan.labels) or "-"
        else:
            variants = "-"
        notes = "; ".join(getattr(e, "message", str(e)) for e in outcome.errors)
        table.add_row(outcome.title, f"[{color}]{status}[/{color}]", variants, notes)

    return table


def format_plan_table(outcome: ReleaseOutcome) -> Table:
    """Format the planned variants of one release."""
    table = Table(title=outcome.title)
    table.add_column("#", justify="right")
    table.add_column("Format")
    table.add_column("Bitrate")
    table.add_column("Parameters")

    if outcome.prepared is None:
        reason = "; ".join(getattr(e, "message", str(e)) for e in outcome.errors)
        table.add_row("-", "-", outcome.status.value, reason)
        return table

    for index, variant in enumerate(outcome.prepared.plan.variants, 1):
        if variant.sample_rate:
            params = f"16 bit, {variant.sample_rate} Hz"
        else:
            params = f"preset {variant.preset}"
        table.add_row(str(index), variant.format_kind.value, variant.label, params)

    for error in outcome.prepared.plan.skipped:
        table.add_row("-", "FLAC", "skipped", error.message)

    return table


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
