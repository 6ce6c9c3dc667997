"""Main Typer application for haven-viewer."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table
from rich.text import Text

from haven_viewer.archive import Archive, Manifest, load_archive_file
from haven_viewer.archive.navigation import find_channel
from haven_viewer.cli.errorhandler import handle_cli_errors
from haven_viewer.cli.views import banner_panel, channel_view, channels_table, info_view
from haven_viewer.config import ViewerSettings, load_viewer_config
from haven_viewer.config.settings import VerificationSettings
from haven_viewer.integrity import (
    UNSIGNED,
    CancelToken,
    IntegrityVerifier,
    TrustStatus,
    TrustVerdict,
    verdict_summary,
)
from haven_viewer.integrity.verifier import VerdictCallback
from haven_viewer.logging_setup import configure_logging
from haven_viewer.search import search_messages
from haven_viewer.utils.async_utils import run_async_safely

logger = logging.getLogger(__name__)
console = Console()

EXIT_MODIFIED = 2
EXIT_TIMED_OUT = 3

app = typer.Typer(
    name="haven-viewer",
    help="Inspect Haven chat exports offline: channels, messages and integrity",
    add_completion=False,
    no_args_is_help=True,
)

ArchiveArg = Annotated[
    Path,
    typer.Argument(help="A .haven container or a JSON channel export", exists=True, dir_okay=False, readable=True),
]


@dataclass
class CliState:
    settings: ViewerSettings = field(default_factory=ViewerSettings)
    debug: bool = False


def _state(ctx: typer.Context) -> CliState:
    if not isinstance(ctx.obj, CliState):
        ctx.obj = CliState()
    return ctx.obj


@app.callback()
def _initialize_cli(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a .haven-viewer.yml file (default: search upward)"),
    ] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Show full tracebacks on errors")] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (default: $HAVEN_VIEWER_LOG_LEVEL or INFO)"),
    ] = None,
) -> None:
    """Load settings and configure logging before any command runs."""
    configure_logging(log_level)
    with handle_cli_errors(debug=debug):
        ctx.obj = CliState(settings=load_viewer_config(config), debug=debug)


def _load(path: Path, state: CliState) -> Archive:
    with handle_cli_errors(debug=state.debug):
        return load_archive_file(path, settings=state.settings)


@app.command()
def info(ctx: typer.Context, archive_path: ArchiveArg) -> None:
    """Show server, export metadata and load diagnostics."""
    state = _state(ctx)
    archive = _load(archive_path, state)
    console.print(info_view(archive, state.settings.display))


@app.command()
def channels(ctx: typer.Context, archive_path: ArchiveArg) -> None:
    """List channels grouped by category."""
    state = _state(ctx)
    archive = _load(archive_path, state)
    if not archive.channels:
        console.print("[yellow]No channels could be loaded from this export.[/yellow]")
        return
    console.print(channels_table(archive))


@app.command()
def messages(
    ctx: typer.Context,
    archive_path: ArchiveArg,
    channel_id: Annotated[str, typer.Argument(help="Channel id (see `haven-viewer channels`)")],
    limit: Annotated[int | None, typer.Option("--limit", "-n", min=1, help="Show at most N messages")] = None,
) -> None:
    """Print the messages of one channel in export order."""
    state = _state(ctx)
    archive = _load(archive_path, state)
    export = find_channel(archive, channel_id)
    if export is None:
        console.print(f"[red]Channel not found: {escape(channel_id)}[/red]")
        raise typer.Exit(1)
    console.print(channel_view(export, state.settings.display, limit or state.settings.display.message_limit))


async def run_verification(
    manifest: Manifest,
    files: Mapping[str, bytes] | None,
    *,
    settings: VerificationSettings,
    timeout: float | None = None,
    on_update: VerdictCallback | None = None,
) -> TrustVerdict:
    """Verify with an optional deadline; on expiry the run is cancelled and its last progress returned."""
    token = CancelToken()
    verifier = IntegrityVerifier(manifest, files, cancel_token=token, on_update=on_update, settings=settings)
    task = asyncio.create_task(verifier.run())
    if timeout is None:
        return await task
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if not done:
        logger.warning("Verification deadline of %.1fs reached, cancelling", timeout)
        token.cancel()
    return await task


@app.command()
def verify(
    ctx: typer.Context,
    archive_path: ArchiveArg,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", min=0.0, help="Give up after this many seconds"),
    ] = None,
) -> None:
    """Recompute file digests and compare them with the manifest."""
    state = _state(ctx)
    archive = _load(archive_path, state)

    if archive.manifest is None:
        verdict = UNSIGNED
    else:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console,
            transient=True,
        ) as progress:
            task_id = progress.add_task("Verifying archive integrity", total=len(archive.manifest.files))

            def on_update(current: TrustVerdict) -> None:
                progress.update(task_id, completed=current.checked)

            with handle_cli_errors(debug=state.debug):
                verdict = run_async_safely(
                    run_verification(
                        archive.manifest,
                        archive.raw_files,
                        settings=state.settings.verification,
                        timeout=timeout,
                        on_update=on_update,
                    )
                )

    console.print(banner_panel(verdict_summary(archive.manifest, verdict)))
    for mismatch in verdict.mismatches:
        console.print(f"  [red]✗[/red] {escape(mismatch.path)} ({mismatch.reason.value})")

    if verdict.status is TrustStatus.CHECKING:
        console.print(f"[yellow]Verification timed out after {verdict.checked}/{verdict.total} files.[/yellow]")
        raise typer.Exit(EXIT_TIMED_OUT)
    if verdict.status is TrustStatus.MODIFIED:
        raise typer.Exit(EXIT_MODIFIED)


@app.command()
def search(
    ctx: typer.Context,
    archive_path: ArchiveArg,
    query: Annotated[str, typer.Argument(help="Text to look for (case-insensitive)")],
) -> None:
    """Search message text across all channels."""
    state = _state(ctx)
    archive = _load(archive_path, state)
    search_settings = state.settings.search
    if len(query.strip()) < search_settings.min_query_length:
        console.print(f"[yellow]Query must be at least {search_settings.min_query_length} characters.[/yellow]")
        raise typer.Exit(1)

    hits = search_messages(archive.channels, query, settings=search_settings)
    if not hits:
        console.print("No messages found.")
        return

    capped = "+" if len(hits) >= search_settings.max_results else ""
    table = Table(title=f"{len(hits)}{capped} results")
    table.add_column("Channel")
    table.add_column("Sender")
    table.add_column("Date")
    table.add_column("Message id", style="dim")
    table.add_column("Snippet")
    for hit in hits:
        table.add_row(
            Text(f"#{hit.channel_name}"),
            Text(hit.sender_name),
            f"{hit.timestamp:%Y-%m-%d}",
            Text(hit.message_id),
            Text(hit.snippet),
        )
    console.print(table)


__all__ = ["app", "run_verification"]
