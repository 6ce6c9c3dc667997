"""CLI error handling utilities."""

from collections.abc import Generator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.markup import escape

from haven_viewer.archive.exceptions import ContainerCorruptError, ContainerLimitError, UnsupportedFormatError
from haven_viewer.config.exceptions import ConfigError

console = Console(stderr=True)


@contextmanager
def handle_cli_errors(*, debug: bool = False) -> Generator[None, None, None]:
    """Context manager to handle CLI errors gracefully.

    Args:
        debug: If True, re-raise with the full traceback instead of a short message.

    """
    try:
        yield
    except (KeyboardInterrupt, SystemExit, typer.Exit):
        raise
    except UnsupportedFormatError as e:
        if debug:
            raise
        console.print(f"[bold red]Unsupported file:[/bold red] {escape(str(e))}")
        console.print("Expected a .haven container or a JSON channel export.")
        raise typer.Exit(1) from e
    except ContainerLimitError as e:
        if debug:
            raise
        console.print(f"[bold red]Container rejected:[/bold red] {escape(str(e))}")
        console.print("Raise the limits under [bold]container:[/bold] in .haven-viewer.yml if the file is trusted.")
        raise typer.Exit(1) from e
    except ContainerCorruptError as e:
        if debug:
            raise
        console.print(f"[bold red]Corrupt container:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e
    except ConfigError as e:
        if debug:
            raise
        console.print(f"[bold red]Configuration Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e
    except OSError as e:
        if debug:
            raise
        console.print(f"[bold red]Cannot read file:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e
    except Exception as e:
        if debug:
            console.print_exception(show_locals=False)
            raise typer.Exit(1) from e

        console.print(f"[bold red]An unexpected error occurred:[/bold red] {escape(str(e))}")
        console.print("[dim]Run with [bold]--debug[/bold] for more details.[/dim]")
        raise typer.Exit(1) from e
