"""A module for haven-viewer's command-line interface."""

from haven_viewer.cli.main import app

__all__ = ["app", "main"]


def main() -> None:
    """Entry point for the CLI."""
    app()
