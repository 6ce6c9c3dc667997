"""Logging for the viewer.

Log records go to stderr through a single rich handler, so the rendered
archive on stdout can be piped or redirected without diagnostics mixed in.
Only the ``haven_viewer`` logger follows the requested level; the root logger
stays at WARNING so third-party libraries remain quiet.
"""

from __future__ import annotations

import logging
import os
from typing import Final

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["PACKAGE_LOGGER", "configure_logging", "log_console", "resolve_level"]

PACKAGE_LOGGER: Final[str] = "haven_viewer"
_LOG_LEVEL_ENV: Final[str] = "HAVEN_VIEWER_LOG_LEVEL"
_DEFAULT_LEVEL_NAME: Final[str] = "INFO"
_MANAGED_ATTR: Final[str] = "_haven_managed"

log_console = Console(stderr=True)


def resolve_level(level_name: str | None = None) -> tuple[int, str | None]:
    """Return ``(level, rejected_name)`` from the argument or ``HAVEN_VIEWER_LOG_LEVEL``.

    ``rejected_name`` is set when the name is not a logging level; INFO is used then.
    """
    name = (level_name or os.getenv(_LOG_LEVEL_ENV) or _DEFAULT_LEVEL_NAME).strip().upper()
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level, None
    return logging.INFO, name


def _managed_handler(root: logging.Logger) -> RichHandler | None:
    for handler in root.handlers:
        if isinstance(handler, RichHandler) and getattr(handler, _MANAGED_ATTR, False):
            return handler
    return None


def configure_logging(level_name: str | None = None) -> int:
    """Install the stderr rich handler once and set the package log level.

    Repeated calls only change the level. Returns the level applied.
    """
    root_logger = logging.getLogger()
    if _managed_handler(root_logger) is None:
        root_logger.handlers.clear()
        handler = RichHandler(
            console=log_console,
            rich_tracebacks=True,
            show_path=False,
            show_time=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        setattr(handler, _MANAGED_ATTR, True)
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.WARNING)

    level, rejected = resolve_level(level_name)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    logging.captureWarnings(True)
    if rejected is not None:
        logging.getLogger(__name__).warning("Unknown log level %r, using INFO", rejected)
    return level
