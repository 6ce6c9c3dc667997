"""Configuration loader for ``.haven-viewer.yml``.

The viewer is read-only: a missing file means defaults, and nothing is ever
written back.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from haven_viewer.config.exceptions import ConfigNotFoundError, ConfigValidationError
from haven_viewer.config.settings import ViewerSettings

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".haven-viewer.yml"


def find_viewer_config(start_dir: Path) -> Path | None:
    """Search upward for ``.haven-viewer.yml``.

    Args:
        start_dir: Starting directory for upward search

    Returns:
        Path to the config file if found, else None
    """
    current = start_dir.expanduser().resolve()
    for candidate in (current, *current.parents):
        config_path = candidate / CONFIG_FILENAME
        if config_path.is_file():
            return config_path
    return None


def load_viewer_config(config_path: Path | None = None, *, start_dir: Path | None = None) -> ViewerSettings:
    """Load settings from a YAML file layered over defaults and environment.

    Args:
        config_path: Explicit file to load. Must exist when given.
        start_dir: Where to start the upward search when no explicit path is given
            (defaults to the current directory).

    Returns:
        Validated ViewerSettings instance

    Raises:
        ConfigNotFoundError: If ``config_path`` is given but does not exist
        ConfigValidationError: If ``config_path`` is given but holds invalid values.
            A discovered file with invalid values only logs and falls back to defaults.
    """
    explicit = config_path is not None
    if config_path is not None:
        config_path = config_path.expanduser()
        if not config_path.is_file():
            raise ConfigNotFoundError(config_path)
    else:
        config_path = find_viewer_config(start_dir or Path.cwd())

    if config_path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILENAME)
        return ViewerSettings()

    logger.debug("Loading config from %s", config_path)

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        logger.error("Failed to parse %s: %s", config_path, e)
        logger.warning("Using default settings due to YAML error")
        return ViewerSettings()

    if not isinstance(data, dict):
        logger.error("Config file %s must contain a mapping, got %s", config_path, type(data).__name__)
        return ViewerSettings()

    try:
        return ViewerSettings(**data)
    except ValidationError as e:
        if explicit:
            raise ConfigValidationError(e.errors()) from e
        logger.error("Invalid config in %s: %s", config_path, e)
        logger.warning("Using default settings due to validation error")
        return ViewerSettings()


__all__ = ["CONFIG_FILENAME", "find_viewer_config", "load_viewer_config"]
