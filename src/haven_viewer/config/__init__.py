"""Configuration for haven-viewer."""

from haven_viewer.config.exceptions import ConfigError, ConfigNotFoundError, ConfigValidationError
from haven_viewer.config.loader import CONFIG_FILENAME, find_viewer_config, load_viewer_config
from haven_viewer.config.settings import (
    ContainerSettings,
    DisplaySettings,
    SearchSettings,
    VerificationSettings,
    ViewerSettings,
)

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigValidationError",
    "ContainerSettings",
    "DisplaySettings",
    "SearchSettings",
    "VerificationSettings",
    "ViewerSettings",
    "find_viewer_config",
    "load_viewer_config",
]
