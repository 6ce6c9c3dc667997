"""Runtime settings for the Haven archive viewer.

Values come from three layers, lowest priority first:

- defaults declared on the models below
- an optional ``.haven-viewer.yml`` file (see :mod:`haven_viewer.config.loader`)
- environment variables ``HAVEN_VIEWER_SECTION__KEY``, which also override
  values passed to ``ViewerSettings(...)`` directly
  (e.g. ``HAVEN_VIEWER_SEARCH__MAX_RESULTS=100``)
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

logger = logging.getLogger(__name__)

MIB = 1024 * 1024


class ContainerSettings(BaseModel):
    """Limits applied to export containers before anything is decompressed."""

    max_member_count: int = Field(default=10_000, ge=1, description="Maximum number of entries")
    max_member_size: int = Field(
        default=256 * MIB,
        ge=1,
        description="Maximum uncompressed size of a single entry in bytes",
    )
    max_total_size: int = Field(
        default=1024 * MIB,
        ge=1,
        description="Maximum uncompressed size of all entries in bytes",
    )
    max_compression_ratio: float = Field(
        default=200.0,
        gt=1.0,
        description="Maximum uncompressed/compressed ratio for large entries",
    )
    ratio_check_threshold: int = Field(
        default=1 * MIB,
        ge=0,
        description="Entries smaller than this are exempt from the ratio check",
    )


class VerificationSettings(BaseModel):
    """Integrity verification behaviour."""

    offload_digests: bool = Field(
        default=True,
        description="Compute digests in a worker thread instead of on the event loop",
    )


class SearchSettings(BaseModel):
    """Message search limits."""

    min_query_length: int = Field(default=2, ge=1)
    max_results: int = Field(default=50, ge=1)
    snippet_context: int = Field(default=30, ge=0, description="Characters kept on each side of a hit")


class DisplaySettings(BaseModel):
    """Presentation defaults used by the command line viewer."""

    reply_preview_length: int = Field(default=100, ge=1)
    max_members_listed: int = Field(default=50, ge=0)
    message_limit: int | None = Field(default=None, ge=1, description="Default cap on printed messages")


class ViewerSettings(BaseSettings):
    """Root configuration for haven-viewer."""

    container: ContainerSettings = Field(default_factory=ContainerSettings)
    verification: VerificationSettings = Field(default_factory=VerificationSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)

    model_config = SettingsConfigDict(
        extra="forbid",
        validate_assignment=True,
        env_prefix="HAVEN_VIEWER_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment variables win over values passed in, which hold the YAML file."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @model_validator(mode="after")
    def validate_cross_field(self) -> ViewerSettings:
        """Warn when one container limit makes another unreachable."""
        if self.container.max_member_size > self.container.max_total_size:
            logger.warning(
                "container.max_member_size (%s) exceeds container.max_total_size (%s); "
                "the total size limit will apply first",
                self.container.max_member_size,
                self.container.max_total_size,
            )
        return self


__all__ = [
    "ContainerSettings",
    "DisplaySettings",
    "SearchSettings",
    "VerificationSettings",
    "ViewerSettings",
]
