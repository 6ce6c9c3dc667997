"""Loading Haven export archives into typed, read-only models."""

from haven_viewer.archive.container import ExtractedContainer, extract_container, is_container
from haven_viewer.archive.exceptions import (
    ArchiveError,
    ContainerCorruptError,
    ContainerLimitError,
    DocumentMalformedError,
    UnsupportedFormatError,
)
from haven_viewer.archive.loader import detect_format, load_archive, load_archive_file
from haven_viewer.archive.models import (
    Archive,
    ArchiveFormat,
    AttachmentRef,
    Channel,
    ChannelExport,
    LoadReport,
    Manifest,
    Message,
    Reaction,
    ServerExport,
    SkippedEntry,
)

__all__ = [
    "Archive",
    "ArchiveError",
    "ArchiveFormat",
    "AttachmentRef",
    "Channel",
    "ChannelExport",
    "ContainerCorruptError",
    "ContainerLimitError",
    "DocumentMalformedError",
    "ExtractedContainer",
    "LoadReport",
    "Manifest",
    "Message",
    "Reaction",
    "ServerExport",
    "SkippedEntry",
    "UnsupportedFormatError",
    "detect_format",
    "extract_container",
    "is_container",
    "load_archive",
    "load_archive_file",
]
