"""Format detection and loading of Haven exports.

``load_archive`` is the single ingestion entry point. Only two conditions
escape it as exceptions: bytes that are neither a container nor decodable
JSON (:class:`UnsupportedFormatError`) and a container whose structure cannot
be read (:class:`ContainerCorruptError`). Every other problem degrades the
result: the damaged document is skipped and listed in ``Archive.report``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ValidationError

from haven_viewer.archive.container import extract_container, is_container
from haven_viewer.archive.exceptions import (
    DocumentMalformedError,
    DuplicateChannelError,
    UnsupportedFormatError,
)
from haven_viewer.archive.models import (
    Archive,
    ArchiveFormat,
    ChannelExport,
    LoadReport,
    Manifest,
    ServerExport,
    SkippedEntry,
)
from haven_viewer.archive.parsers import (
    decode_json,
    parse_audit_log,
    parse_channel_export,
    parse_manifest,
    parse_server_export,
    validate_document,
)
from haven_viewer.config.settings import ViewerSettings

logger = logging.getLogger(__name__)

MANIFEST_PATH: Final[str] = "manifest.json"
SERVER_PATH: Final[str] = "server.json"
AUDIT_LOG_PATH: Final[str] = "audit-log.json"
CHANNEL_PREFIXES: Final[tuple[str, ...]] = ("channels/", "dms/")
BARE_DOCUMENT: Final[str] = "<document>"


def detect_format(data: bytes) -> ArchiveFormat:
    """Choose container or bare-JSON mode from the leading bytes."""
    return ArchiveFormat.CONTAINER if is_container(data) else ArchiveFormat.JSON


def is_channel_document(path: str) -> bool:
    return path.startswith(CHANNEL_PREFIXES) and path.endswith(".json")


@dataclass
class _LoadCollector:
    """Accumulates parsed channels and skipped documents during one load."""

    channels: list[ChannelExport] = field(default_factory=list)
    skipped: list[SkippedEntry] = field(default_factory=list)
    _seen_ids: set[str] = field(default_factory=set)

    def skip(self, source: str, reason: str) -> None:
        logger.warning("Skipping %s: %s", source, reason)
        self.skipped.append(SkippedEntry(source=source, reason=reason))

    def add_channel(self, export: ChannelExport, source: str) -> None:
        channel_id = export.channel.id
        if channel_id in self._seen_ids:
            raise DuplicateChannelError(channel_id, source)
        self._seen_ids.add(channel_id)
        self.channels.append(export)

    def try_channel_bytes(self, data: bytes, source: str) -> None:
        try:
            self.add_channel(parse_channel_export(data, source), source)
        except DocumentMalformedError as e:
            self.skip(source, e.reason)
        except DuplicateChannelError as e:
            self.skip(source, str(e))

    def try_channel_object(self, obj: Any, source: str) -> None:
        try:
            self.add_channel(validate_document(ChannelExport, obj, source), source)
        except DocumentMalformedError as e:
            self.skip(source, e.reason)
        except DuplicateChannelError as e:
            self.skip(source, str(e))

    def report(self) -> LoadReport:
        return LoadReport(skipped=tuple(self.skipped))


def load_archive(data: bytes, *, settings: ViewerSettings | None = None) -> Archive:
    """Load an export from its complete byte payload.

    Args:
        data: The whole export, already read into memory
        settings: Viewer settings (container limits); defaults when omitted

    Returns:
        The loaded archive

    Raises:
        UnsupportedFormatError: Bare-mode bytes are not decodable JSON
        ContainerCorruptError: The container cannot be read
    """
    settings = settings or ViewerSettings()
    archive_format = detect_format(data)
    logger.debug("Detected %s export (%d bytes)", archive_format.value, len(data))

    if archive_format is ArchiveFormat.CONTAINER:
        archive = _load_container(data, settings)
    else:
        archive = _load_bare_json(data)

    logger.info(
        "Loaded %d channel(s), %d message(s); %d document(s) skipped",
        len(archive.channels),
        archive.message_count,
        archive.report.skipped_count,
    )
    return archive


def load_archive_file(path: Path, *, settings: ViewerSettings | None = None) -> Archive:
    """Read an export file fully and load it."""
    return load_archive(path.read_bytes(), settings=settings)


def _load_container(data: bytes, settings: ViewerSettings) -> Archive:
    extracted = extract_container(data, limits=settings.container)
    files = extracted.files
    collector = _LoadCollector(skipped=list(extracted.unreadable))

    manifest: Manifest | None = None
    if MANIFEST_PATH in files:
        try:
            manifest = parse_manifest(files[MANIFEST_PATH], MANIFEST_PATH)
        except DocumentMalformedError as e:
            collector.skip(MANIFEST_PATH, e.reason)

    for path, content in files.items():
        if is_channel_document(path):
            collector.try_channel_bytes(content, path)

    server: ServerExport | None = None
    if SERVER_PATH in files:
        try:
            server = parse_server_export(files[SERVER_PATH], SERVER_PATH)
        except DocumentMalformedError as e:
            collector.skip(SERVER_PATH, e.reason)

    audit_log: tuple[Any, ...] | None = None
    if AUDIT_LOG_PATH in files:
        try:
            audit_log = parse_audit_log(files[AUDIT_LOG_PATH], AUDIT_LOG_PATH)
        except DocumentMalformedError as e:
            collector.skip(AUDIT_LOG_PATH, e.reason)

    return Archive(
        source_format=ArchiveFormat.CONTAINER,
        manifest=manifest,
        channels=tuple(collector.channels),
        server=server,
        audit_log=audit_log,
        raw_files=files,
        report=collector.report(),
    )


class _MultiChannelDocument(BaseModel):
    """Bare-JSON wrapper holding several channel exports."""

    channels: list[Any]


def _load_bare_json(data: bytes) -> Archive:
    try:
        payload = decode_json(data, BARE_DOCUMENT)
    except DocumentMalformedError as e:
        msg = f"Input is neither an export container nor a JSON document: {e.reason}"
        raise UnsupportedFormatError(msg) from e

    collector = _LoadCollector()

    try:
        single = validate_document(ChannelExport, payload, BARE_DOCUMENT)
    except DocumentMalformedError as single_error:
        try:
            wrapper = _MultiChannelDocument.model_validate(payload)
        except ValidationError:
            collector.skip(
                BARE_DOCUMENT,
                f"unsupported document shape: not a channel export ({single_error.reason}) "
                "and no 'channels' array",
            )
        else:
            for index, obj in enumerate(wrapper.channels):
                collector.try_channel_object(obj, f"channels[{index}]")
    else:
        collector.add_channel(single, BARE_DOCUMENT)

    return Archive(
        source_format=ArchiveFormat.JSON,
        channels=tuple(collector.channels),
        report=collector.report(),
    )


__all__ = [
    "AUDIT_LOG_PATH",
    "CHANNEL_PREFIXES",
    "MANIFEST_PATH",
    "SERVER_PATH",
    "detect_format",
    "is_channel_document",
    "load_archive",
    "load_archive_file",
]
