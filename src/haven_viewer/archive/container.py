"""Container extraction for ``.haven`` exports.

A container is a ZIP archive held fully in memory. Extraction returns a
mapping from entry path to decompressed bytes; entry names are kept exactly
as stored so they can be matched against manifest paths.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from dataclasses import dataclass
from typing import Final

from haven_viewer.archive.exceptions import (
    ContainerCompressionBombError,
    ContainerCorruptError,
    ContainerMemberCountError,
    ContainerMemberSizeError,
    ContainerTotalSizeError,
)
from haven_viewer.archive.models import SkippedEntry
from haven_viewer.config.settings import ContainerSettings

logger = logging.getLogger(__name__)

CONTAINER_MAGIC: Final[bytes] = b"PK\x03\x04"


@dataclass(frozen=True, slots=True)
class ExtractedContainer:
    """Entries that decompressed cleanly, plus the ones that did not."""

    files: dict[str, bytes]
    unreadable: tuple[SkippedEntry, ...] = ()


def is_container(data: bytes) -> bool:
    """Return True when the leading bytes carry the ZIP local-file-header magic."""
    return data[:4] == CONTAINER_MAGIC


def validate_container(zf: zipfile.ZipFile, *, limits: ContainerSettings | None = None) -> None:
    """Check entry metadata against the configured limits before decompressing.

    Raises:
        ContainerLimitError: subclass describing the first violated limit
    """
    limits = limits or ContainerSettings()
    members = zf.infolist()

    if len(members) > limits.max_member_count:
        raise ContainerMemberCountError(len(members), limits.max_member_count)

    total_size = 0
    for info in members:
        if info.is_dir():
            continue

        if info.file_size > limits.max_member_size:
            raise ContainerMemberSizeError(info.filename, info.file_size, limits.max_member_size)

        if info.file_size >= limits.ratio_check_threshold and info.compress_size > 0:
            ratio = info.file_size / info.compress_size
            if ratio > limits.max_compression_ratio:
                raise ContainerCompressionBombError(info.filename, ratio, limits.max_compression_ratio)

        total_size += info.file_size
        if total_size > limits.max_total_size:
            raise ContainerTotalSizeError(total_size, limits.max_total_size)


def extract_container(data: bytes, *, limits: ContainerSettings | None = None) -> ExtractedContainer:
    """Decompress every file entry of a container into memory.

    A damaged entry (bad CRC, broken deflate stream) is left out of the
    mapping and reported in ``unreadable``; the rest of the container is
    still returned.

    Args:
        data: The complete container payload
        limits: Safety limits; defaults apply when omitted

    Raises:
        ContainerCorruptError: If the container directory cannot be read at all
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
        msg = f"Not a readable container: {e}"
        raise ContainerCorruptError(msg) from e

    files: dict[str, bytes] = {}
    unreadable: list[SkippedEntry] = []
    with zf:
        validate_container(zf, limits=limits)
        for info in zf.infolist():
            if info.is_dir():
                continue
            try:
                files[info.filename] = zf.read(info)
            except (zipfile.BadZipFile, zlib.error, NotImplementedError, EOFError, RuntimeError) as e:
                logger.warning("Skipping unreadable container entry %s: %s", info.filename, e)
                unreadable.append(SkippedEntry(source=info.filename, reason=f"unreadable entry: {e}"))

    logger.debug("Extracted %d entries from container (%d unreadable)", len(files), len(unreadable))
    return ExtractedContainer(files=files, unreadable=tuple(unreadable))


__all__ = [
    "CONTAINER_MAGIC",
    "ExtractedContainer",
    "extract_container",
    "is_container",
    "validate_container",
]
