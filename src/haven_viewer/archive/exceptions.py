"""Exceptions raised while loading export archives."""

from __future__ import annotations

from haven_viewer.exceptions import HavenViewerError


class ArchiveError(HavenViewerError):
    """Base exception for archive loading errors."""


class UnsupportedFormatError(ArchiveError):
    """Raised when the input is neither a container nor a decodable JSON document."""


class ContainerCorruptError(ArchiveError):
    """Raised when the container byte stream cannot be read at all."""


class ContainerLimitError(ContainerCorruptError):
    """Base exception for containers rejected by the configured safety limits."""


class ContainerMemberCountError(ContainerLimitError):
    """Raised when a container holds more entries than allowed."""

    def __init__(self, member_count: int, max_member_count: int) -> None:
        self.member_count = member_count
        self.max_member_count = max_member_count
        super().__init__(f"Container holds too many entries ({member_count} > {max_member_count})")


class ContainerMemberSizeError(ContainerLimitError):
    """Raised when a single entry is larger than allowed."""

    def __init__(self, member_name: str, member_size: int, max_member_size: int) -> None:
        self.member_name = member_name
        self.member_size = member_size
        self.max_member_size = max_member_size
        super().__init__(
            f"Container entry '{member_name}' ({member_size} bytes) exceeds maximum size of {max_member_size} bytes"
        )


class ContainerTotalSizeError(ContainerLimitError):
    """Raised when the total uncompressed size is larger than allowed."""

    def __init__(self, total_size: int, max_total_size: int) -> None:
        self.total_size = total_size
        self.max_total_size = max_total_size
        super().__init__(f"Container uncompressed size ({total_size} bytes) exceeds {max_total_size} bytes")


class ContainerCompressionBombError(ContainerLimitError):
    """Raised when an entry has a suspiciously high compression ratio."""

    def __init__(self, member_name: str, ratio: float, max_ratio: float) -> None:
        self.member_name = member_name
        self.ratio = ratio
        self.max_ratio = max_ratio
        super().__init__(
            f"Container entry '{member_name}' has suspicious compression ratio {ratio:.1f} (max {max_ratio:.1f})"
        )


class DocumentMalformedError(ArchiveError):
    """Raised by document parsers when one document cannot be decoded.

    The loader absorbs it: the document is skipped and recorded in the load report.
    """

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Malformed document '{source}': {reason}")


class DuplicateChannelError(ArchiveError):
    """Raised when a channel id was already loaded from an earlier document."""

    def __init__(self, channel_id: str, source: str) -> None:
        self.channel_id = channel_id
        self.source = source
        super().__init__(f"Duplicate channel id '{channel_id}' in '{source}'")


__all__ = [
    "ArchiveError",
    "ContainerCompressionBombError",
    "ContainerCorruptError",
    "ContainerLimitError",
    "ContainerMemberCountError",
    "ContainerMemberSizeError",
    "ContainerTotalSizeError",
    "DocumentMalformedError",
    "DuplicateChannelError",
    "UnsupportedFormatError",
]
