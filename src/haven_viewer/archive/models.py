"""Typed documents found inside a Haven export.

Documents are decoded with pydantic. Every model is frozen and ignores
unknown keys so newer exporters that add fields stay readable; sequences are
stored as tuples and keep the order of the source document.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

MANIFEST_FORMAT = "haven-export"


class _Document(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class DateRange(_Document):
    """Inclusive range of message timestamps covered by an export."""

    from_: datetime = Field(alias="from")
    to: datetime


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class ExportedBy(_Document):
    user_id: str
    username: str
    identity_key: str


class FileDigest(_Document):
    """Expected digest and size of one container entry."""

    sha256: str
    size: int = Field(ge=0)


class Manifest(_Document):
    """``manifest.json`` at the root of a container export."""

    version: int
    format: Literal["haven-export"]
    exported_by: ExportedBy
    exported_at: datetime
    server_id: str | None = None
    channel_id: str | None = None
    instance_url: str
    files: dict[str, FileDigest] = Field(default_factory=dict)
    message_count: int = Field(ge=0)
    date_range: DateRange
    user_signature: str | None = None
    server_signature: str | None = None

    @property
    def is_signed(self) -> bool:
        """Whether any signature string is present. Signatures are never checked here."""
        return bool(self.user_signature or self.server_signature)


# ---------------------------------------------------------------------------
# Channel exports
# ---------------------------------------------------------------------------


class ChannelKind(str, enum.Enum):
    """Known channel kinds. Other tags are kept verbatim on ``Channel.type``."""

    TEXT = "text"
    DM = "dm"
    GROUP = "group"


class Channel(_Document):
    id: str
    name: str
    type: str = ChannelKind.TEXT.value
    encrypted: bool = False
    category: str | None = None
    created_at: datetime | None = None

    @property
    def is_direct(self) -> bool:
        return self.type in (ChannelKind.DM.value, ChannelKind.GROUP.value)


class Reaction(_Document):
    emoji: str
    count: int = Field(default=0, ge=0)
    users: tuple[str, ...] = ()


class AttachmentRef(_Document):
    """Metadata for an attachment. The binary content is never loaded."""

    id: str
    filename: str
    mime_type: str = "application/octet-stream"
    size: int = Field(default=0, ge=0)
    width: int | None = None
    height: int | None = None
    file_ref: str = ""

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class Message(_Document):
    id: str
    sender_id: str
    sender_name: str
    sender_display_name: str | None = None
    timestamp: datetime
    text: str | None = None
    content_type: str = "text"
    formatting: str | None = None
    edited: bool = False
    reply_to: str | None = None
    type: str = "user"
    reactions: tuple[Reaction, ...] = ()
    pinned: bool = False
    attachments: tuple[AttachmentRef, ...] = ()


class ChannelExport(_Document):
    """One ``channels/*.json`` or ``dms/*.json`` document."""

    channel: Channel
    exported_at: datetime | None = None
    exported_by: str | None = None
    message_count: int = Field(default=0, ge=0)
    date_range: DateRange | None = None
    messages: tuple[Message, ...]

    @model_validator(mode="before")
    @classmethod
    def _default_message_count(cls, data: Any) -> Any:
        if isinstance(data, dict) and "message_count" not in data and isinstance(data.get("messages"), list):
            return {**data, "message_count": len(data["messages"])}
        return data


# ---------------------------------------------------------------------------
# Server export
# ---------------------------------------------------------------------------


class Server(_Document):
    id: str
    name: str
    description: str | None = None
    icon_url: str | None = None
    created_at: datetime | None = None


class ServerCategory(_Document):
    id: str
    name: str
    position: int = 0


class ServerChannel(_Document):
    id: str
    name: str
    type: str = ChannelKind.TEXT.value
    category_id: str | None = None
    position: int = 0
    encrypted: bool = False
    is_private: bool = False


class Role(_Document):
    id: str
    name: str
    color: str | None = None
    permissions: int = 0
    position: int = 0
    is_default: bool = False


class Member(_Document):
    user_id: str
    username: str
    display_name: str | None = None
    nickname: str | None = None
    roles: tuple[str, ...] = ()
    joined_at: datetime | None = None


class Emoji(_Document):
    id: str
    name: str
    image_ref: str | None = None


class PermissionOverwrite(_Document):
    channel_id: str
    target_type: str
    target_id: str
    allow: int = 0
    deny: int = 0


class ServerExport(_Document):
    """``server.json``: server structure at export time."""

    server: Server
    categories: tuple[ServerCategory, ...] = ()
    channels: tuple[ServerChannel, ...] = ()
    roles: tuple[Role, ...] = ()
    members: tuple[Member, ...] = ()
    emojis: tuple[Emoji, ...] = ()
    permission_overwrites: tuple[PermissionOverwrite, ...] = ()


# ---------------------------------------------------------------------------
# Loaded archive
# ---------------------------------------------------------------------------


class ArchiveFormat(str, enum.Enum):
    CONTAINER = "container"
    JSON = "json"


@dataclass(frozen=True, slots=True)
class SkippedEntry:
    """A document the loader could not use."""

    source: str
    reason: str


@dataclass(frozen=True, slots=True)
class LoadReport:
    """Diagnostics collected while loading: what was skipped and why."""

    skipped: tuple[SkippedEntry, ...] = ()

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


@dataclass(frozen=True, slots=True)
class Archive:
    """The read-only result of loading one export.

    ``raw_files`` maps container entry paths to their bytes. It is ``None``
    for bare JSON input.
    """

    source_format: ArchiveFormat
    manifest: Manifest | None = None
    channels: tuple[ChannelExport, ...] = ()
    server: ServerExport | None = None
    audit_log: tuple[Any, ...] | None = None
    raw_files: Mapping[str, bytes] | None = None
    report: LoadReport = field(default_factory=LoadReport)

    @property
    def message_count(self) -> int:
        return sum(len(export.messages) for export in self.channels)

    def without_raw_files(self) -> Archive:
        """Return a copy that no longer references the extracted entry bytes."""
        return Archive(
            source_format=self.source_format,
            manifest=self.manifest,
            channels=self.channels,
            server=self.server,
            audit_log=self.audit_log,
            raw_files=None,
            report=self.report,
        )


__all__ = [
    "MANIFEST_FORMAT",
    "Archive",
    "ArchiveFormat",
    "AttachmentRef",
    "Channel",
    "ChannelExport",
    "ChannelKind",
    "DateRange",
    "Emoji",
    "ExportedBy",
    "FileDigest",
    "LoadReport",
    "Manifest",
    "Member",
    "Message",
    "PermissionOverwrite",
    "Reaction",
    "Role",
    "Server",
    "ServerCategory",
    "ServerChannel",
    "ServerExport",
    "SkippedEntry",
]
