"""Read-only lookups over a loaded archive used by the viewer."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from haven_viewer.archive.models import Archive, ChannelExport, Message

DEFAULT_REPLY_PREVIEW_LENGTH = 100


@dataclass(frozen=True, slots=True)
class ChannelGroup:
    """Channels sharing a category. ``category`` is None for uncategorized ones."""

    category: str | None
    channels: tuple[ChannelExport, ...]


@dataclass(frozen=True, slots=True)
class ReplyPreview:
    message_id: str
    sender: str
    text: str


def find_channel(archive: Archive, channel_id: str) -> ChannelExport | None:
    for export in archive.channels:
        if export.channel.id == channel_id:
            return export
    return None


def group_channels(channels: Iterable[ChannelExport]) -> list[ChannelGroup]:
    """Group channels by category.

    Uncategorized channels come first, then each category in the order it is
    first seen. Load order is kept inside every group.
    """
    uncategorized: list[ChannelExport] = []
    by_category: dict[str, list[ChannelExport]] = {}
    for export in channels:
        category = export.channel.category
        if category:
            by_category.setdefault(category, []).append(export)
        else:
            uncategorized.append(export)

    groups = [ChannelGroup(category=None, channels=tuple(uncategorized))] if uncategorized else []
    groups.extend(ChannelGroup(category=name, channels=tuple(items)) for name, items in by_category.items())
    return groups


def display_name(message: Message) -> str:
    return message.sender_display_name or message.sender_name


def is_system_message(message: Message) -> bool:
    return message.type != "user"


def resolve_reply(
    messages: Sequence[Message],
    message: Message,
    *,
    preview_length: int = DEFAULT_REPLY_PREVIEW_LENGTH,
) -> ReplyPreview | None:
    """Find the message ``message`` replies to within the same channel.

    Returns None when the message is not a reply or when the target was not
    part of the export.
    """
    if not message.reply_to:
        return None
    for candidate in messages:
        if candidate.id == message.reply_to:
            return ReplyPreview(
                message_id=candidate.id,
                sender=display_name(candidate),
                text=(candidate.text or "")[:preview_length],
            )
    return None


def avatar_hue(sender_id: str) -> int:
    """Stable hue in degrees derived from a sender id."""
    value = 0
    for unit in _utf16_units(sender_id):
        value = _to_int32(unit + ((value << 5) - value))
    return abs(value) % 360


def avatar_color(sender_id: str) -> str:
    return f"hsl({avatar_hue(sender_id)}, 60%, 55%)"


def _utf16_units(text: str) -> list[int]:
    raw = text.encode("utf-16-le")
    return [int.from_bytes(raw[i : i + 2], "little") for i in range(0, len(raw), 2)]


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


__all__ = [
    "ChannelGroup",
    "ReplyPreview",
    "avatar_color",
    "avatar_hue",
    "display_name",
    "find_channel",
    "group_channels",
    "is_system_message",
    "resolve_reply",
]
