"""Rich renderables for archives, messages and verdicts."""

from __future__ import annotations

import colorsys
from collections.abc import Sequence

from rich.color import Color, ColorParseError
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.table import Table
from rich.text import Text as RichText

from haven_viewer.archive.models import Archive, AttachmentRef, ChannelExport, Message
from haven_viewer.archive.navigation import (
    avatar_hue,
    display_name,
    group_channels,
    is_system_message,
    resolve_reply,
)
from haven_viewer.config.settings import DisplaySettings
from haven_viewer.content import render_message
from haven_viewer.content.nodes import BLOCK_TAGS, Element, RenderNode, Tag, Text
from haven_viewer.integrity.banner import BannerText
from haven_viewer.integrity.verifier import TrustStatus

_MARK_STYLES: dict[Tag, Style] = {
    Tag.STRONG: Style(bold=True),
    Tag.EMPHASIS: Style(italic=True),
    Tag.UNDERLINE: Style(underline=True),
    Tag.STRIKE: Style(strike=True),
    Tag.CODE: Style(color="cyan"),
    Tag.SPOILER: Style(reverse=True),
    Tag.HEADING: Style(bold=True),
    Tag.BLOCKQUOTE: Style(dim=True, italic=True),
}

_BANNER_STYLES: dict[TrustStatus, str] = {
    TrustStatus.CHECKING: "blue",
    TrustStatus.VERIFIED: "green",
    TrustStatus.MODIFIED: "red",
    TrustStatus.UNSIGNED: "yellow",
}


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def _append_node(out: RichText, node: RenderNode, style: Style) -> None:
    if isinstance(node, Text):
        out.append(node.value, style=style)
        return
    if node.tag is Tag.LINE_BREAK:
        out.append("\n")
        return
    if node.tag in (Tag.BULLET_LIST, Tag.ORDERED_LIST):
        _append_list(out, node, style)
        return

    child_style = style
    if node.tag is Tag.LINK:
        child_style = style + Style(color="blue", underline=True, link=str(node.attrs.get("href", "#")))
    elif node.tag in _MARK_STYLES:
        child_style = style + _MARK_STYLES[node.tag]

    for child in node.children:
        _append_node(out, child, child_style)
    if node.tag in BLOCK_TAGS and not out.plain.endswith("\n"):
        out.append("\n")


def _append_list(out: RichText, node: Element, style: Style) -> None:
    for index, item in enumerate(node.children, start=1):
        out.append(f"{index}. " if node.tag is Tag.ORDERED_LIST else "• ", style=style)
        _append_node(out, item, style)
        if not out.plain.endswith("\n"):
            out.append("\n")


def render_tree(node: RenderNode) -> RichText:
    """Convert a render tree into styled terminal text."""
    out = RichText()
    _append_node(out, node, Style())
    out.rstrip()
    return out


def banner_panel(banner: BannerText) -> Panel:
    body = RichText(banner.title, style="bold")
    if banner.subtitle:
        body.append("\n" + banner.subtitle, style="dim")
    return Panel(body, border_style=_BANNER_STYLES[banner.status])


def _attachment_line(attachment: AttachmentRef) -> RichText:
    line = RichText("📎 ")
    line.append(attachment.filename)
    line.append(f"  {format_size(attachment.size)}", style="dim")
    if attachment.is_image and attachment.width and attachment.height:
        line.append(f"  {attachment.width}x{attachment.height}", style="dim")
    return line


def message_view(message: Message, messages: Sequence[Message], settings: DisplaySettings) -> RenderableType:
    timestamp = message.timestamp.strftime("%Y-%m-%d %H:%M")
    if is_system_message(message):
        return RichText(f"{message.text or f'[{message.type}]'}  {timestamp}", style="dim italic")

    parts: list[RenderableType] = []
    if message.reply_to:
        reply = resolve_reply(messages, message, preview_length=settings.reply_preview_length)
        preview = RichText("↪ ", style="dim")
        if reply is None:
            preview.append("Unknown ", style="dim bold")
            preview.append("[message not found]", style="dim")
        else:
            preview.append(f"{reply.sender} ", style="dim bold")
            preview.append(reply.text, style="dim")
        parts.append(preview)

    header = RichText(display_name(message), style=Style(bold=True, color=_avatar_rgb(message.sender_id)))
    header.append(f"  {timestamp}", style="dim")
    if message.edited:
        header.append(" (edited)", style="dim")
    if message.pinned:
        header.append(" 📌")
    parts.append(header)
    parts.append(render_tree(render_message(message)))

    parts.extend(_attachment_line(attachment) for attachment in message.attachments)
    if message.reactions:
        parts.append(RichText("  ".join(f"{reaction.emoji} {reaction.count}" for reaction in message.reactions)))
    return Group(*parts)


def channel_view(export: ChannelExport, settings: DisplaySettings, limit: int | None = None) -> RenderableType:
    title = RichText(f"#{export.channel.name}", style="bold")
    meta = f"  {export.message_count} messages"
    if export.date_range is not None:
        meta += f" · {export.date_range.from_:%Y-%m-%d} – {export.date_range.to:%Y-%m-%d}"
    title.append(meta, style="dim")

    messages = export.messages
    shown = messages[:limit] if limit else messages
    parts: list[RenderableType] = [title, RichText()]
    for message in shown:
        parts.append(message_view(message, messages, settings))
        parts.append(RichText())
    if not messages:
        parts.append(RichText("No messages in this export.", style="dim"))
    elif len(shown) < len(messages):
        parts.append(RichText(f"... {len(messages) - len(shown)} more message(s)", style="dim"))
    return Group(*parts)


def channels_table(archive: Archive) -> Table:
    table = Table(title="Channels", show_lines=False)
    table.add_column("Category")
    table.add_column("Channel")
    table.add_column("Id", style="dim")
    table.add_column("Kind")
    table.add_column("Messages", justify="right")
    for group in group_channels(archive.channels):
        for export in group.channels:
            channel = export.channel
            marker = "@" if channel.is_direct else "#"
            table.add_row(
                RichText(group.category or ""),
                RichText(f"{marker}{channel.name}"),
                RichText(channel.id),
                RichText(channel.type + (" 🔒" if channel.encrypted else "")),
                str(export.message_count),
            )
    return table


def info_view(archive: Archive, settings: DisplaySettings) -> RenderableType:
    parts: list[RenderableType] = []
    if archive.server is not None:
        server = archive.server
        members = Table(title=f"Members ({len(server.members)})", show_header=False, box=None)
        for member in server.members[: settings.max_members_listed]:
            name = member.display_name or member.username
            if member.nickname:
                name += f" ({member.nickname})"
            members.add_row(RichText(name), f"{len(member.roles)} roles" if member.roles else "")
        hidden = len(server.members) - settings.max_members_listed
        if hidden > 0:
            members.add_row(f"+{hidden} more members", "")
        description = RichText(server.server.name, style="bold")
        if server.server.description:
            description.append("\n" + server.server.description, style="dim")
        parts.extend([description, members])
        if server.roles:
            roles = RichText("Roles: ")
            for role in server.roles:
                roles.append(f"● {role.name}  ", style=_role_style(role.color))
            parts.append(roles)

    if archive.manifest is not None:
        manifest = archive.manifest
        grid = Table(title="Export Info", show_header=False, box=None)
        grid.add_row("Exported by", RichText(manifest.exported_by.username))
        grid.add_row("Date", f"{manifest.exported_at:%Y-%m-%d %H:%M}")
        grid.add_row("Messages", f"{manifest.message_count:,}")
        grid.add_row("Files", str(len(manifest.files)))
        if manifest.instance_url:
            grid.add_row("Instance", RichText(manifest.instance_url))
        parts.append(grid)

    summary = RichText(
        f"{archive.source_format.value} export · {len(archive.channels)} channel(s) · {archive.message_count} message(s)"
    )
    parts.append(summary)
    if archive.report.skipped:
        skipped = Table(title="Skipped documents", show_header=True)
        skipped.add_column("Source", no_wrap=True)
        skipped.add_column("Reason")
        for entry in archive.report.skipped:
            skipped.add_row(RichText(entry.source), RichText(entry.reason))
        parts.append(skipped)
    return Group(*parts)


def _role_style(color: str | None) -> Style | None:
    """Style for a role colour; colours rich cannot parse are dropped."""
    if not color:
        return None
    try:
        return Style(color=Color.parse(color))
    except ColorParseError:
        return None


def _avatar_rgb(sender_id: str) -> str:
    """RGB hex equivalent of the sender's avatar color."""
    hue = avatar_hue(sender_id)
    red, green, blue = colorsys.hls_to_rgb(hue / 360, 0.55, 0.60)
    return f"#{int(red * 255):02x}{int(green * 255):02x}{int(blue * 255):02x}"


__all__ = [
    "banner_panel",
    "channel_view",
    "channels_table",
    "format_size",
    "info_view",
    "message_view",
    "render_tree",
]
