"""Plain-text message search across the channels of an archive."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from haven_viewer.archive.models import ChannelExport
from haven_viewer.archive.navigation import display_name
from haven_viewer.config.settings import SearchSettings

ELLIPSIS = "…"


@dataclass(frozen=True, slots=True)
class SearchHit:
    channel_id: str
    channel_name: str
    message_id: str
    sender_name: str
    snippet: str
    timestamp: datetime


def make_snippet(text: str, start: int, length: int, context: int) -> str:
    """Cut ``context`` characters around a match, marking truncation with an ellipsis."""
    begin = max(0, start - context)
    end = min(len(text), start + length + context)
    prefix = ELLIPSIS if begin > 0 else ""
    suffix = ELLIPSIS if end < len(text) else ""
    return f"{prefix}{text[begin:end]}{suffix}"


def search_messages(
    channels: Iterable[ChannelExport],
    query: str,
    *,
    settings: SearchSettings | None = None,
) -> list[SearchHit]:
    """Case-insensitive substring search over message text, in load order."""
    settings = settings or SearchSettings()
    needle = query.strip().lower()
    if len(needle) < settings.min_query_length:
        return []

    hits: list[SearchHit] = []
    for export in channels:
        for message in export.messages:
            if not message.text:
                continue
            index = message.text.lower().find(needle)
            if index < 0:
                continue
            hits.append(
                SearchHit(
                    channel_id=export.channel.id,
                    channel_name=export.channel.name,
                    message_id=message.id,
                    sender_name=display_name(message),
                    snippet=make_snippet(message.text, index, len(needle), settings.snippet_context),
                    timestamp=message.timestamp,
                )
            )
            if len(hits) >= settings.max_results:
                return hits
    return hits


__all__ = ["SearchHit", "make_snippet", "search_messages"]
