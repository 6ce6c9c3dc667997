"""Turn a message's structured document payload into a render tree.

Malformed payloads never raise past :func:`render_document`; the message's
plain text is rendered instead.
"""

from __future__ import annotations

import json
import logging
from functools import reduce
from typing import Any, Final

from pydantic import ValidationError

from haven_viewer.archive.models import Message
from haven_viewer.content.nodes import DocNode, Element, MarkSpec, MarkType, NodeType, RenderNode, Tag, Text

logger = logging.getLogger(__name__)

STRUCTURED_CONTENT_TYPE: Final[str] = "tiptap"
DEFAULT_HEADING_LEVEL: Final[int] = 3
SUPPORTED_HEADING_LEVELS: Final[frozenset[int]] = frozenset({1, 2, 4})

_MARK_TAGS: Final[dict[MarkType, Tag]] = {
    MarkType.BOLD: Tag.STRONG,
    MarkType.ITALIC: Tag.EMPHASIS,
    MarkType.UNDERLINE: Tag.UNDERLINE,
    MarkType.STRIKE: Tag.STRIKE,
    MarkType.CODE: Tag.CODE,
    MarkType.LINK: Tag.LINK,
    MarkType.SPOILER: Tag.SPOILER,
}

_CONTAINER_TAGS: Final[dict[NodeType, Tag]] = {
    NodeType.DOC: Tag.FRAGMENT,
    NodeType.BLOCKQUOTE: Tag.BLOCKQUOTE,
    NodeType.BULLET_LIST: Tag.BULLET_LIST,
    NodeType.ORDERED_LIST: Tag.ORDERED_LIST,
    NodeType.LIST_ITEM: Tag.LIST_ITEM,
    NodeType.UNKNOWN: Tag.INLINE,
}


class ContentTreeMalformedError(ValueError):
    """Raised internally when a payload is not a structured document."""


def parse_payload(payload: str) -> DocNode:
    try:
        return DocNode.model_validate(json.loads(payload))
    except (json.JSONDecodeError, ValidationError, RecursionError) as e:
        raise ContentTreeMalformedError(str(e)) from e


def heading_level(attrs: dict[str, Any] | None) -> int:
    raw = (attrs or {}).get("level", DEFAULT_HEADING_LEVEL)
    try:
        level = int(raw)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_HEADING_LEVEL
    return level if level in SUPPORTED_HEADING_LEVELS else DEFAULT_HEADING_LEVEL


def _wrap(node: RenderNode, mark: MarkSpec) -> RenderNode:
    kind = mark.kind
    if kind is MarkType.UNKNOWN:
        return node
    if kind is MarkType.LINK:
        href = (mark.attrs or {}).get("href") or "#"
        return Element(Tag.LINK, (node,), {"href": str(href)})
    return Element(_MARK_TAGS[kind], (node,))


def apply_marks(leaf: RenderNode, marks: list[MarkSpec]) -> RenderNode:
    """Wrap ``leaf`` in its marks; the first listed mark ends up outermost."""
    return reduce(_wrap, reversed(marks), leaf)


def transform_node(node: DocNode) -> RenderNode:
    kind = node.kind
    if kind is NodeType.TEXT:
        return apply_marks(Text(node.text or ""), node.marks)

    children = tuple(transform_node(child) for child in node.content)

    match kind:
        case NodeType.PARAGRAPH:
            return Element(Tag.PARAGRAPH, children or (Element(Tag.LINE_BREAK),))
        case NodeType.HEADING:
            return Element(Tag.HEADING, children, {"level": heading_level(node.attrs)})
        case NodeType.CODE_BLOCK:
            return Element(Tag.PREFORMATTED, (Element(Tag.CODE, children),))
        case NodeType.HARD_BREAK:
            return Element(Tag.LINE_BREAK)
        case _:
            return Element(_CONTAINER_TAGS[kind], children)


def render_plain_text(text: str | None) -> Element:
    """Render text as one paragraph per line; blank lines become a break."""
    if not text:
        return Element(Tag.FRAGMENT)
    paragraphs = [
        Element(Tag.PARAGRAPH, (Text(line),) if line else (Element(Tag.LINE_BREAK),)) for line in text.split("\n")
    ]
    return Element(Tag.FRAGMENT, tuple(paragraphs))


def render_document(payload: str | None, fallback_text: str | None = None) -> RenderNode:
    """Render a serialized structured document, or ``fallback_text`` if it is malformed."""
    if payload is None:
        return render_plain_text(fallback_text)
    try:
        root = parse_payload(payload)
    except ContentTreeMalformedError as e:
        logger.debug("Structured content is malformed, using plain text: %s", e)
        return render_plain_text(fallback_text)
    try:
        return transform_node(root)
    except RecursionError:
        logger.debug("Structured content nests too deeply, using plain text")
        return render_plain_text(fallback_text)


def render_message(message: Message) -> RenderNode:
    """Render a message body according to its content type."""
    if message.content_type == STRUCTURED_CONTENT_TYPE and message.formatting:
        return render_document(message.formatting, message.text)
    return render_plain_text(message.text)


__all__ = [
    "STRUCTURED_CONTENT_TYPE",
    "ContentTreeMalformedError",
    "apply_marks",
    "heading_level",
    "parse_payload",
    "render_document",
    "render_message",
    "render_plain_text",
    "transform_node",
]
