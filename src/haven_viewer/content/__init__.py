"""Rendering of structured message content."""

from haven_viewer.content.nodes import DocNode, Element, MarkType, NodeType, RenderNode, Tag, Text
from haven_viewer.content.text import to_plain_text
from haven_viewer.content.transform import (
    STRUCTURED_CONTENT_TYPE,
    ContentTreeMalformedError,
    render_document,
    render_message,
    render_plain_text,
)

__all__ = [
    "STRUCTURED_CONTENT_TYPE",
    "ContentTreeMalformedError",
    "DocNode",
    "Element",
    "MarkType",
    "NodeType",
    "RenderNode",
    "Tag",
    "Text",
    "render_document",
    "render_message",
    "render_plain_text",
    "to_plain_text",
]
