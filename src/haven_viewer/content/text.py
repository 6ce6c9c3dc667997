"""Flatten a render tree to plain text."""

from __future__ import annotations

from haven_viewer.content.nodes import BLOCK_TAGS, Element, RenderNode, Tag, Text


def _flatten(node: RenderNode) -> str:
    if isinstance(node, Text):
        return node.value
    if node.tag is Tag.LINE_BREAK:
        return "\n"
    if node.tag in (Tag.BULLET_LIST, Tag.ORDERED_LIST):
        return _flatten_list(node)

    inner = "".join(_flatten(child) for child in node.children)
    if node.tag in BLOCK_TAGS and not inner.endswith("\n"):
        inner += "\n"
    return inner


def _flatten_list(node: Element) -> str:
    lines = []
    for index, item in enumerate(node.children, start=1):
        marker = f"{index}. " if node.tag is Tag.ORDERED_LIST else "- "
        lines.append(marker + _flatten(item))
    return "".join(line if line.endswith("\n") else line + "\n" for line in lines)


def to_plain_text(node: RenderNode) -> str:
    """Return the text of a render tree with line breaks between blocks."""
    return _flatten(node).rstrip("\n")


__all__ = ["to_plain_text"]
