"""Node kinds of the structured message format and of the rendered tree."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeType(str, enum.Enum):
    """Node kinds of the structured document format. Anything else is UNKNOWN."""

    DOC = "doc"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    CODE_BLOCK = "codeBlock"
    BLOCKQUOTE = "blockquote"
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    LIST_ITEM = "listItem"
    HARD_BREAK = "hardBreak"
    TEXT = "text"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> NodeType:
        return cls.UNKNOWN


class MarkType(str, enum.Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKE = "strike"
    CODE = "code"
    LINK = "link"
    SPOILER = "spoiler"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> MarkType:
        return cls.UNKNOWN


class MarkSpec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str
    attrs: dict[str, Any] | None = None

    @property
    def kind(self) -> MarkType:
        return MarkType(self.type)


class DocNode(BaseModel):
    """One node of a serialized structured document."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: str
    content: list[DocNode] = Field(default_factory=list)
    text: str | None = None
    marks: list[MarkSpec] = Field(default_factory=list)
    attrs: dict[str, Any] | None = None

    @field_validator("content", "marks", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def kind(self) -> NodeType:
        return NodeType(self.type)


class Tag(str, enum.Enum):
    """Element kinds of the rendered tree."""

    FRAGMENT = "fragment"
    PARAGRAPH = "p"
    HEADING = "h"
    PREFORMATTED = "pre"
    CODE = "code"
    BLOCKQUOTE = "blockquote"
    BULLET_LIST = "ul"
    ORDERED_LIST = "ol"
    LIST_ITEM = "li"
    LINE_BREAK = "br"
    INLINE = "span"
    STRONG = "strong"
    EMPHASIS = "em"
    UNDERLINE = "u"
    STRIKE = "s"
    LINK = "a"
    SPOILER = "spoiler"


BLOCK_TAGS = frozenset(
    {
        Tag.PARAGRAPH,
        Tag.HEADING,
        Tag.PREFORMATTED,
        Tag.BLOCKQUOTE,
        Tag.BULLET_LIST,
        Tag.ORDERED_LIST,
        Tag.LIST_ITEM,
    }
)


@dataclass(frozen=True, slots=True)
class Text:
    value: str


@dataclass(frozen=True, slots=True)
class Element:
    tag: Tag
    children: tuple[RenderNode, ...] = ()
    attrs: Mapping[str, Any] = field(default_factory=dict)


RenderNode = Element | Text


__all__ = [
    "BLOCK_TAGS",
    "DocNode",
    "Element",
    "MarkSpec",
    "MarkType",
    "NodeType",
    "RenderNode",
    "Tag",
    "Text",
]
