"""Tests for rich renderables built by the CLI."""

from __future__ import annotations

import json

from rich.console import Console

from haven_viewer.archive import load_archive
from haven_viewer.archive.models import Message
from haven_viewer.cli.views import _role_style, banner_panel, format_size, info_view, message_view, render_tree
from haven_viewer.config.settings import DisplaySettings
from haven_viewer.content import render_document
from haven_viewer.integrity import UNSIGNED, verdict_summary
from tests.factories import channel_dict, message_dict, to_json_bytes


def render(renderable) -> str:
    console = Console(width=100, record=True, color_system=None)
    console.print(renderable)
    return console.export_text()


def test_format_size():
    assert format_size(512) == "512 B"
    assert format_size(2048) == "2.0 KB"
    assert format_size(3 * 1024 * 1024) == "3.0 MB"


def test_render_tree_styles_marks():
    payload = json.dumps(
        {
            "type": "doc",
            "content": [
                {"type": "paragraph", "content": [{"type": "text", "text": "hi", "marks": [{"type": "bold"}]}]},
                {"type": "paragraph", "content": [{"type": "text", "text": "there"}]},
            ],
        }
    )

    text = render_tree(render_document(payload))

    assert text.plain == "hi\nthere"
    assert any(span.style.bold for span in text.spans if not isinstance(span.style, str))


def test_message_view_with_missing_reply_target():
    message = Message.model_validate(message_dict("m2", "answer", reply_to="gone"))

    output = render(message_view(message, [message], DisplaySettings()))

    assert "Unknown [message not found]" in output
    assert "answer" in output


def test_message_view_system_message():
    message = Message.model_validate(message_dict("m1", "alice joined", type="join"))
    assert "alice joined" in render(message_view(message, [message], DisplaySettings()))


def test_message_view_reactions_and_attachments():
    message = Message.model_validate(
        message_dict(
            "m1",
            "look",
            reactions=[{"emoji": "🎉", "count": 3}],
            attachments=[{"id": "a1", "filename": "plan.pdf", "size": 4096}],
            edited=True,
        )
    )

    output = render(message_view(message, [message], DisplaySettings()))

    assert "plan.pdf" in output
    assert "4.0 KB" in output
    assert "(edited)" in output
    assert "3" in output


def test_banner_panel_unsigned():
    output = render(banner_panel(verdict_summary(None, UNSIGNED)))
    assert "Unsigned export" in output
    assert "Authenticity cannot be verified" in output


def test_info_of_bare_archive_has_no_manifest_section():
    archive = load_archive(to_json_bytes(channel_dict("c1")))
    output = render(info_view(archive, DisplaySettings()))

    assert "Export Info" not in output
    assert "json export" in output


def test_role_style_drops_unparseable_colors():
    assert _role_style("#zzzzzz") is None
    assert _role_style("") is None
    assert _role_style(None) is None
    assert _role_style("#00ff00").color.triplet.hex == "#00ff00"
