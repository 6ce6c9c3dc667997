"""Tests for message search."""

from __future__ import annotations

from haven_viewer.archive.models import ChannelExport
from haven_viewer.config.settings import SearchSettings
from haven_viewer.search import ELLIPSIS, make_snippet, search_messages
from tests.factories import channel_dict, message_dict


def export(channel_id: str, *texts: str | None) -> ChannelExport:
    messages = [message_dict(f"{channel_id}-{index}", value) for index, value in enumerate(texts)]
    return ChannelExport.model_validate(channel_dict(channel_id, messages=messages))


def test_search_is_case_insensitive_and_ordered():
    channels = [export("a", "Hello there", None, "nothing"), export("b", "say HELLO")]

    hits = search_messages(channels, "hello")

    assert [(hit.channel_id, hit.message_id) for hit in hits] == [("a", "a-0"), ("b", "b-0")]
    assert hits[0].sender_name == "alice"
    assert hits[0].channel_name == "a"


def test_short_queries_return_nothing():
    assert search_messages([export("a", "a b c")], "a") == []
    assert search_messages([export("a", "a b c")], "  b ") == []


def test_results_are_capped():
    channels = [export("a", *["match"] * 30), export("b", *["match"] * 30)]

    assert len(search_messages(channels, "match")) == 50
    assert len(search_messages(channels, "match", settings=SearchSettings(max_results=5))) == 5


def test_snippet_marks_truncation():
    text = "x" * 40 + "needle" + "y" * 40

    snippet = make_snippet(text, 40, 6, 30)

    assert snippet == f"{ELLIPSIS}{'x' * 30}needle{'y' * 30}{ELLIPSIS}"


def test_snippet_without_truncation():
    assert make_snippet("short needle", 6, 6, 30) == "short needle"
