from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from tests.factories import build_signed_container, channel_dict, message_dict, server_dict


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    """Keep developer configuration from leaking into settings under test."""
    for name in list(os.environ):
        if name.startswith("HAVEN_VIEWER_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def general_channel() -> dict:
    return channel_dict(
        "c1",
        "general",
        messages=[
            message_dict("m1", "Welcome to the archive"),
            message_dict("m2", "Thanks!", sender_id="user-2", sender_name="bob", reply_to="m1"),
            message_dict("m3", None, type="join"),
        ],
        category="General",
    )


@pytest.fixture
def signed_container(general_channel) -> bytes:
    return build_signed_container(
        {
            "channels/c1.json": general_channel,
            "channels/c2.json": channel_dict("c2", "random"),
            "server.json": server_dict(),
        }
    )


@pytest.fixture
def signed_container_path(tmp_path: Path, signed_container: bytes) -> Path:
    path = tmp_path / "export.haven"
    path.write_bytes(signed_container)
    return path


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    package = logging.getLogger("haven_viewer")
    handlers = list(root.handlers)
    root_level, package_level = root.level, package.level
    yield
    root.handlers[:] = handlers
    root.setLevel(root_level)
    package.setLevel(package_level)
