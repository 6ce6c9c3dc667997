"""Builders for export documents used across the test suite."""

from __future__ import annotations

import hashlib
import io
import json
import zipfile
from typing import Any

EXPORTED_AT = "2024-03-05T09:30:00Z"


def message_dict(message_id: str, text: str | None = "hello", **overrides: Any) -> dict[str, Any]:
    message: dict[str, Any] = {
        "id": message_id,
        "sender_id": "user-1",
        "sender_name": "alice",
        "timestamp": "2024-03-01T10:00:00Z",
        "text": text,
    }
    message.update(overrides)
    return message


def channel_dict(
    channel_id: str,
    name: str | None = None,
    messages: list[dict[str, Any]] | None = None,
    **channel_fields: Any,
) -> dict[str, Any]:
    if messages is None:
        messages = [message_dict(f"{channel_id}-m1")]
    return {
        "channel": {"id": channel_id, "name": name or channel_id, "type": "text", **channel_fields},
        "exported_at": EXPORTED_AT,
        "exported_by": "alice",
        "message_count": len(messages),
        "messages": messages,
    }


def server_dict(**overrides: Any) -> dict[str, Any]:
    server: dict[str, Any] = {
        "server": {"id": "srv-1", "name": "Haven HQ", "description": "Home base"},
        "categories": [{"id": "cat-1", "name": "General", "position": 0}],
        "channels": [{"id": "c1", "name": "general", "type": "text", "category_id": "cat-1"}],
        "roles": [{"id": "r1", "name": "Admin", "color": "#ff0000", "permissions": 8}],
        "members": [{"user_id": "user-1", "username": "alice", "roles": ["r1"]}],
    }
    server.update(overrides)
    return server


def manifest_dict(files: dict[str, bytes], **overrides: Any) -> dict[str, Any]:
    """Manifest whose digests match ``files`` exactly."""
    manifest: dict[str, Any] = {
        "version": 1,
        "format": "haven-export",
        "exported_by": {"user_id": "user-1", "username": "alice", "identity_key": "key-abc"},
        "exported_at": EXPORTED_AT,
        "server_id": "srv-1",
        "instance_url": "https://haven.example",
        "files": {
            path: {"sha256": hashlib.sha256(content).hexdigest(), "size": len(content)}
            for path, content in files.items()
        },
        "message_count": 1,
        "date_range": {"from": "2024-03-01T00:00:00Z", "to": "2024-03-05T00:00:00Z"},
    }
    manifest.update(overrides)
    return manifest


def to_json_bytes(document: Any) -> bytes:
    return json.dumps(document).encode("utf-8")


def build_container(files: dict[str, bytes], compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    """Create an in-memory container holding ``files`` in insertion order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def build_signed_container(
    documents: dict[str, Any],
    *,
    tamper: dict[str, bytes] | None = None,
    **manifest_overrides: Any,
) -> bytes:
    """Container with a manifest covering ``documents``; ``tamper`` replaces bytes after hashing."""
    files = {path: to_json_bytes(document) for path, document in documents.items()}
    manifest = manifest_dict(files, **manifest_overrides)
    files.update(tamper or {})
    return build_container({"manifest.json": to_json_bytes(manifest), **files})
