"""Typed decoders for the JSON documents of an export.

Each parser handles exactly one logical document and either returns a model
or raises :class:`DocumentMalformedError`. Deciding what a failure means for
the whole load is the loader's job.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from haven_viewer.archive.exceptions import DocumentMalformedError
from haven_viewer.archive.models import ChannelExport, Manifest, ServerExport

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def decode_json(data: bytes, source: str) -> Any:
    """Decode UTF-8 JSON bytes (a leading BOM is tolerated)."""
    try:
        return json.loads(data.decode("utf-8-sig"))
    except UnicodeDecodeError as e:
        raise DocumentMalformedError(source, f"not UTF-8 text ({e.reason})") from e
    except json.JSONDecodeError as e:
        raise DocumentMalformedError(source, f"invalid JSON ({e.msg} at line {e.lineno})") from e


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    more = f" (+{error.error_count() - 1} more)" if error.error_count() > 1 else ""
    return f"{location}: {first['msg']}{more}"


def validate_document(model: type[_ModelT], obj: Any, source: str) -> _ModelT:
    """Validate an already-decoded JSON value against ``model``."""
    if not isinstance(obj, dict):
        raise DocumentMalformedError(source, f"expected a JSON object, got {type(obj).__name__}")
    try:
        return model.model_validate(obj)
    except ValidationError as e:
        raise DocumentMalformedError(source, _summarize(e)) from e


def parse_manifest(data: bytes, source: str = "manifest.json") -> Manifest:
    return validate_document(Manifest, decode_json(data, source), source)


def parse_channel_export(data: bytes, source: str) -> ChannelExport:
    return validate_document(ChannelExport, decode_json(data, source), source)


def parse_server_export(data: bytes, source: str = "server.json") -> ServerExport:
    return validate_document(ServerExport, decode_json(data, source), source)


def parse_audit_log(data: bytes, source: str = "audit-log.json") -> tuple[Any, ...]:
    """Decode the audit log. Entries stay opaque JSON values."""
    payload = decode_json(data, source)
    if not isinstance(payload, list):
        raise DocumentMalformedError(source, f"expected a JSON array, got {type(payload).__name__}")
    return tuple(payload)


__all__ = [
    "decode_json",
    "parse_audit_log",
    "parse_channel_export",
    "parse_manifest",
    "parse_server_export",
    "validate_document",
]
