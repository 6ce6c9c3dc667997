"""SHA-256 content digests for tamper detection."""

from __future__ import annotations

import asyncio
import hashlib


def sha256_hex(data: bytes) -> str:
    """Return the lowercase hex SHA-256 digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


async def sha256_hex_async(data: bytes, *, offload: bool = True) -> str:
    """Compute :func:`sha256_hex` without blocking the event loop.

    With ``offload`` the digest runs in a worker thread. Otherwise it runs
    inline and the coroutine yields once afterwards so other tasks can observe
    progress between entries.
    """
    if offload:
        return await asyncio.to_thread(sha256_hex, data)
    digest = sha256_hex(data)
    await asyncio.sleep(0)
    return digest


def digests_match(expected: str, actual: str) -> bool:
    return expected.strip().lower() == actual


__all__ = ["digests_match", "sha256_hex", "sha256_hex_async"]
