"""Running the async integrity verifier from synchronous callers."""

from __future__ import annotations

import asyncio
import concurrent.futures
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


def run_async_safely(coro: Coroutine[Any, Any, T]) -> T:
    """Drive ``coro`` to completion and return its result.

    The CLI has no loop running and gets a plain ``asyncio.run``. A caller
    that is itself inside a running loop (an async application calling
    ``verify_archive_sync``) cannot nest ``asyncio.run``; the coroutine then
    runs on a private loop in a worker thread while the caller blocks. Digest
    offloading through ``asyncio.to_thread`` works in both cases because each
    loop owns its default executor.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="haven-verify") as executor:
        return executor.submit(asyncio.run, coro).result()


__all__ = ["run_async_safely"]
