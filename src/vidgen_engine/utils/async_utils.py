"""Bridging helpers for calling the async pipeline from sync entry points."""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")


def _reusable_loop() -> asyncio.AbstractEventLoop:
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = None
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive ``coro`` to completion from Celery tasks and CLI commands.

    The loop is kept open between calls: fal_client and httpx cache
    clients bound to the loop that created them, and a Celery worker
    process runs many tasks back to back.
    """
    return _reusable_loop().run_until_complete(coro)
