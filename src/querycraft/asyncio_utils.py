import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")


def run_sync(coro: Awaitable[T]) -> T:
    """
    Run a coroutine to completion from synchronous code.

    Works both with and without a running event loop (e.g. inside Jupyter)
    by patching the loop with nest_asyncio.
    """
    import nest_asyncio

    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = None
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    nest_asyncio.apply(loop)
    return loop.run_until_complete(coro)
