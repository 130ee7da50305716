"""Runtime plumbing shared by atoms and stores: id generation and background I/O.

Storage I/O is the only asynchronous work in atomhub. Steps are coroutines;
_spawn() attaches them to the running event loop, or runs them to completion
right away when no loop is running in this thread.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from typing import Any, Awaitable, Coroutine

# ID generation: itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)

# Strong references to in-flight tasks; the loop only keeps weak ones.
_background: set[asyncio.Task] = set()


def new_id(prefix: str = "sub") -> str:
    return f"{prefix}-{next(_id_counter)}"


async def resolve(result: Any | Awaitable[Any]) -> Any:
    """Await result if the adapter handed back an awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result


def spawn(coro: Coroutine[Any, Any, Any]) -> asyncio.Task | None:
    """Schedule coro on the running loop, or run it now if there is none.

    Returns the task when scheduled, None when it already ran.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(coro)
        return None
    task = loop.create_task(coro)
    _background.add(task)
    task.add_done_callback(_background.discard)
    return task
