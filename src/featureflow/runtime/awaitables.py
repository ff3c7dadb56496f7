from __future__ import annotations

import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """Await ``value`` when a handler returned a coroutine, otherwise pass it through."""
    if inspect.isawaitable(value):
        return await value
    return value


__all__ = ["maybe_await"]
