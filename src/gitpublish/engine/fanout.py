from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def fan_out(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Run independent operations together and wait for all of them.

    Siblings are never cancelled: every operation runs to completion, then the
    first failure (in launch order) is raised. Results keep launch order.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    if not tasks:
        return []
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)
