from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Predicate = Callable[[T], bool | Awaitable[bool]]


class PredicateAggregator(Generic[T]):
    """Combines independent validity checks for a subject.

    Each predicate returns a bool or an awaitable bool. The subject is valid
    only when every predicate says so. A predicate that raises counts as
    ``False``; an unevaluable check is never read as permission.
    """

    def __init__(self, predicates: Sequence[Predicate[T]]) -> None:
        self._predicates = list(predicates)

    async def is_valid(self, subject: T) -> bool:
        results = await asyncio.gather(
            *(self._evaluate(predicate, subject) for predicate in self._predicates),
            return_exceptions=True,
        )
        valid = True
        for predicate, result in zip(self._predicates, results):
            if isinstance(result, BaseException):
                logger.debug(
                    "Predicate %s raised for %r, treating as invalid: %s",
                    getattr(predicate, "__name__", predicate),
                    subject,
                    result,
                )
                valid = False
            elif not result:
                valid = False
        return valid

    @staticmethod
    async def _evaluate(predicate: Predicate[T], subject: T) -> bool:
        result = predicate(subject)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)
