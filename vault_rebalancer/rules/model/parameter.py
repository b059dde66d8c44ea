"""Named, lazily evaluated scalar backed by an external read."""
from __future__ import annotations

from decimal import Decimal
from typing import Awaitable, Callable, Union

ParameterValue = Union[Decimal, int, float, str]


class Parameter:
    """Wraps a zero-argument coroutine function.

    Every call to :meth:`current_value` re-runs the read; values are never
    cached between evaluations.
    """

    def __init__(
        self, name: str, get_value: Callable[[], Awaitable[ParameterValue]]
    ) -> None:
        self.name = name
        self._get_value = get_value

    async def current_value(self) -> ParameterValue:
        return await self._get_value()

    def __repr__(self) -> str:
        return f"Parameter({self.name!r})"
