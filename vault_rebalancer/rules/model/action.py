"""A named unit of work that may send ledger transactions."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Awaitable, Callable

from ...interfaces.notifier import Notifier
from ...models import ActionReturn, ContinuationToken

logger = logging.getLogger(__name__)

RunFunction = Callable[[ContinuationToken], Awaitable[ActionReturn]]


class Action:
    """Wraps a coroutine function ``(continuation_token) -> ActionReturn``.

    :meth:`run` never raises. A raised exception and a reported failure are
    both returned as ``is_success=False`` with the reason in ``error``, and
    reported through the notifier.
    """

    def __init__(
        self,
        name: str,
        run_function: RunFunction,
        notifier: Notifier | None = None,
    ) -> None:
        self.name = name
        self._run_function = run_function
        self._notifier = notifier

    async def _report(self, message: str) -> None:
        logger.error(message)
        if self._notifier is None:
            return
        try:
            await self._notifier.report_error(message)
        except Exception as e:
            logger.error("Could not report error of action %s: %s", self.name, e)

    async def run(self, continuation_token: ContinuationToken = None) -> ActionReturn:
        logger.debug("Running action %s", self.name)
        try:
            result = await self._run_function(continuation_token)
        except Exception as e:
            message = f"Error running action {self.name}: {e}"
            await self._report(message)
            return ActionReturn(is_success=False, has_tx_sent=False, error=str(e))

        if not result.is_success:
            reason = result.error or f"Something went wrong executing the action: {self.name}"
            await self._report(f"Error running action {self.name}: {reason}")
            if result.error is None:
                return replace(result, error=reason)
        return result

    def __repr__(self) -> str:
        return f"Action({self.name!r})"
