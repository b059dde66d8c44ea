"""Ordered execution of actions with continuation-token threading."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable

from ...constants import SILENT_FINISH_MESSAGE
from ...interfaces.notifier import Notifier
from ...models import ActionReturn, ContinuationToken
from .action import Action

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    """What an action set does after one of its actions failed."""

    CONTINUE = "continue"
    ABORT = "abort"


class ActionSet:
    """Runs its actions strictly one after another.

    Later actions may spend outputs of earlier, still unconfirmed,
    transactions: an action that sent a transaction hands its continuation
    token to the next one, any other action passes the incoming token on.
    A ``status_message`` returned by an action replaces the finish message
    (last one wins); a finish message of ``"n/a"`` is never sent.
    """

    def __init__(
        self,
        name: str,
        finish_message: str,
        actions: Iterable[Action],
        notifier: Notifier | None = None,
        failure_policy: FailurePolicy | str = FailurePolicy.CONTINUE,
    ) -> None:
        self.name = name
        self.finish_message = finish_message
        self.actions = tuple(actions)
        self._notifier = notifier
        self.failure_policy = FailurePolicy(failure_policy)

    async def run(self) -> ActionReturn:
        logger.debug("Starting action set %s", self.name)
        token: ContinuationToken = None
        finish_message = self.finish_message
        all_succeeded = True
        any_tx_sent = False
        errors: list[str] = []
        executed = 0

        for action in self.actions:
            result = await action.run(token)
            executed += 1

            if result.has_tx_sent:
                token = result.continuation_token
                any_tx_sent = True
            if result.status_message:
                finish_message = result.status_message
            if not result.is_success:
                all_succeeded = False
                if result.error:
                    errors.append(f"{action.name}: {result.error}")
                if self.failure_policy is FailurePolicy.ABORT:
                    logger.warning(
                        "Action %s failed, aborting action set %s", action.name, self.name
                    )
                    break

        skipped = len(self.actions) - executed
        is_success = all_succeeded and skipped == 0

        if is_success and finish_message != SILENT_FINISH_MESSAGE:
            await self._notify(finish_message)

        return ActionReturn(
            is_success=is_success,
            has_tx_sent=any_tx_sent,
            continuation_token=token,
            status_message=finish_message,
            error="; ".join(errors) or (None if is_success else f"Action set {self.name} failed"),
        )

    async def _notify(self, message: str) -> None:
        if self._notifier is None:
            logger.info(message)
            return
        try:
            await self._notifier.send(message)
        except Exception as e:
            logger.error("Could not send finish message of %s: %s", self.name, e)

    def __repr__(self) -> str:
        return f"ActionSet({self.name!r}, {len(self.actions)} actions)"
