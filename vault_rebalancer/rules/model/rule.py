"""Binds a gate (condition set) to an effect (action set)."""
from __future__ import annotations

import logging

from ...models import ActionReturn
from .action_set import ActionSet
from .condition_set import ConditionSet

logger = logging.getLogger(__name__)


class Rule:
    def __init__(
        self,
        name: str,
        description: str,
        condition_set: ConditionSet,
        action_set: ActionSet,
    ) -> None:
        self.name = name
        self.description = description
        self.condition_set = condition_set
        self.action_set = action_set

    async def run(self) -> ActionReturn:
        """Run the action set if the gate holds; a skipped rule is a success."""
        if not await self.condition_set.is_fulfilled():
            logger.info(
                'Did not run rule "%s" because its conditions were not fulfilled', self.name
            )
            return ActionReturn(is_success=True, has_tx_sent=False)

        logger.info("Running action set of rule %s", self.name)
        return await self.action_set.run()

    def __repr__(self) -> str:
        return f"Rule({self.name!r})"
