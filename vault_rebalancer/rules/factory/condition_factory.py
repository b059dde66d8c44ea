"""Condition sets gating the built-in rules."""
from __future__ import annotations

from decimal import Decimal

from ...models import VaultState
from ..model import ComparisonOperator, Condition, ConditionSet, LogicalOperator
from .parameter_factory import ParameterFactory


class ConditionFactory:
    def __init__(self, parameters: ParameterFactory) -> None:
        self._parameters = parameters

    def _state_is(self, state: VaultState) -> Condition:
        return Condition(
            f"vaultState{state.value.title().replace('_', '')}",
            self._parameters.vault_state(),
            state.value,
            ComparisonOperator.EQ,
        )

    def _vault_active(self) -> ConditionSet:
        return ConditionSet(
            [self._state_is(VaultState.ACTIVE), self._state_is(VaultState.MAY_LIQUIDATE)],
            LogicalOperator.OR,
        )

    def max_ratio_condition_set(self, ratio: Decimal) -> ConditionSet:
        """Ratio at or above ``ratio`` now and next block, or a vault without loan."""
        ratio_reached = ConditionSet(
            [
                Condition(
                    "maxCurrentRatio",
                    self._parameters.current_vault_ratio(),
                    ratio,
                    ComparisonOperator.GE,
                ),
                Condition(
                    "maxNextRatio",
                    self._parameters.next_vault_ratio(),
                    ratio,
                    ComparisonOperator.GE,
                ),
            ],
            LogicalOperator.AND,
        )
        active_and_ratio = ConditionSet(
            [self._vault_active(), ratio_reached], LogicalOperator.AND
        )
        # READY vaults report a ratio of -1
        return ConditionSet(
            [active_and_ratio, self._state_is(VaultState.READY)], LogicalOperator.OR
        )

    def min_ratio_condition_set(self, ratio: Decimal) -> ConditionSet:
        """Active vault whose ratio is below ``ratio`` now or next block."""
        below = ConditionSet(
            [
                Condition(
                    "minCurrentRatio",
                    self._parameters.current_vault_ratio(),
                    ratio,
                    ComparisonOperator.LT,
                ),
                Condition(
                    "minNextRatio",
                    self._parameters.next_vault_ratio(),
                    ratio,
                    ComparisonOperator.LT,
                ),
            ],
            LogicalOperator.OR,
        )
        return ConditionSet([self._vault_active(), below])

    def compounding_condition_set(self, threshold: Decimal) -> ConditionSet:
        return ConditionSet(
            [
                Condition(
                    "rewardBalance",
                    self._parameters.reward_balance(),
                    threshold,
                    ComparisonOperator.GE,
                )
            ]
        )
