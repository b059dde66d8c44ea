"""Dry run of a repayment to the safety ratio.

The check tells whether the vault could still be pulled back to
``scheme minimum + margin`` with what the wallet holds. It is advisory:
callers report a failure and carry on with the rules.
"""
from __future__ import annotations

import logging
from decimal import Decimal

from .config import BotConfiguration
from .constants import SAFETY_RATIO_MARGIN
from .errors import SafetyCheckError, SizingError
from .interfaces.ledger import BalanceReader, VaultReader
from .sizing import SizingEngine

logger = logging.getLogger(__name__)


class SafetyEvaluator:
    def __init__(
        self,
        vaults: VaultReader,
        sizing: SizingEngine,
        balances: BalanceReader,
        safety_margin: Decimal = SAFETY_RATIO_MARGIN,
    ) -> None:
        self._vaults = vaults
        self._sizing = sizing
        self._balances = balances
        self.safety_margin = Decimal(safety_margin)

    async def check(self, configuration: BotConfiguration) -> None:
        """Raise SafetyCheckError if the safety ratio is out of reach."""
        vault = await self._vaults.get_vault(configuration.vault_id)
        stable = self._sizing.stable_symbol
        safety_ratio = vault.min_ratio_threshold + self.safety_margin
        logger.debug("Checking shares needed to get back to a ratio of %s%%", safety_ratio)

        if vault.current_ratio > safety_ratio and vault.next_ratio > safety_ratio:
            logger.debug(
                "Vault ratio is high enough, skipping safety check (current: %.2f%% / next: %.2f%%)",
                vault.current_ratio, vault.next_ratio,
            )
            return
        if vault.loan_value == 0:
            logger.debug("Vault has no loan, nothing to pay back")
            return

        try:
            needed = await self._sizing.repay_amounts(
                vault, configuration.weights, safety_ratio, cap_to_balance=False
            )
        except SizingError as e:
            raise SafetyCheckError(f"Could not size the repayment: {e}") from e
        if not needed:
            raise SafetyCheckError("There was an issue getting the required token amount to repay!")

        balances = await self._balances.get_all_balances()
        for share in needed:
            if share.pair not in balances:
                raise SafetyCheckError(f"Could not get balance for pair {share.pair}")
            if share.amount > balances[share.pair]:
                raise SafetyCheckError(
                    "Can not get vault into safe ratio: insufficient wallet balance: "
                    f"need {share.amount}@{share.pair}, got {balances[share.pair]}@{share.pair}"
                )

        try:
            withdrawal = await self._sizing.expected_withdrawal(needed, vault)
        except SizingError as e:
            raise SafetyCheckError(f"Could not estimate the withdrawal: {e}") from e

        stable_loans = sum(
            (loan.amount for loan in vault.loan_amounts if loan.symbol == stable),
            Decimal(0),
        )
        if withdrawal.stable.amount > stable_loans:
            raise SafetyCheckError(
                f"Can not get vault into safe ratio: can not pay back enough {stable}, "
                f"loan is {stable_loans}, want to pay back {withdrawal.stable.amount}"
            )
        for expected in withdrawal.assets:
            loan = vault.loan_of(expected.symbol)
            if loan is not None and expected.amount > loan.amount:
                raise SafetyCheckError(
                    f"Can not get vault into safe ratio: can not pay back enough "
                    f"{expected.symbol}, loan is {loan.amount}, want to pay back {expected.amount}"
                )
        logger.info("Safety check was successful")
