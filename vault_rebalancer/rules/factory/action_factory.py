"""Actions and action sets of the built-in rules."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping

from ...constants import (
    DEFAULT_REWARD_SYMBOL,
    MINIMUM_UTXO_RESERVE,
    SAFETY_RATIO_MARGIN,
    SILENT_FINISH_MESSAGE,
)
from ...errors import ConfigurationError
from ...interfaces.ledger import Ledger
from ...interfaces.notifier import Notifier
from ...models import (
    ActionReturn,
    AddLiquidity,
    ContinuationToken,
    ConvertUtxoToAccount,
    DepositCollateral,
    PaybackLoan,
    RemoveLiquidity,
    Swap,
    TakeLoan,
    TokenAmount,
    floor_amount,
)
from ...notifications import messages
from ...sizing import SizingEngine, pair_symbol
from ..model import Action, ActionSet, FailurePolicy

logger = logging.getLogger(__name__)


class ActionFactory:
    """Builds the actions that move funds between wallet, pools and vault."""

    def __init__(
        self,
        ledger: Ledger,
        sizing: SizingEngine,
        notifier: Notifier,
        vault_id: str,
        reward_symbol: str = DEFAULT_REWARD_SYMBOL,
        utxo_reserve: Decimal = MINIMUM_UTXO_RESERVE,
        safety_margin: Decimal = SAFETY_RATIO_MARGIN,
        failure_policy: FailurePolicy | str = FailurePolicy.CONTINUE,
    ) -> None:
        self._ledger = ledger
        self._sizing = sizing
        self._notifier = notifier
        self.vault_id = vault_id
        self.stable_symbol = sizing.stable_symbol
        self.reward_symbol = reward_symbol
        self.utxo_reserve = Decimal(utxo_reserve)
        self.safety_margin = Decimal(safety_margin)
        self.failure_policy = FailurePolicy(failure_policy)

    def _action(self, name: str, run_function) -> Action:
        return Action(name, run_function, self._notifier)

    def _action_set(self, name: str, finish_message: str, actions: list[Action]) -> ActionSet:
        return ActionSet(
            name, finish_message, actions, self._notifier, self.failure_policy
        )

    async def _available_utxo(self) -> Decimal:
        utxo = await self._ledger.balances.get_utxo_balance()
        return floor_amount(Decimal(utxo) - self.utxo_reserve)

    async def _convert_utxo(
        self, amount: Decimal, continuation_token: ContinuationToken
    ) -> ContinuationToken:
        logger.info("Converting %s %s from UTXO to token", amount, self.reward_symbol)
        tx = await self._ledger.submitter.submit(
            ConvertUtxoToAccount(amount), continuation_token
        )
        logger.debug("UTXO conversion posted in transaction %s", tx.id)
        return tx.continuation_token

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def add_collateral_action(self, token: str) -> Action:
        """Deposit the whole wallet balance of ``token`` into the vault.

        For the reward token the UTXO balance above the fee reserve is
        converted and deposited as well.
        """

        async def add_collateral(continuation_token: ContinuationToken) -> ActionReturn:
            balances = self._ledger.balances
            amount = floor_amount(Decimal(await balances.get_balance(token)))
            tx_sent = False

            if token == self.reward_symbol:
                utxo = await self._available_utxo()
                if utxo > 0:
                    continuation_token = await self._convert_utxo(utxo, continuation_token)
                    tx_sent = True
                    amount += utxo

            if amount <= 0:
                logger.info("No %s to deposit", token)
                return ActionReturn(
                    is_success=True,
                    has_tx_sent=tx_sent,
                    continuation_token=continuation_token,
                    status_message=SILENT_FINISH_MESSAGE,
                )

            logger.info("Depositing %s %s to vault", amount, token)
            tx = await self._ledger.submitter.submit(
                DepositCollateral(self.vault_id, TokenAmount(token, amount)),
                continuation_token,
            )
            return ActionReturn(
                is_success=True, has_tx_sent=True, continuation_token=tx.continuation_token
            )

        return self._action("addCollateral", add_collateral)

    def waiting_action(self) -> Action:
        async def wait_for_next_block(continuation_token: ContinuationToken) -> ActionReturn:
            clock = self._ledger.clock
            current = await clock.get_current_block()
            await clock.wait_for_next_block(current.height)
            return ActionReturn(is_success=True, has_tx_sent=False)

        return self._action("waitForNextBlock", wait_for_next_block)

    def swap_action(self, target_token: str) -> Action:
        """Swap the whole reward balance, UTXO included, into ``target_token``."""

        async def swap_token(continuation_token: ContinuationToken) -> ActionReturn:
            tx_sent = False
            utxo = await self._available_utxo()
            if utxo > 0:
                await self._convert_utxo(utxo, continuation_token)
                tx_sent = True
                # A swap can not spend unconfirmed outputs
                clock = self._ledger.clock
                await clock.wait_for_next_block((await clock.get_current_block()).height)
                continuation_token = None

            amount = floor_amount(
                Decimal(await self._ledger.balances.get_balance(self.reward_symbol))
            )
            if amount <= 0:
                logger.info("No %s to swap", self.reward_symbol)
                return ActionReturn(
                    is_success=True,
                    has_tx_sent=tx_sent,
                    continuation_token=continuation_token,
                    status_message=SILENT_FINISH_MESSAGE,
                )

            logger.info("%s %s to be swapped into %s", amount, self.reward_symbol, target_token)
            tx = await self._ledger.submitter.submit(
                Swap(self.reward_symbol, target_token, amount), continuation_token
            )
            logger.debug("%s swap posted in transaction %s", target_token, tx.id)
            return ActionReturn(
                is_success=True, has_tx_sent=True, continuation_token=tx.continuation_token
            )

        return self._action("swapToken", swap_token)

    def decrease_ratio_action(self, weights: Mapping[str, Decimal], target_ratio: Decimal) -> Action:
        """Take one loan and add it as liquidity, pair by pair."""

        async def decrease_ratio(continuation_token: ContinuationToken) -> ActionReturn:
            vault = await self._ledger.vaults.get_vault(self.vault_id)
            await self._notifier.send(messages.vault_ratio(vault, target_ratio))

            amounts = [
                a for a in await self._sizing.borrow_amounts(vault, weights, target_ratio)
                if a.asset_amount > 0 and a.stable_amount > 0
            ]
            if not amounts:
                return ActionReturn(
                    is_success=False, has_tx_sent=False, error="Nothing to borrow"
                )

            stable_sum = sum((a.stable_amount for a in amounts), Decimal(0))
            loans = tuple(TokenAmount(a.asset, a.asset_amount) for a in amounts) + (
                TokenAmount(self.stable_symbol, stable_sum),
            )
            loan_tx = await self._ledger.submitter.submit(
                TakeLoan(self.vault_id, loans), continuation_token
            )
            logger.debug("Take loan posted in transaction %s", loan_tx.id)
            token = loan_tx.continuation_token

            try:
                for a in amounts:
                    tx = await self._ledger.submitter.submit(
                        AddLiquidity(
                            pair_symbol(a.asset, self.stable_symbol),
                            TokenAmount(a.asset, a.asset_amount),
                            TokenAmount(self.stable_symbol, a.stable_amount),
                        ),
                        token,
                    )
                    logger.debug("Add liquidity posted in transaction %s", tx.id)
                    token = tx.continuation_token
            except Exception as e:
                return ActionReturn(
                    is_success=False,
                    has_tx_sent=True,
                    continuation_token=token,
                    error=f"There was an error adding liquidity: {e}",
                )
            return ActionReturn(is_success=True, has_tx_sent=True, continuation_token=token)

        return self._action("addLiquidity", decrease_ratio)

    def increase_ratio_action(self, weights: Mapping[str, Decimal], target_ratio: Decimal) -> Action:
        """Remove liquidity and pay the freed tokens back."""

        async def increase_ratio(continuation_token: ContinuationToken) -> ActionReturn:
            vault = await self._ledger.vaults.get_vault(self.vault_id)
            amounts = await self._sizing.repay_amounts(vault, weights, target_ratio)
            if not amounts:
                return ActionReturn(
                    is_success=False,
                    has_tx_sent=False,
                    error="There was an issue getting the required token amount to repay!",
                )

            to_remove = [a for a in amounts if a.amount > 0]
            token = continuation_token
            removed = 0
            try:
                for share in to_remove:
                    tx = await self._ledger.submitter.submit(
                        RemoveLiquidity(share.pair, share.amount), token
                    )
                    logger.debug("Remove liquidity posted in transaction %s", tx.id)
                    token = tx.continuation_token
                    removed += 1
            except Exception as e:
                if removed:
                    return ActionReturn(
                        is_success=False,
                        has_tx_sent=True,
                        continuation_token=token,
                        error=f"There was an error removing liquidity: {e}",
                    )
                logger.warning("There was an error removing liquidity: %s", e)

            if not removed:
                return self._not_enough_liquidity(vault)

            await self._notifier.send(messages.vault_ratio(vault, target_ratio))
            try:
                withdrawal = await self._sizing.expected_withdrawal(to_remove, vault)
                payback = tuple(t for t in withdrawal.payback_amounts() if t.amount > 0)
                tx = await self._ledger.submitter.submit(
                    PaybackLoan(self.vault_id, payback), token
                )
            except Exception as e:
                return ActionReturn(
                    is_success=False,
                    has_tx_sent=True,
                    continuation_token=token,
                    error=f"There was a problem paying back loans: {e}",
                )
            logger.debug("Payback loan posted in transaction %s", tx.id)
            return ActionReturn(
                is_success=True, has_tx_sent=True, continuation_token=tx.continuation_token
            )

        return self._action("paybackLoan", increase_ratio)

    def _not_enough_liquidity(self, vault) -> ActionReturn:
        message = messages.NOT_ENOUGH_LIQUIDITY
        safety_ratio = vault.min_ratio_threshold + self.safety_margin
        if min(vault.current_ratio, vault.next_ratio) > safety_ratio:
            logger.warning(
                "Configured vault ratio can not be reached, not enough liquidity. "
                "The vault is above %s%%, no notification sent",
                safety_ratio,
            )
            message = SILENT_FINISH_MESSAGE
        return ActionReturn(is_success=True, has_tx_sent=False, status_message=message)

    # ------------------------------------------------------------------
    # Action sets
    # ------------------------------------------------------------------

    def compounding_action_set(self, mode: int, token: str | None = None) -> ActionSet:
        if mode == 0:
            logger.debug("Compounding mode 0: compounding is deactivated")
            return self._action_set("Compounding Mode 0", SILENT_FINISH_MESSAGE, [])
        if mode == 1:
            logger.debug("Compounding mode 1: increase %s collateral", self.reward_symbol)
            return self._action_set(
                "Compounding Mode 1",
                f"Increased {self.reward_symbol} collateral",
                [self.add_collateral_action(self.reward_symbol)],
            )
        if mode in (2, 3) and not token:
            raise ConfigurationError(f"Compounding mode {mode} needs a target token")
        if mode == 2:
            logger.debug("Compounding mode 2: swap to %s", token)
            return self._action_set(
                "Compounding Mode 2",
                f"Token swap to {token} successful!",
                [self.swap_action(token)],
            )
        if mode == 3:
            logger.debug("Compounding mode 3: swap to %s and increase collateral", token)
            return self._action_set(
                "Compounding Mode 3",
                "Finished token swap and increased collateral.",
                [
                    self.swap_action(token),
                    self.waiting_action(),
                    self.add_collateral_action(token),
                ],
            )
        raise ConfigurationError(f'Compounding mode "{mode}" is not a valid compounding mode')

    def decrease_ratio_action_set(
        self, weights: Mapping[str, Decimal], target_ratio: Decimal
    ) -> ActionSet:
        return self._action_set(
            "DecreaseVaultRatio",
            messages.BORROW_FINISHED,
            [self.decrease_ratio_action(weights, target_ratio)],
        )

    def increase_ratio_action_set(
        self, weights: Mapping[str, Decimal], target_ratio: Decimal
    ) -> ActionSet:
        return self._action_set(
            "IncreaseVaultRatio",
            messages.REPAY_FINISHED,
            [self.increase_ratio_action(weights, target_ratio)],
        )
