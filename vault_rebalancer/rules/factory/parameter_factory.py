"""Parameters read from the ledger on every evaluation."""
from __future__ import annotations

import logging
from decimal import Decimal

from ...constants import DEFAULT_REWARD_SYMBOL, MINIMUM_UTXO_RESERVE
from ...interfaces.ledger import BalanceReader, VaultReader
from ..model import Parameter

logger = logging.getLogger(__name__)


def short_id(value: str) -> str:
    """``abcdefghijkl`` -> ``abcd...ijkl``"""
    if len(value) <= 8:
        return value
    return f"{value[:4]}...{value[-4:]}"


class ParameterFactory:
    def __init__(
        self,
        vaults: VaultReader,
        balances: BalanceReader,
        vault_id: str,
        reward_symbol: str = DEFAULT_REWARD_SYMBOL,
        utxo_reserve: Decimal = MINIMUM_UTXO_RESERVE,
    ) -> None:
        self._vaults = vaults
        self._balances = balances
        self.vault_id = vault_id
        self.reward_symbol = reward_symbol
        self.utxo_reserve = Decimal(utxo_reserve)

    def current_vault_ratio(self) -> Parameter:
        async def get_value() -> Decimal:
            vault = await self._vaults.get_vault(self.vault_id)
            logger.debug(
                "Current vault ratio for %s: %s%%", short_id(self.vault_id), vault.current_ratio
            )
            return vault.current_ratio

        return Parameter("currentVaultRatio", get_value)

    def next_vault_ratio(self) -> Parameter:
        async def get_value() -> Decimal:
            vault = await self._vaults.get_vault(self.vault_id)
            logger.debug(
                "Next vault ratio for %s: %s%%", short_id(self.vault_id), vault.next_ratio
            )
            return vault.next_ratio

        return Parameter("nextVaultRatio", get_value)

    def vault_state(self) -> Parameter:
        """Refined state, e.g. READY/EMPTY/ACTIVE, as a string."""

        async def get_value() -> str:
            vault = await self._vaults.get_vault(self.vault_id)
            logger.debug("Vault state for %s: %s", short_id(self.vault_id), vault.state.value)
            return vault.state.value

        return Parameter("vaultState", get_value)

    def reward_token_balance(self) -> Parameter:
        async def get_value() -> Decimal:
            return Decimal(await self._balances.get_balance(self.reward_symbol))

        return Parameter(f"{self.reward_symbol}TokenBalance", get_value)

    def utxo_balance(self) -> Parameter:
        async def get_value() -> Decimal:
            return Decimal(await self._balances.get_utxo_balance())

        return Parameter(f"{self.reward_symbol}UtxoBalance", get_value)

    def reward_balance(self) -> Parameter:
        """Token balance plus UTXO above the fee reserve, never below zero."""
        token_balance = self.reward_token_balance()
        utxo_balance = self.utxo_balance()

        async def get_value() -> Decimal:
            tokens = Decimal(await token_balance.current_value())
            utxo = Decimal(await utxo_balance.current_value()) - self.utxo_reserve
            total = tokens + utxo
            logger.debug("Available %s balance: %s", self.reward_symbol, total)
            return total if total > 0 else Decimal(0)

        return Parameter(f"{self.reward_symbol}Balance", get_value)
