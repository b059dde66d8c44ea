"""Read-only valuation view over a vault as reported by the ledger."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .constants import (
    DEFAULT_STABLE_SYMBOL,
    STABLE_COLLATERAL_PRICE_AFTER,
    STABLE_COLLATERAL_PRICE_BEFORE,
    STABLE_COLLATERAL_SWITCH_BLOCK,
    STABLE_LOAN_PRICE,
    UNDEFINED_RATIO,
)
from .models import TokenAmount, VaultState, floor_amount

_ACTIVE_LEDGER_STATES = frozenset(
    {VaultState.ACTIVE, VaultState.MAY_LIQUIDATE, VaultState.UNKNOWN}
)


@dataclass(frozen=True)
class VaultSnapshot:
    """One fetch of a vault.

    ``collateral_ratio`` is the ratio reported by the ledger; it is ``-1``
    while the vault has no loan or no collateral, so it only carries meaning
    when :attr:`state` is neither READY nor EMPTY.
    """

    vault_id: str
    ledger_state: VaultState
    collateral_value: Decimal
    loan_value: Decimal
    collateral_ratio: Decimal
    min_ratio_threshold: Decimal
    collateral_amounts: tuple[TokenAmount, ...] = ()
    loan_amounts: tuple[TokenAmount, ...] = ()
    interest_amounts: tuple[TokenAmount, ...] = ()
    block_height: int = 0
    stable_symbol: str = DEFAULT_STABLE_SYMBOL

    @staticmethod
    def is_vault_active(state: VaultState) -> bool:
        return state in _ACTIVE_LEDGER_STATES

    @property
    def is_active(self) -> bool:
        return self.is_vault_active(self.ledger_state)

    @property
    def state(self) -> VaultState:
        """Ledger state refined with EMPTY (no collateral) and READY (no loan)."""
        if (
            self.ledger_state is VaultState.ACTIVE
            and self.collateral_ratio == UNDEFINED_RATIO
        ):
            if floor_amount(self.collateral_value) == 0:
                return VaultState.EMPTY
            if floor_amount(self.loan_value) == 0:
                return VaultState.READY
        return self.ledger_state

    @property
    def current_ratio(self) -> Decimal:
        return self.collateral_ratio

    def _stable_collateral_price(self) -> Decimal:
        if self.block_height < STABLE_COLLATERAL_SWITCH_BLOCK:
            return STABLE_COLLATERAL_PRICE_BEFORE
        return STABLE_COLLATERAL_PRICE_AFTER

    @property
    def next_collateral_value(self) -> Decimal:
        total = Decimal(0)
        for collateral in self.collateral_amounts:
            price = collateral.next_price
            if price is None:
                price = (
                    self._stable_collateral_price()
                    if collateral.symbol == self.stable_symbol
                    else Decimal(0)
                )
            total += collateral.amount * price
        return total

    @property
    def next_loan_value(self) -> Decimal:
        total = Decimal(0)
        for loan in self.loan_amounts:
            price = loan.next_price
            if price is None:
                price = (
                    STABLE_LOAN_PRICE if loan.symbol == self.stable_symbol else Decimal(0)
                )
            total += loan.amount * price
        return total

    @property
    def next_ratio(self) -> Decimal:
        """Projected ratio one oracle interval ahead, ``-1`` without a loan.

        A loan that has no next-block price counts as unbounded, so the
        ratio is infinite. With no next price on either side the current
        ratio stands in; a NaN would make every rule comparison raise.
        """
        if floor_amount(self.loan_value) == 0:
            return UNDEFINED_RATIO
        next_loan = self.next_loan_value
        next_collateral = self.next_collateral_value
        if next_loan == 0:
            if next_collateral > 0:
                return Decimal("Infinity")
            return self.current_ratio
        return next_collateral / next_loan * 100

    @staticmethod
    def _find(amounts: tuple[TokenAmount, ...], symbol: str) -> TokenAmount | None:
        for amount in amounts:
            if amount.symbol == symbol:
                return amount
        return None

    def collateral_of(self, symbol: str) -> TokenAmount | None:
        return self._find(self.collateral_amounts, symbol)

    def loan_of(self, symbol: str) -> TokenAmount | None:
        return self._find(self.loan_amounts, symbol)

    def interest_of(self, symbol: str) -> TokenAmount | None:
        return self._find(self.interest_amounts, symbol)
