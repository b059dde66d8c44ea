"""Data models. All frozen (immutable) except the scheduler state."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from .constants import AMOUNT_DECIMALS

if TYPE_CHECKING:
    from .config import BotConfiguration

# Opaque reference to the spendable output(s) of an unconfirmed transaction.
ContinuationToken = Any


def floor_amount(value: Decimal, places: int = AMOUNT_DECIMALS) -> Decimal:
    """Round toward negative infinity to ``places`` fractional digits."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_FLOOR)


class VaultState(str, Enum):
    """Vault states reported by the ledger plus the derived READY/EMPTY."""

    ACTIVE = "ACTIVE"
    MAY_LIQUIDATE = "MAY_LIQUIDATE"
    IN_LIQUIDATION = "IN_LIQUIDATION"
    LIQUIDATED = "LIQUIDATED"
    FROZEN = "FROZEN"
    UNKNOWN = "UNKNOWN"
    READY = "READY"
    EMPTY = "EMPTY"


@dataclass(frozen=True)
class TokenAmount:
    """Quantity of one asset, optionally with its oracle prices."""

    symbol: str
    amount: Decimal
    active_price: Decimal | None = None
    next_price: Decimal | None = None

    @property
    def usd_value(self) -> Decimal:
        if self.active_price is None:
            return Decimal(0)
        return self.amount * self.active_price


@dataclass(frozen=True)
class PoolLeg:
    id: str
    symbol: str
    reserve: Decimal


@dataclass(frozen=True)
class PoolSnapshot:
    """Two-asset liquidity pool as seen at one block."""

    id: str
    symbol: str
    token_a: PoolLeg
    token_b: PoolLeg
    price_ratio_ab: Decimal
    price_ratio_ba: Decimal
    total_liquidity: Decimal

    def leg(self, symbol: str) -> PoolLeg:
        if self.token_a.symbol == symbol:
            return self.token_a
        if self.token_b.symbol == symbol:
            return self.token_b
        raise KeyError(f"{symbol} is not part of pool {self.symbol}")

    def other_leg(self, symbol: str) -> PoolLeg:
        return self.token_b if self.leg(symbol) is self.token_a else self.token_a

    def asset_per_stable(self, stable_symbol: str) -> Decimal:
        """Units of the non-stable asset one stable unit buys."""
        if self.token_b.symbol == stable_symbol:
            return self.price_ratio_ab
        return self.price_ratio_ba


@dataclass(frozen=True)
class OraclePrice:
    """Active and next-block oracle price of an asset in USD."""

    active: Decimal | None = None
    next: Decimal | None = None


@dataclass(frozen=True)
class BorrowAmount:
    """Loan to take for one asset, split into its pool legs."""

    asset: str
    share: Decimal
    stable_amount: Decimal
    asset_amount: Decimal


@dataclass(frozen=True)
class PoolShareAmount:
    """Pool-share tokens to withdraw from one pair."""

    pair: str
    asset: str
    amount: Decimal


@dataclass(frozen=True)
class ExpectedWithdrawal:
    """Tokens expected back from removing liquidity, ready for payback."""

    assets: tuple[TokenAmount, ...]
    stable: TokenAmount

    def payback_amounts(self) -> tuple[TokenAmount, ...]:
        return (*self.assets, self.stable)


@dataclass(frozen=True)
class BlockInfo:
    height: int
    time: int


# ---------------------------------------------------------------------------
# Ledger operations handed to the TransactionSubmitter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TakeLoan:
    vault_id: str
    amounts: tuple[TokenAmount, ...]


@dataclass(frozen=True)
class PaybackLoan:
    vault_id: str
    amounts: tuple[TokenAmount, ...]


@dataclass(frozen=True)
class AddLiquidity:
    pair: str
    asset_amount: TokenAmount
    stable_amount: TokenAmount


@dataclass(frozen=True)
class RemoveLiquidity:
    pair: str
    amount: Decimal


@dataclass(frozen=True)
class DepositCollateral:
    vault_id: str
    amount: TokenAmount


@dataclass(frozen=True)
class Swap:
    from_symbol: str
    to_symbol: str
    amount: Decimal


@dataclass(frozen=True)
class ConvertUtxoToAccount:
    amount: Decimal


Operation = Union[
    TakeLoan,
    PaybackLoan,
    AddLiquidity,
    RemoveLiquidity,
    DepositCollateral,
    Swap,
    ConvertUtxoToAccount,
]


@dataclass(frozen=True)
class SubmittedTransaction:
    id: str
    continuation_token: ContinuationToken = None


# ---------------------------------------------------------------------------
# Execution results and scheduler state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActionReturn:
    """Outcome of an action, action set or rule."""

    is_success: bool
    has_tx_sent: bool
    continuation_token: ContinuationToken = None
    status_message: str | None = None
    error: str | None = None


@dataclass
class SchedulerState:
    """State carried between ticks; owned by the polling loop."""

    last_block_height: int = 0
    last_observed_configuration: BotConfiguration | None = None
    configuration: BotConfiguration | None = None
    configuration_block_time: int = 0
    pause_elapsed_notified: bool = False
    missing_configuration_reported: bool = False
