"""Pure parsing functions for ledger API payloads. No I/O.

Ledger clients can use these to build the snapshots the engine consumes
from the JSON documents returned by an indexer API.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from .constants import DEFAULT_STABLE_SYMBOL, UNDEFINED_RATIO
from .errors import VaultNotActiveError
from .models import OraclePrice, PoolLeg, PoolSnapshot, TokenAmount, VaultState
from .vault import VaultSnapshot


def to_decimal(value: Any, default: Decimal | None = None) -> Decimal | None:
    """Convert a JSON number or numeric string to Decimal.

    Returns ``default`` for missing or non-numeric values.
    """
    if value is None or value == "":
        return default
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return default


def parse_vault_state(raw_state: str) -> VaultState:
    try:
        return VaultState(str(raw_state).upper())
    except ValueError:
        return VaultState.UNKNOWN


def _price_amount(active_price: dict[str, Any] | None, key: str) -> Decimal | None:
    if not active_price:
        return None
    return to_decimal((active_price.get(key) or {}).get("amount"))


def parse_token_amount(entry: dict[str, Any]) -> TokenAmount:
    """Parse a vault collateral/loan/interest entry.

    Example:
        {"symbol": "DFI", "amount": "10.5",
         "activePrice": {"active": {"amount": "1.2"}, "next": {"amount": "1.3"}}}
    """
    active_price = entry.get("activePrice")
    return TokenAmount(
        symbol=entry.get("symbol", ""),
        amount=to_decimal(entry.get("amount"), Decimal(0)),
        active_price=_price_amount(active_price, "active"),
        next_price=_price_amount(active_price, "next"),
    )


def parse_vault(
    raw: dict[str, Any],
    block_height: int = 0,
    stable_symbol: str = DEFAULT_STABLE_SYMBOL,
) -> VaultSnapshot:
    """Build a VaultSnapshot from a vault document.

    Raises:
        VaultNotActiveError: if the vault is liquidated or in liquidation.
    """
    vault_id = raw.get("vaultId", "")
    state = parse_vault_state(raw.get("state", ""))
    if not VaultSnapshot.is_vault_active(state):
        raise VaultNotActiveError(vault_id, state.value)

    ratio = to_decimal(raw.get("informativeRatio"))
    if ratio is None:
        ratio = to_decimal(raw.get("collateralRatio"), UNDEFINED_RATIO)

    scheme = raw.get("loanScheme", {})
    return VaultSnapshot(
        vault_id=vault_id,
        ledger_state=state,
        collateral_value=to_decimal(raw.get("collateralValue"), Decimal(0)),
        loan_value=to_decimal(raw.get("loanValue"), Decimal(0)),
        collateral_ratio=ratio,
        min_ratio_threshold=to_decimal(scheme.get("minColRatio"), Decimal(0)),
        collateral_amounts=tuple(
            parse_token_amount(e) for e in raw.get("collateralAmounts", [])
        ),
        loan_amounts=tuple(parse_token_amount(e) for e in raw.get("loanAmounts", [])),
        interest_amounts=tuple(
            parse_token_amount(e) for e in raw.get("interestAmounts", [])
        ),
        block_height=block_height,
        stable_symbol=stable_symbol,
    )


def _parse_leg(raw: dict[str, Any]) -> PoolLeg:
    return PoolLeg(
        id=str(raw.get("id", "")),
        symbol=raw.get("symbol", ""),
        reserve=to_decimal(raw.get("reserve"), Decimal(0)),
    )


def parse_pool(raw: dict[str, Any]) -> PoolSnapshot:
    """Build a PoolSnapshot from a pool pair document."""
    price_ratio = raw.get("priceRatio", {})
    return PoolSnapshot(
        id=str(raw.get("id", "")),
        symbol=raw.get("symbol", ""),
        token_a=_parse_leg(raw.get("tokenA", {})),
        token_b=_parse_leg(raw.get("tokenB", {})),
        price_ratio_ab=to_decimal(price_ratio.get("ab"), Decimal(0)),
        price_ratio_ba=to_decimal(price_ratio.get("ba"), Decimal(0)),
        total_liquidity=to_decimal(
            raw.get("totalLiquidity", {}).get("token"), Decimal(0)
        ),
    )


def parse_oracle(raw: dict[str, Any] | None) -> OraclePrice:
    """Build an OraclePrice from an active price feed entry."""
    if not raw:
        return OraclePrice()
    return OraclePrice(
        active=_price_amount(raw, "active"),
        next=_price_amount(raw, "next"),
    )
