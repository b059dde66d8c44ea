"""Sizing engine: borrow, repay and expected-withdrawal amounts.

The module-level functions are pure: they take snapshots and return
amounts. :class:`SizingEngine` fetches the snapshots through the ledger
readers and calls them.

Arithmetic runs with 40 significant digits. Every public output is rounded
toward negative infinity to 6 fractional digits, and only at the end of
a computation, so sizing never overshoots a balance because of rounding.
"""
from __future__ import annotations

import asyncio
import logging
from decimal import Context, Decimal, localcontext
from typing import Iterable, Mapping

from .constants import DEFAULT_STABLE_SYMBOL
from .errors import InconsistentWalletError, SizingError
from .interfaces.ledger import BalanceReader, PoolReader, PriceReader
from .models import (
    BorrowAmount,
    ExpectedWithdrawal,
    OraclePrice,
    PoolShareAmount,
    PoolSnapshot,
    TokenAmount,
    floor_amount,
)
from .vault import VaultSnapshot

logger = logging.getLogger(__name__)

SIZING_CONTEXT = Context(prec=40)

Pools = Mapping[str, "PoolSnapshot | None"]
OraclePrices = Mapping[str, "OraclePrice | None"]


def pair_symbol(asset: str, stable_symbol: str = DEFAULT_STABLE_SYMBOL) -> str:
    """Symbol of the pool pairing ``asset`` with the stable asset."""
    return f"{asset}-{stable_symbol}"


def _validated_weights(
    weights: Mapping[str, Decimal],
) -> tuple[list[tuple[str, Decimal]], Decimal]:
    """Weights as decimals together with their sum."""
    total = sum((Decimal(w) for w in weights.values()), Decimal(0))
    if total <= 0:
        raise SizingError("Allocation weights must add up to more than zero")
    for asset, weight in weights.items():
        if Decimal(weight) < 0:
            raise SizingError(f"Negative allocation weight for {asset}: {weight}")
    return [(asset, Decimal(weight)) for asset, weight in weights.items()], total


def _pool_for(pools: Pools, asset: str, stable_symbol: str) -> PoolSnapshot:
    pool = pools.get(asset)
    if pool is None:
        raise SizingError(
            f"There was an error getting the pool data for {pair_symbol(asset, stable_symbol)}"
        )
    return pool


def _active_price(oracle_prices: OraclePrices, asset: str) -> Decimal:
    oracle = oracle_prices.get(asset)
    if oracle is None or oracle.active is None:
        raise SizingError(f"There was an error getting the oracle price for {asset}")
    return oracle.active


def total_borrowable(vault: VaultSnapshot, target_ratio: Decimal) -> Decimal:
    """Loan value that brings the vault down to ``target_ratio``.

    The smaller of the current and the next-block figure, so a borrow that
    is fine now does not breach the ratio one oracle interval later.
    """
    with localcontext(SIZING_CONTEXT):
        divider = Decimal(target_ratio) / 100
        current = vault.collateral_value / divider - vault.loan_value
        upcoming = vault.next_collateral_value / divider - vault.next_loan_value
        logger.debug("Borrowable now: %s, next block: %s", current, upcoming)
        return floor_amount(min(current, upcoming))


def total_required_payback(vault: VaultSnapshot, target_ratio: Decimal) -> Decimal:
    """Loan value to pay back to bring the vault up to ``target_ratio``."""
    with localcontext(SIZING_CONTEXT):
        divider = Decimal(target_ratio) / 100
        current = vault.loan_value - vault.collateral_value / divider
        upcoming = vault.next_loan_value - vault.next_collateral_value / divider
        logger.debug("Payback now: %s, next block: %s", current, upcoming)
        return floor_amount(max(current, upcoming))


def calc_borrow_amounts(
    vault: VaultSnapshot,
    weights: Mapping[str, Decimal],
    target_ratio: Decimal,
    pools: Pools,
    oracle_prices: OraclePrices,
    stable_symbol: str = DEFAULT_STABLE_SYMBOL,
) -> list[BorrowAmount]:
    """Split the borrowable value into stable and asset legs per pool.

    ``pools`` and ``oracle_prices`` are keyed by asset symbol. For a pool
    where one stable unit buys ``p`` asset units and an asset whose oracle
    price is ``o``, a share ``s`` splits into ``s / (p*o + 1)`` stable and
    ``p`` times that in the asset, which is what adding liquidity needs.

    Raises:
        SizingError: when a pool or an active oracle price is missing for
            any weighted asset. No partial result is returned.
    """
    total = total_borrowable(vault, target_ratio)
    logger.debug("Total loans to take: %s %s", total, stable_symbol)

    amounts: list[BorrowAmount] = []
    with localcontext(SIZING_CONTEXT):
        asset_weights, total_weight = _validated_weights(weights)
        for asset, weight in asset_weights:
            pool = _pool_for(pools, asset, stable_symbol)
            oracle = _active_price(oracle_prices, asset)
            price_ratio = pool.asset_per_stable(stable_symbol)
            share = total * weight / total_weight
            stable_leg = share / (price_ratio * oracle + 1)
            asset_leg = price_ratio * stable_leg
            amounts.append(
                BorrowAmount(
                    asset=asset,
                    share=floor_amount(share),
                    stable_amount=floor_amount(stable_leg),
                    asset_amount=floor_amount(asset_leg),
                )
            )
    return amounts


def calc_repay_amounts(
    vault: VaultSnapshot,
    weights: Mapping[str, Decimal],
    target_ratio: Decimal,
    pools: Pools,
    oracle_prices: OraclePrices,
    share_balances: Mapping[str, Decimal],
    stable_symbol: str = DEFAULT_STABLE_SYMBOL,
    cap_to_balance: bool = True,
) -> list[PoolShareAmount]:
    """Pool-share tokens to remove so the freed tokens repay enough loan.

    ``share_balances`` is keyed by pair symbol. With ``cap_to_balance`` the
    result never exceeds the wallet's share balance of a pair.

    Raises:
        SizingError: missing pool, oracle price or empty pool.
        InconsistentWalletError: the vault has a loan but the payback
            apportioned to an asset is not positive.
    """
    total = total_required_payback(vault, target_ratio)
    logger.debug("Total required payback: %s %s", total, stable_symbol)
    has_loan = vault.loan_value != 0

    amounts: list[PoolShareAmount] = []
    with localcontext(SIZING_CONTEXT):
        asset_weights, total_weight = _validated_weights(weights)
        for asset, weight in asset_weights:
            pool = _pool_for(pools, asset, stable_symbol)
            required = total * weight / total_weight

            if not has_loan:
                logger.debug("No loan exists, nothing to pay back for %s", asset)
                amounts.append(PoolShareAmount(pool.symbol, asset, Decimal(0)))
                continue
            if required <= 0 and weight > 0:
                raise InconsistentWalletError(
                    f"Required payback for {asset} is not positive ({required}). "
                    f"Loan: {vault.loan_value} / {vault.next_loan_value}"
                )

            oracle = _active_price(oracle_prices, asset)
            if pool.total_liquidity <= 0:
                raise SizingError(f"Pool {pool.symbol} has no liquidity")

            pool_value = (
                oracle * pool.other_leg(stable_symbol).reserve
                + pool.leg(stable_symbol).reserve
            )
            price_per_share = pool_value / pool.total_liquidity
            tokens = required / price_per_share if required > 0 else Decimal(0)
            logger.debug(
                "%s: pool value %s, price per share %s, required shares %s",
                pool.symbol, pool_value, price_per_share, tokens,
            )

            if cap_to_balance:
                available = Decimal(share_balances.get(pool.symbol, 0))
                if available < tokens:
                    tokens = available
            amounts.append(PoolShareAmount(pool.symbol, asset, floor_amount(tokens)))
    return amounts


def calc_expected_withdrawal(
    share_amounts: Iterable[PoolShareAmount],
    pools: Pools,
    vault: VaultSnapshot,
    stable_symbol: str = DEFAULT_STABLE_SYMBOL,
) -> ExpectedWithdrawal:
    """Tokens expected back from removing ``share_amounts``.

    Stable tokens from all pools are summed into one repayment. A negative
    interest on the stable loan lowers what can be repaid: the repayment is
    capped at ``principal + interest`` when it would overpay, otherwise the
    interest is added to it.
    """
    stable_loan = vault.loan_of(stable_symbol)
    stable_interest = vault.interest_of(stable_symbol)
    principal = stable_loan.amount if stable_loan else Decimal(0)
    interest = stable_interest.amount if stable_interest else Decimal(0)

    assets: list[TokenAmount] = []
    with localcontext(SIZING_CONTEXT):
        stable_total = Decimal(0)
        for share in share_amounts:
            pool = _pool_for(pools, share.asset, stable_symbol)
            if pool.total_liquidity <= 0:
                raise SizingError(f"Pool {pool.symbol} has no liquidity")
            pool_share = share.amount / pool.total_liquidity
            asset_leg = pool.other_leg(stable_symbol)
            assets.append(
                TokenAmount(asset_leg.symbol, floor_amount(pool_share * asset_leg.reserve))
            )
            stable_total += pool_share * pool.leg(stable_symbol).reserve

        expected = floor_amount(stable_total)
        logger.debug("Expected %s payback: %s", stable_symbol, expected)

        if interest < 0:
            cap = principal + interest
            if expected > cap:
                logger.debug("Limiting %s payback to %s (negative interest)", stable_symbol, cap)
                expected = cap
            else:
                expected = expected + interest
            expected = floor_amount(max(expected, Decimal(0)))

    return ExpectedWithdrawal(
        assets=tuple(assets), stable=TokenAmount(stable_symbol, expected)
    )


class SizingEngine:
    """Fetches pools, oracle prices and balances, then sizes."""

    def __init__(
        self,
        pools: PoolReader,
        prices: PriceReader,
        balances: BalanceReader,
        stable_symbol: str = DEFAULT_STABLE_SYMBOL,
    ) -> None:
        self._pools = pools
        self._prices = prices
        self._balances = balances
        self.stable_symbol = stable_symbol

    async def fetch_pools(self, assets: Iterable[str]) -> dict[str, PoolSnapshot | None]:
        assets = list(assets)
        snapshots = await asyncio.gather(
            *(self._pools.get_pool(pair_symbol(a, self.stable_symbol)) for a in assets)
        )
        return dict(zip(assets, snapshots))

    async def fetch_prices(self, assets: Iterable[str]) -> dict[str, OraclePrice]:
        assets = list(assets)
        prices = await asyncio.gather(
            *(self._prices.get_active_oracle(a) for a in assets)
        )
        return dict(zip(assets, prices))

    async def borrow_amounts(
        self, vault: VaultSnapshot, weights: Mapping[str, Decimal], target_ratio: Decimal
    ) -> list[BorrowAmount]:
        pools, prices = await asyncio.gather(
            self.fetch_pools(weights), self.fetch_prices(weights)
        )
        return calc_borrow_amounts(
            vault, weights, target_ratio, pools, prices, self.stable_symbol
        )

    async def repay_amounts(
        self,
        vault: VaultSnapshot,
        weights: Mapping[str, Decimal],
        target_ratio: Decimal,
        cap_to_balance: bool = True,
    ) -> list[PoolShareAmount]:
        pools, prices, balances = await asyncio.gather(
            self.fetch_pools(weights),
            self.fetch_prices(weights),
            self._balances.get_all_balances(),
        )
        return calc_repay_amounts(
            vault,
            weights,
            target_ratio,
            pools,
            prices,
            balances,
            self.stable_symbol,
            cap_to_balance=cap_to_balance,
        )

    async def expected_withdrawal(
        self, share_amounts: Iterable[PoolShareAmount], vault: VaultSnapshot
    ) -> ExpectedWithdrawal:
        share_amounts = list(share_amounts)
        pools = await self.fetch_pools(s.asset for s in share_amounts)
        return calc_expected_withdrawal(share_amounts, pools, vault, self.stable_symbol)
