"""Fake ledger collaborators and model builders shared by the tests."""
from __future__ import annotations

from decimal import Decimal

from vault_rebalancer.config import BotConfiguration, CompoundingSettings
from vault_rebalancer.models import (
    BlockInfo,
    OraclePrice,
    PoolLeg,
    PoolSnapshot,
    SubmittedTransaction,
    TokenAmount,
    VaultState,
)
from vault_rebalancer.vault import VaultSnapshot

D = Decimal

# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeVaultReader:
    def __init__(self, vault: VaultSnapshot | Exception) -> None:
        self.vault = vault
        self.calls = 0

    async def get_vault(self, vault_id: str) -> VaultSnapshot:
        self.calls += 1
        if isinstance(self.vault, Exception):
            raise self.vault
        return self.vault


class FakePoolReader:
    def __init__(self, pools: dict[str, PoolSnapshot]) -> None:
        self.pools = pools

    async def get_pool(self, pair: str) -> PoolSnapshot | None:
        return self.pools.get(pair)


class FakePriceReader:
    def __init__(self, prices: dict[str, OraclePrice]) -> None:
        self.prices = prices

    async def get_active_oracle(self, asset: str) -> OraclePrice:
        return self.prices.get(asset, OraclePrice())


class FakeBalanceReader:
    def __init__(self, balances: dict[str, Decimal] | None = None, utxo: Decimal = D(0)) -> None:
        self.balances = dict(balances or {})
        self.utxo = utxo

    async def get_balance(self, asset: str) -> Decimal:
        return self.balances.get(asset, D(0))

    async def get_all_balances(self) -> dict[str, Decimal]:
        return dict(self.balances)

    async def get_utxo_balance(self) -> Decimal:
        return self.utxo


class FakeSubmitter:
    """Records operations; each transaction's continuation token is ``out<n>``."""

    def __init__(self, fail_on: tuple[type, ...] = ()) -> None:
        self.submitted: list[tuple[object, object]] = []
        self.fail_on = fail_on

    @property
    def operations(self) -> list[object]:
        return [op for op, _ in self.submitted]

    async def submit(self, operation, continuation_token=None) -> SubmittedTransaction:
        if isinstance(operation, self.fail_on):
            raise RuntimeError(f"{type(operation).__name__} rejected")
        self.submitted.append((operation, continuation_token))
        n = len(self.submitted)
        return SubmittedTransaction(id=f"tx{n}", continuation_token=f"out{n}")


class FakeClock:
    def __init__(self, height: int = 100, time: int = 1_000_000) -> None:
        self.height = height
        self.time = time
        self.waited: list[int] = []

    async def get_current_block(self) -> BlockInfo:
        return BlockInfo(self.height, self.time)

    async def wait_for_next_block(self, height: int) -> BlockInfo:
        self.waited.append(height)
        self.height = height + 1
        self.time += 30
        return BlockInfo(self.height, self.time)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[str] = []
        self.errors: list[str] = []

    async def send(self, message: str) -> bool:
        self.sent.append(message)
        return True

    async def report_error(self, message: str) -> bool:
        self.errors.append(message)
        return True


class StaticConfigurationSource:
    def __init__(self, configuration: BotConfiguration | None) -> None:
        self.configuration = configuration

    async def current(self) -> BotConfiguration | None:
        return self.configuration


# ---------------------------------------------------------------------------
# Model builders
# ---------------------------------------------------------------------------


def make_vault(
    collateral_value: Decimal = D(1000),
    loan_value: Decimal = D(400),
    ratio: Decimal = D(250),
    state: VaultState = VaultState.ACTIVE,
    min_ratio: Decimal = D(150),
    collateral_amounts: tuple[TokenAmount, ...] | None = None,
    loan_amounts: tuple[TokenAmount, ...] | None = None,
    interest_amounts: tuple[TokenAmount, ...] = (),
    block_height: int = 2_300_000,
) -> VaultSnapshot:
    """Defaults: 500 DFI @ 2 against 1 TSLA @ 200 + 200 DUSD; next == current."""
    if collateral_amounts is None:
        collateral_amounts = (TokenAmount("DFI", D(500), D(2), D(2)),)
    if loan_amounts is None:
        loan_amounts = (
            TokenAmount("TSLA", D(1), D(200), D(200)),
            TokenAmount("DUSD", D(200)),
        )
    return VaultSnapshot(
        vault_id="vault-1",
        ledger_state=state,
        collateral_value=collateral_value,
        loan_value=loan_value,
        collateral_ratio=ratio,
        min_ratio_threshold=min_ratio,
        collateral_amounts=collateral_amounts,
        loan_amounts=loan_amounts,
        interest_amounts=interest_amounts,
        block_height=block_height,
    )


def make_pool(asset: str, asset_reserve: Decimal, stable_reserve: Decimal,
              total_liquidity: Decimal, stable: str = "DUSD") -> PoolSnapshot:
    return PoolSnapshot(
        id=f"{asset}-id",
        symbol=f"{asset}-{stable}",
        token_a=PoolLeg(id="1", symbol=asset, reserve=asset_reserve),
        token_b=PoolLeg(id="15", symbol=stable, reserve=stable_reserve),
        price_ratio_ab=asset_reserve / stable_reserve,
        price_ratio_ba=stable_reserve / asset_reserve,
        total_liquidity=total_liquidity,
    )


def make_configuration(**overrides) -> BotConfiguration:
    values = dict(
        version="1.0",
        vault_id="vault-1",
        keep_min_ratio=D(200),
        keep_max_ratio=D(220),
        weights={"TSLA": D(1)},
        compounding=CompoundingSettings(),
        pause=0,
    )
    values.update(overrides)
    return BotConfiguration(**values)

