"""Shared test fixtures, fake collaborators and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from helpers import (
    FakeBalanceReader,
    FakeClock,
    FakePoolReader,
    FakePriceReader,
    FakeSubmitter,
    FakeVaultReader,
    RecordingNotifier,
    make_configuration,
    make_pool,
    make_vault,
)
from vault_rebalancer.config import (
    AppConfig,
    BotConfig,
    BotConfiguration,
    EngineConfig,
    NotificationsConfig,
    TelegramConfig,
    VersionCheckConfig,
)
from vault_rebalancer.interfaces import Ledger
from vault_rebalancer.models import OraclePrice, PoolSnapshot
from vault_rebalancer.vault import VaultSnapshot

D = Decimal


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_vault() -> VaultSnapshot:
    return make_vault()


@pytest.fixture()
def tsla_pool() -> PoolSnapshot:
    # 1 DUSD buys 0.005 TSLA; one share token is worth 40 USD at an oracle of 200
    return make_pool("TSLA", D(1000), D(200000), D(10000))


@pytest.fixture()
def qqq_pool() -> PoolSnapshot:
    return make_pool("QQQ", D(500), D(200000), D(5000))


@pytest.fixture()
def sample_prices() -> dict[str, OraclePrice]:
    return {
        "TSLA": OraclePrice(active=D(200), next=D(200)),
        "QQQ": OraclePrice(active=D(400), next=D(400)),
        "DFI": OraclePrice(active=D(2), next=D(2)),
    }


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def submitter() -> FakeSubmitter:
    return FakeSubmitter()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def balances() -> FakeBalanceReader:
    return FakeBalanceReader({"TSLA-DUSD": D(5), "DFI": D(0)}, utxo=D("0.05"))


@pytest.fixture()
def ledger(
    sample_vault: VaultSnapshot,
    tsla_pool: PoolSnapshot,
    qqq_pool: PoolSnapshot,
    sample_prices: dict[str, OraclePrice],
    balances: FakeBalanceReader,
    submitter: FakeSubmitter,
    clock: FakeClock,
) -> Ledger:
    return Ledger(
        vaults=FakeVaultReader(sample_vault),
        pools=FakePoolReader({"TSLA-DUSD": tsla_pool, "QQQ-DUSD": qqq_pool}),
        prices=FakePriceReader(sample_prices),
        balances=balances,
        submitter=submitter,
        clock=clock,
    )


@pytest.fixture()
def engine_settings() -> EngineConfig:
    return EngineConfig()


@pytest.fixture()
def sample_configuration() -> BotConfiguration:
    return make_configuration()


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        bot=BotConfig(name="Test Rebalancer", address="df1qtest"),
        engine=EngineConfig(),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
        version_check=VersionCheckConfig(enabled=False),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    bot:
      name: Test Rebalancer
      address: "df1qtest"
    engine:
      tick_interval_seconds: 15
      safety_margin: 50
      stable_symbol: DUSD
      reward_symbol: DFI
      utxo_reserve: 0.2
      failure_policy: abort
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
    version_check:
      enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample ledger documents
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_vault_document() -> dict:
    return {
        "vaultId": "vault-1",
        "state": "ACTIVE",
        "loanScheme": {"id": "MIN150", "minColRatio": "150", "interestRate": "0.5"},
        "collateralValue": "1000",
        "loanValue": "400",
        "interestValue": "0.1",
        "collateralRatio": "250",
        "informativeRatio": "249.87",
        "collateralAmounts": [
            {
                "symbol": "DFI",
                "amount": "500",
                "activePrice": {"active": {"amount": "2"}, "next": {"amount": "2.1"}},
            }
        ],
        "loanAmounts": [
            {
                "symbol": "TSLA",
                "amount": "1",
                "activePrice": {"active": {"amount": "200"}, "next": {"amount": "210"}},
            },
            {"symbol": "DUSD", "amount": "200"},
        ],
        "interestAmounts": [{"symbol": "DUSD", "amount": "-0.5"}],
    }


@pytest.fixture()
def sample_pool_document() -> dict:
    return {
        "id": "17",
        "symbol": "TSLA-DUSD",
        "tokenA": {"id": "2", "symbol": "TSLA", "reserve": "1000"},
        "tokenB": {"id": "15", "symbol": "DUSD", "reserve": "200000"},
        "priceRatio": {"ab": "0.005", "ba": "200"},
        "totalLiquidity": {"token": "10000", "usd": "400000"},
    }
