"""Integration tests for one rebalancing cycle with fake ledger I/O."""
from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from helpers import FakeVaultReader, RecordingNotifier, make_configuration
from vault_rebalancer.config import CompoundingSettings, EngineConfig
from vault_rebalancer.engine import RebalanceEngine
from vault_rebalancer.errors import VaultNotActiveError
from vault_rebalancer.models import (
    AddLiquidity,
    DepositCollateral,
    PaybackLoan,
    RemoveLiquidity,
    TakeLoan,
    TokenAmount,
)
from vault_rebalancer.notifications import messages

D = Decimal


@pytest.fixture()
def engine(ledger, notifier: RecordingNotifier) -> RebalanceEngine:
    # scheme minimum 150 + 50 keeps the sample vault (250%) clear of the safety check
    return RebalanceEngine(ledger, notifier, EngineConfig(safety_margin=D(50)))


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_ratio_above_max_borrows_and_adds_liquidity(
        self, engine: RebalanceEngine, notifier: RecordingNotifier, submitter
    ) -> None:
        result = await engine.run_cycle(make_configuration())

        assert result.rule == "KeepMaxRatio"
        assert result.has_tx_sent is True
        # 1000 / 2.1 - 400 split into 38.095238 DUSD and 0.190476 TSLA
        assert submitter.operations == [
            TakeLoan(
                "vault-1",
                (TokenAmount("TSLA", D("0.190476")), TokenAmount("DUSD", D("38.095238"))),
            ),
            AddLiquidity(
                "TSLA-DUSD",
                TokenAmount("TSLA", D("0.190476")),
                TokenAmount("DUSD", D("38.095238")),
            ),
        ]
        assert notifier.sent[-1] == messages.BORROW_FINISHED
        assert notifier.errors == []

    @pytest.mark.asyncio
    async def test_ratio_below_min_pays_back(
        self, engine: RebalanceEngine, notifier: RecordingNotifier, submitter
    ) -> None:
        cfg = make_configuration(keep_min_ratio=D(260), keep_max_ratio=D(280))
        result = await engine.run_cycle(cfg)

        assert result.rule == "KeepMinRatio"
        assert [type(op) for op in submitter.operations] == [RemoveLiquidity, PaybackLoan]
        # (400 - 1000 / 2.7) / 40 per share
        assert submitter.operations[0] == RemoveLiquidity("TSLA-DUSD", D("0.740740"))
        assert notifier.sent[-1] == messages.REPAY_FINISHED

    @pytest.mark.asyncio
    async def test_ratio_in_range_sends_nothing(
        self, engine: RebalanceEngine, notifier: RecordingNotifier, submitter
    ) -> None:
        cfg = make_configuration(keep_min_ratio=D(240), keep_max_ratio=D(260))
        result = await engine.run_cycle(cfg)

        assert result.rule is None
        assert result.result.is_success is True
        assert result.has_tx_sent is False
        assert submitter.submitted == []
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_compounding_ends_the_cycle(
        self, engine: RebalanceEngine, notifier: RecordingNotifier, submitter, balances
    ) -> None:
        balances.balances["DFI"] = D(1)
        cfg = make_configuration(compounding=CompoundingSettings(mode=1, threshold=D("0.5")))
        result = await engine.run_cycle(cfg)

        assert result.rule == "Compounding"
        # KeepMaxRatio would borrow but has to wait for the next block
        assert submitter.operations == [
            DepositCollateral("vault-1", TokenAmount("DFI", D(1)))
        ]
        assert notifier.sent == ["Increased DFI collateral"]

    @pytest.mark.asyncio
    async def test_compounding_below_threshold_falls_through(
        self, engine: RebalanceEngine, submitter, balances
    ) -> None:
        balances.balances["DFI"] = D("0.3")
        cfg = make_configuration(compounding=CompoundingSettings(mode=1, threshold=D(1)))
        result = await engine.run_cycle(cfg)

        assert result.rule == "KeepMaxRatio"
        assert not any(isinstance(op, DepositCollateral) for op in submitter.operations)

    @pytest.mark.asyncio
    async def test_inactive_vault_skips_cycle(self, ledger, notifier, submitter) -> None:
        ledger = replace(ledger, vaults=FakeVaultReader(VaultNotActiveError("vault-1", "FROZEN")))
        result = await RebalanceEngine(ledger, notifier).run_cycle(make_configuration())

        assert result.rule is None
        assert result.result.is_success is False
        assert "FROZEN" in result.result.error
        assert submitter.submitted == []
        assert notifier.errors == []

    @pytest.mark.asyncio
    async def test_configuration_error_is_reported(
        self, engine: RebalanceEngine, notifier: RecordingNotifier, submitter
    ) -> None:
        cfg = make_configuration(compounding=CompoundingSettings(mode=2))
        result = await engine.run_cycle(cfg)

        assert result.result.is_success is False
        assert notifier.errors == ["Compounding mode 2 needs a target token"]
        assert submitter.submitted == []


class TestSafetyCheck:
    @pytest.mark.asyncio
    async def test_failed_check_is_reported_and_rules_still_run(
        self, ledger, notifier: RecordingNotifier, submitter
    ) -> None:
        # default margin puts the safety ratio at 250, exactly the vault ratio,
        # so no positive payback can be sized
        engine = RebalanceEngine(ledger, notifier, EngineConfig())
        result = await engine.run_cycle(make_configuration())

        assert len(notifier.errors) == 1
        assert notifier.errors[0].startswith("SAFETY CHECK FAILED: ")
        assert result.rule == "KeepMaxRatio"
        assert submitter.operations

    @pytest.mark.asyncio
    async def test_check_safety_result(self, engine: RebalanceEngine, notifier) -> None:
        assert await engine.check_safety(make_configuration()) is True
        assert notifier.errors == []

    @pytest.mark.asyncio
    async def test_reader_error_in_check_does_not_block_rules(
        self, ledger, notifier: RecordingNotifier, submitter, balances
    ) -> None:
        class UnreachablePriceReader:
            async def get_active_oracle(self, asset: str):
                raise ConnectionError("price feed unreachable")

        balances.balances["DFI"] = D(10)
        ledger = replace(ledger, prices=UnreachablePriceReader())
        engine = RebalanceEngine(ledger, notifier, EngineConfig())
        cfg = make_configuration(compounding=CompoundingSettings(mode=1, threshold=D(1)))

        result = await engine.run_cycle(cfg)

        assert notifier.errors == ["SAFETY CHECK FAILED: price feed unreachable"]
        assert result.rule == "Compounding"
        assert submitter.operations == [
            DepositCollateral("vault-1", TokenAmount("DFI", D(10)))
        ]
