"""Ledger-side collaborator protocols: reads, submission and block clock."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from ..models import (
    BlockInfo,
    ContinuationToken,
    Operation,
    OraclePrice,
    PoolSnapshot,
    SubmittedTransaction,
)
from ..vault import VaultSnapshot


class VaultReader(Protocol):
    """Reads vaults. Raises VaultNotActiveError for unusable vaults."""

    async def get_vault(self, vault_id: str) -> VaultSnapshot: ...


class PoolReader(Protocol):
    """Reads liquidity pools by pair symbol (e.g. "TSLA-DUSD") or id."""

    async def get_pool(self, pair: str) -> PoolSnapshot | None: ...


class PriceReader(Protocol):
    """Reads the active oracle price feed of an asset in USD."""

    async def get_active_oracle(self, asset: str) -> OraclePrice: ...


class BalanceReader(Protocol):
    """Reads wallet balances."""

    async def get_balance(self, asset: str) -> Decimal: ...

    async def get_all_balances(self) -> dict[str, Decimal]: ...

    async def get_utxo_balance(self) -> Decimal: ...


class TransactionSubmitter(Protocol):
    """Signs and broadcasts ledger operations.

    ``continuation_token`` lets an operation spend the outputs of a
    previous, still unconfirmed, transaction.
    """

    async def submit(
        self, operation: Operation, continuation_token: ContinuationToken = None
    ) -> SubmittedTransaction: ...


class LedgerClock(Protocol):
    """Block height and time of the ledger tip."""

    async def get_current_block(self) -> BlockInfo: ...

    async def wait_for_next_block(self, height: int) -> BlockInfo: ...


@dataclass(frozen=True)
class Ledger:
    """Bundle of the ledger-side collaborators used by one vault."""

    vaults: VaultReader
    pools: PoolReader
    prices: PriceReader
    balances: BalanceReader
    submitter: TransactionSubmitter
    clock: LedgerClock
