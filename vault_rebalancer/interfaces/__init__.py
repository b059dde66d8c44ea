"""Protocol interfaces for the external collaborators."""
from .configuration import ConfigurationSource
from .ledger import (
    BalanceReader,
    Ledger,
    LedgerClock,
    PoolReader,
    PriceReader,
    TransactionSubmitter,
    VaultReader,
)
from .notifier import Notifier

__all__ = [
    "BalanceReader",
    "ConfigurationSource",
    "Ledger",
    "LedgerClock",
    "Notifier",
    "PoolReader",
    "PriceReader",
    "TransactionSubmitter",
    "VaultReader",
]
