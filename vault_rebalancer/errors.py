"""Error taxonomy of the rebalancer."""
from __future__ import annotations


class RebalancerError(Exception):
    """Base class for all errors raised by the rebalancer."""


class ConfigurationError(RebalancerError, ValueError):
    """Malformed or unsupported configuration; aborts the current cycle."""


class ConditionTypeError(RebalancerError, TypeError):
    """A categorical value was compared with an ordering operator."""


class SizingError(RebalancerError):
    """Pool, oracle or balance data needed for sizing is missing."""


class InconsistentWalletError(SizingError):
    """The wallet holds an asset that is not backing any loan."""


class SafetyCheckError(RebalancerError):
    """The vault could not be brought back to the safety ratio."""


class VaultNotActiveError(RebalancerError):
    """The vault is liquidated or otherwise not usable."""

    def __init__(self, vault_id: str, state: str) -> None:
        super().__init__(f"Vault {vault_id} is not active (state: {state})")
        self.vault_id = vault_id
        self.state = state
