"""Vault rebalancer: keeps a collateral vault between a min and a max ratio."""

__version__ = "1.2.0"
