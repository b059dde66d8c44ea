"""Protocol constants shared by valuation, sizing and actions."""
from __future__ import annotations

from decimal import Decimal

# Fractional digits of every sizing output (always rounded down).
AMOUNT_DECIMALS = 6

# Ratio reported by the ledger while a vault has no loan or no collateral.
UNDEFINED_RATIO = Decimal(-1)

# Points added on top of the scheme's minimum ratio for the safety check.
SAFETY_RATIO_MARGIN = Decimal(100)

# Native coin kept outside the token account to pay transaction fees.
MINIMUM_UTXO_RESERVE = Decimal("0.1")

# Stable collateral is valued at a fixed price when the oracle has no
# next-block projection; the protocol raised that price at a known block.
STABLE_COLLATERAL_PRICE_BEFORE = Decimal("0.99")
STABLE_COLLATERAL_PRICE_AFTER = Decimal("1.2")
STABLE_COLLATERAL_SWITCH_BLOCK = 2257500

# Stable loans are always worth one dollar when no projection exists.
STABLE_LOAN_PRICE = Decimal(1)

DEFAULT_STABLE_SYMBOL = "DUSD"
DEFAULT_REWARD_SYMBOL = "DFI"

SUPPORTED_CONFIG_VERSIONS = ("1.0",)

# Finish message that suppresses the final notification of an action set.
SILENT_FINISH_MESSAGE = "n/a"

# Minimum distance kept between the configured min and max ratio.
MINIMUM_RATIO_SPREAD = Decimal(2)
