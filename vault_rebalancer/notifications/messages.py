"""User-facing message builders."""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from ..vault import VaultSnapshot

PAUSE_OVER = "✅ My break is over! Now I'll take care of your vault again. 👍"

PAUSE_INDEFINITE = (
    "🚨 You have put me to sleep. I'll not take any actions until you wake me "
    "up again."
)

NOT_ENOUGH_LIQUIDITY = (
    "There is currently not enough liquidity available to reach your vault "
    "ratio setting. Please check your account manually."
)

BORROW_FINISHED = (
    "Wow! More liquidity was added. You will earn more rewards once the "
    "transaction went through!"
)

REPAY_FINISHED = (
    "☝️ Some loans were paid back to keep your minimum and maximum ratio. "
    "Your vault is safe!"
)


def _fmt(value: Decimal) -> str:
    return f"{value:.2f}"


def pause_started(minutes: int) -> str:
    return (
        f"⏸ Ok, time to rest for me. I'll stop guarding your vault for the "
        f"next {minutes} minutes."
    )


def vault_ratio(vault: VaultSnapshot, target_ratio: Decimal) -> str:
    """Current/next ratio report sent before a rebalancing transaction."""
    current = vault.current_ratio
    if current <= 0:
        return (
            "There is no vault ratio yet. That means that you don't have a "
            "loan yet."
        )
    return (
        "Your current vault ratio has changed:\n"
        "\n"
        f"Current: {_fmt(current)}%\n"
        f"Next: {_fmt(vault.next_ratio)}%\n"
        "\n"
        f"Your target ratio should be: {_fmt(target_ratio)}%."
    )


def ratio_range(keep_min_ratio: Decimal, keep_max_ratio: Decimal) -> str:
    return (
        f"I'm going to use *{keep_min_ratio}%* as minimum and "
        f"*{keep_max_ratio}%* as maximum ratio.\n"
        "\n"
        "I'll make sure to keep your vault ratio in this range."
    )


def pool_pairs(assets: Iterable[str], stable_symbol: str) -> str:
    pairs = "\n".join(f"{asset}-{stable_symbol}" for asset in assets)
    return f"*Here are your configured pool pairs*:\n\n{pairs}"


def new_version(version: str) -> str:
    return (
        f"⚙️ I've found a new backend version *{version}*\n"
        "\n"
        "☝️ Please update your current backend installation."
    )
