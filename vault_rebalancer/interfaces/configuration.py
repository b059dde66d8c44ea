"""Configuration source protocol: the latest bot configuration observed."""
from typing import Protocol

from ..config import BotConfiguration


class ConfigurationSource(Protocol):
    """Returns the most recent bot configuration, or None if none exists yet."""

    async def current(self) -> BotConfiguration | None: ...
