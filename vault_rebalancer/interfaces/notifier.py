"""Notifier protocol: user-facing notification channel."""
from typing import Protocol


class Notifier(Protocol):
    """Abstract interface for sending notifications."""

    async def send(self, message: str) -> bool: ...

    async def report_error(self, message: str) -> bool: ...
