"""Fan-out over several notification channels."""
from __future__ import annotations

import logging
from typing import Iterable

from ..interfaces.notifier import Notifier

logger = logging.getLogger(__name__)


class NotifierGroup:
    """Delivers every message to all channels.

    A failing channel is logged and never stops delivery to the others.
    """

    def __init__(self, notifiers: Iterable[Notifier]) -> None:
        self._notifiers = list(notifiers)

    async def send(self, message: str) -> bool:
        delivered = False
        for notifier in self._notifiers:
            try:
                delivered = await notifier.send(message) or delivered
            except Exception as e:
                logger.error("Notifier send failed: %s", e)
        return delivered

    async def report_error(self, message: str) -> bool:
        delivered = False
        for notifier in self._notifiers:
            try:
                delivered = await notifier.report_error(message) or delivered
            except Exception as e:
                logger.error("Notifier report_error failed: %s", e)
        return delivered
