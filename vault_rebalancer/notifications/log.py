"""Notifier that only writes to the process log."""
import logging

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Used when no messaging channel is configured."""

    async def send(self, message: str) -> bool:
        logger.info("Notification: %s", message)
        return True

    async def report_error(self, message: str) -> bool:
        logger.error("Error report: %s", message)
        return True
