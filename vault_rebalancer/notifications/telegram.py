"""Telegram notification service."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

_API_URL = "https://api.telegram.org/bot{token}/sendMessage"


class TelegramNotifier:
    """Send notifications via Telegram bots.

    Regular messages go through the log bot, errors through the alert bot so
    they can be unmuted separately. Without a dedicated alert bot, errors fall
    back to the log bot.
    """

    def __init__(self, config: TelegramConfig, bot_name: str = "") -> None:
        self.alert_bot_token = config.alert_bot_token or config.log_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id
        self.bot_name = bot_name

    def _with_header(self, message: str) -> str:
        if not self.bot_name:
            return message
        return f"*{self.bot_name}*\n\n{message}"

    async def _post(self, message: str, bot_token: str, silent: bool) -> bool:
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        payload = {
            "chat_id": self.chat_id,
            "text": self._with_header(message),
            "parse_mode": "Markdown",
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                _API_URL.format(token=bot_token), json=payload
            ) as response:
                if response.status == 200:
                    return True
                logger.error("Failed to send Telegram message: %s", response.status)
                return False

    async def send(self, message: str) -> bool:
        """Send an informational message."""
        return await self._post(message, self.log_bot_token, silent=False)

    async def report_error(self, message: str) -> bool:
        """Send an error report through the alert bot."""
        text = (
            f"⚠️ {message}\n\n"
            "Please send me your logs, so my developers can analyze it!"
        )
        if await self._post(text, self.alert_bot_token, silent=False):
            logger.info("Telegram error report sent")
            return True
        return False
