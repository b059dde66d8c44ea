"""Tells the owner when a newer release is published."""
from __future__ import annotations

import asyncio
import logging
import ssl

import aiohttp
import certifi
from packaging.version import InvalidVersion, Version

from .. import __version__
from ..config import VersionCheckConfig
from ..interfaces.notifier import Notifier
from ..notifications import messages

logger = logging.getLogger(__name__)

_HEADERS = {"Accept": "application/json", "User-Agent": "vault-rebalancer"}


def is_newer(candidate: str, current: str) -> bool:
    """PEP 440 comparison; ``"1.2.0"`` and ``"1.2"`` are the same release.

    Raises:
        InvalidVersion: if either string is not a version.
    """
    return Version(candidate) > Version(current)


class VersionChecker:
    def __init__(
        self,
        config: VersionCheckConfig,
        notifier: Notifier,
        current_version: str = __version__,
    ) -> None:
        self._config = config
        self._notifier = notifier
        self.current_version = current_version

    async def fetch_latest_version(self) -> str | None:
        """Tag name of the latest release without its leading ``v``."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        timeout = aiohttp.ClientTimeout(total=15)

        async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
            async with session.get(self._config.url, headers=_HEADERS) as response:
                if response.status != 200:
                    logger.warning("Could not fetch latest release: HTTP %s", response.status)
                    return None
                data = await response.json()

        tag = data.get("tag_name") if isinstance(data, dict) else None
        if not tag:
            return None
        return str(tag).lstrip("vV")

    async def check(self) -> bool:
        """Notify when a newer release exists. Returns True if notified."""
        if not self._config.enabled:
            return False
        try:
            latest = await self.fetch_latest_version()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Version check failed: %s", e)
            return False

        logger.debug("Bot version: %s, latest release: %s", self.current_version, latest)
        if not latest:
            return False
        try:
            newer = is_newer(latest, self.current_version)
        except InvalidVersion as e:
            logger.warning("Version check failed: %s", e)
            return False
        if newer:
            await self._notifier.send(messages.new_version(latest))
            return True
        return False
