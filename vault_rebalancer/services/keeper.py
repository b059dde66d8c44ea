"""Per-block scheduling around the rebalance engine."""
from __future__ import annotations

import asyncio
import logging

from ..config import AppConfig, BotConfiguration, normalize_bot_configuration
from ..engine import CycleResult, RebalanceEngine
from ..errors import ConfigurationError, RebalancerError
from ..interfaces.configuration import ConfigurationSource
from ..interfaces.ledger import Ledger
from ..interfaces.notifier import Notifier
from ..models import BlockInfo, SchedulerState
from ..notifications import LoggingNotifier, NotifierGroup, TelegramNotifier, messages
from .version_check import VersionChecker

logger = logging.getLogger(__name__)


class Keeper:
    """Runs the engine once per new block.

    All state carried between ticks lives in the :class:`SchedulerState`
    passed to :meth:`tick`.
    """

    def __init__(
        self,
        engine: RebalanceEngine,
        ledger: Ledger,
        configuration_source: ConfigurationSource,
        notifier: Notifier,
        version_checker: VersionChecker | None = None,
        stable_symbol: str | None = None,
    ) -> None:
        self._engine = engine
        self._ledger = ledger
        self._source = configuration_source
        self._notifier = notifier
        self._version_checker = version_checker
        self._stable_symbol = stable_symbol or engine.sizing.stable_symbol

    async def _on_new_configuration(
        self, state: SchedulerState, configuration: BotConfiguration, block: BlockInfo
    ) -> None:
        logger.info("New configuration found. Will update bot...")
        state.last_observed_configuration = configuration
        old_pause = state.configuration.pause if state.configuration else 0

        if self._version_checker is not None:
            await self._version_checker.check()

        try:
            vault = await self._ledger.vaults.get_vault(configuration.vault_id)
        except RebalancerError as e:
            logger.error("Could not apply the new configuration: %s", e)
            await self._notifier.report_error(f"Could not apply the new configuration: {e}")
            return

        configuration = normalize_bot_configuration(configuration, vault.min_ratio_threshold)
        state.configuration = configuration
        state.configuration_block_time = block.time
        state.pause_elapsed_notified = False
        state.missing_configuration_reported = False

        if not configuration.is_paused_indefinitely:
            await self._notifier.send(
                messages.ratio_range(configuration.keep_min_ratio, configuration.keep_max_ratio)
            )
            await self._notifier.send(
                messages.pool_pairs(configuration.weights, self._stable_symbol)
            )

        if old_pause == -1 and configuration.pause >= 0:
            await self._notifier.send(messages.PAUSE_OVER)
        elif configuration.pause > 0:
            await self._notifier.send(messages.pause_started(configuration.pause))
        elif configuration.is_paused_indefinitely:
            await self._notifier.send(messages.PAUSE_INDEFINITE)

    async def _is_paused(self, state: SchedulerState, block: BlockInfo) -> bool:
        configuration = state.configuration
        if configuration.is_paused_indefinitely:
            logger.info("Bot has been stopped. Won't do anything!")
            return True
        if configuration.pause > 0:
            wait_till = state.configuration_block_time + configuration.pause * 60
            logger.debug("Pause configured till %d, now is %d", wait_till, block.time)
            if wait_till > block.time:
                logger.info("Doing nothing: user configured pause")
                return True
            if not state.pause_elapsed_notified:
                await self._notifier.send(messages.PAUSE_OVER)
                state.pause_elapsed_notified = True
        return False

    async def tick(self, state: SchedulerState) -> CycleResult | None:
        """Handle one scheduling interval; returns None when nothing ran."""
        clock = self._ledger.clock
        block = await clock.get_current_block()
        if block.height == state.last_block_height:
            logger.debug("Last checked block: %d", block.height)
            return None

        logger.info("New block found (%d), will start the analysis now...", block.height)
        state.last_block_height = block.height

        try:
            observed = await self._source.current()
        except ConfigurationError as e:
            logger.error("Invalid configuration: %s", e)
            await self._notifier.report_error(str(e))
            observed = None
        if observed is not None and observed != state.last_observed_configuration:
            await self._on_new_configuration(state, observed, block)

        if state.configuration is None:
            logger.info("No configuration found. Won't do anything!")
            if not state.missing_configuration_reported:
                await self._notifier.report_error(
                    "No configuration found. Please send one with the app."
                )
                state.missing_configuration_reported = True
            return None

        if await self._is_paused(state, block):
            return None

        result = await self._engine.run_cycle(state.configuration)
        if result.has_tx_sent:
            # blocks found while the transactions were sent do not count
            state.last_block_height = (await clock.get_current_block()).height
        return result

    async def run_continuous(
        self, interval_seconds: float = 10, state: SchedulerState | None = None
    ) -> None:
        """Tick forever; a failing tick is logged and the loop goes on."""
        state = state or SchedulerState()
        logger.info("Starting keeper loop (checking every %s seconds)", interval_seconds)

        while True:
            try:
                await self.tick(state)
            except Exception as e:
                logger.error("Error in keeper loop: %s", e)
            await asyncio.sleep(interval_seconds)


def build_notifier(config: AppConfig) -> NotifierGroup:
    """Notification channels enabled in ``config``; always logs."""
    notifiers: list[Notifier] = [LoggingNotifier()]
    if config.notifications.telegram.enabled:
        notifiers.append(TelegramNotifier(config.notifications.telegram, config.bot.name))
    return NotifierGroup(notifiers)


def create_keeper(
    config: AppConfig,
    ledger: Ledger,
    configuration_source: ConfigurationSource,
    notifier: Notifier | None = None,
) -> Keeper:
    """Wire engine, notifiers and version check from process settings."""
    notifier = notifier or build_notifier(config)
    engine = RebalanceEngine(ledger, notifier, config.engine)
    return Keeper(
        engine,
        ledger,
        configuration_source,
        notifier,
        version_checker=VersionChecker(config.version_check, notifier),
        stable_symbol=config.engine.stable_symbol,
    )
