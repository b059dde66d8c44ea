"""One rebalancing cycle: safety check, then the rules in order."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import BotConfiguration, EngineConfig
from .errors import ConfigurationError, VaultNotActiveError
from .interfaces.ledger import Ledger
from .interfaces.notifier import Notifier
from .models import ActionReturn
from .rules.factory import RuleFactory
from .safety import SafetyEvaluator
from .sizing import SizingEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleResult:
    """Outcome of a cycle; ``rule`` names the rule that sent transactions."""

    rule: str | None
    result: ActionReturn

    @property
    def has_tx_sent(self) -> bool:
        return self.result.has_tx_sent


class RebalanceEngine:
    def __init__(
        self,
        ledger: Ledger,
        notifier: Notifier,
        settings: EngineConfig | None = None,
    ) -> None:
        self._ledger = ledger
        self._notifier = notifier
        self._settings = settings or EngineConfig()
        self.sizing = SizingEngine(
            ledger.pools, ledger.prices, ledger.balances, self._settings.stable_symbol
        )
        self.safety = SafetyEvaluator(
            ledger.vaults, self.sizing, ledger.balances, self._settings.safety_margin
        )
        self.rule_factory = RuleFactory(ledger, self.sizing, notifier, self._settings)

    async def check_safety(self, configuration: BotConfiguration) -> bool:
        """Run the safety check and report a failure.

        Fail-open: no error raised by the check, ledger reads included,
        stops the rules from running.
        """
        logger.info("Running safety check")
        try:
            await self.safety.check(configuration)
        except Exception as e:
            logger.warning("Safety check failed, continuing with the rules (fail-open): %s", e)
            await self._notifier.report_error(f"SAFETY CHECK FAILED: {e}")
            return False
        return True

    async def run_cycle(self, configuration: BotConfiguration) -> CycleResult:
        """Run the rules until the first one that sent a transaction."""
        try:
            vault = await self._ledger.vaults.get_vault(configuration.vault_id)
        except VaultNotActiveError as e:
            logger.warning("Skipping cycle: %s", e)
            return CycleResult(None, ActionReturn(False, False, error=str(e)))
        logger.info(
            "Vault ratio current: %.2f%% next: %.2f%% (state %s)",
            vault.current_ratio, vault.next_ratio, vault.state.value,
        )

        await self.check_safety(configuration)

        try:
            rules = self.rule_factory.rules_from_configuration(configuration)
        except ConfigurationError as e:
            logger.error("Could not build rules: %s", e)
            await self._notifier.report_error(str(e))
            return CycleResult(None, ActionReturn(False, False, error=str(e)))

        logger.info("Running rules now...")
        for rule in rules:
            logger.debug("Running rule %s: %s", rule.name, rule.description)
            result = await rule.run()
            if result.has_tx_sent:
                logger.debug("Rule %s sent transactions, waiting for the next block", rule.name)
                return CycleResult(rule.name, result)
        return CycleResult(None, ActionReturn(is_success=True, has_tx_sent=False))
