"""Builds the rules of one cycle from the bot configuration."""
from __future__ import annotations

import logging

from ...config import BotConfiguration, EngineConfig
from ...constants import SUPPORTED_CONFIG_VERSIONS
from ...errors import ConfigurationError
from ...interfaces.ledger import Ledger
from ...interfaces.notifier import Notifier
from ...sizing import SizingEngine
from ..model import Rule
from .action_factory import ActionFactory
from .condition_factory import ConditionFactory
from .parameter_factory import ParameterFactory

logger = logging.getLogger(__name__)


class RuleFactory:
    def __init__(
        self,
        ledger: Ledger,
        sizing: SizingEngine,
        notifier: Notifier,
        settings: EngineConfig | None = None,
    ) -> None:
        self._ledger = ledger
        self._sizing = sizing
        self._notifier = notifier
        self._settings = settings or EngineConfig()

    def _factories(self, vault_id: str) -> tuple[ConditionFactory, ActionFactory]:
        settings = self._settings
        parameters = ParameterFactory(
            self._ledger.vaults,
            self._ledger.balances,
            vault_id,
            reward_symbol=settings.reward_symbol,
            utxo_reserve=settings.utxo_reserve,
        )
        actions = ActionFactory(
            self._ledger,
            self._sizing,
            self._notifier,
            vault_id,
            reward_symbol=settings.reward_symbol,
            utxo_reserve=settings.utxo_reserve,
            safety_margin=settings.safety_margin,
            failure_policy=settings.failure_policy,
        )
        return ConditionFactory(parameters), actions

    def rules_from_configuration(self, configuration: BotConfiguration) -> list[Rule]:
        """Compounding, keep-min and keep-max rule, in the order they run.

        Raises:
            ConfigurationError: unsupported version or compounding mode.
        """
        if configuration.version not in SUPPORTED_CONFIG_VERSIONS:
            raise ConfigurationError(
                "Unsupported version of config found. Please make sure that you "
                "have the latest app and the latest backend version."
            )

        conditions, actions = self._factories(configuration.vault_id)
        target_ratio = configuration.target_ratio
        compounding = configuration.compounding

        compounding_rule = Rule(
            "Compounding",
            "Checking how to re-invest your rewards...",
            conditions.compounding_condition_set(compounding.threshold),
            actions.compounding_action_set(compounding.mode, compounding.token),
        )
        min_rule = Rule(
            "KeepMinRatio",
            f"Checking your MINIMUM vault ratio. If it's lower than "
            f"{configuration.keep_min_ratio}, I will pay back loans...",
            conditions.min_ratio_condition_set(configuration.keep_min_ratio),
            actions.increase_ratio_action_set(configuration.weights, target_ratio),
        )
        max_rule = Rule(
            "KeepMaxRatio",
            f"Checking your MAXIMUM vault ratio. If it's higher than "
            f"{configuration.keep_max_ratio}, I will take more loans...",
            conditions.max_ratio_condition_set(configuration.keep_max_ratio),
            actions.decrease_ratio_action_set(configuration.weights, target_ratio),
        )
        rules = [compounding_rule, min_rule, max_rule]
        logger.debug(
            "Generated %d rules from config: %s", len(rules), ", ".join(r.name for r in rules)
        )
        return rules
