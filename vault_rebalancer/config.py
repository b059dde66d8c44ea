"""Configuration: process settings from config.yaml and the bot configuration
published on the ledger."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .constants import (
    DEFAULT_REWARD_SYMBOL,
    DEFAULT_STABLE_SYMBOL,
    MINIMUM_RATIO_SPREAD,
    MINIMUM_UTXO_RESERVE,
    SAFETY_RATIO_MARGIN,
    SUPPORTED_CONFIG_VERSIONS,
)
from .errors import ConfigurationError
from .parser import to_decimal

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Process settings (config.yaml)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BotConfig:
    name: str = "Vault Rebalancer"
    address: str = ""


@dataclass(frozen=True)
class EngineConfig:
    tick_interval_seconds: int = 10
    safety_margin: Decimal = SAFETY_RATIO_MARGIN
    stable_symbol: str = DEFAULT_STABLE_SYMBOL
    reward_symbol: str = DEFAULT_REWARD_SYMBOL
    utxo_reserve: Decimal = MINIMUM_UTXO_RESERVE
    failure_policy: str = "continue"


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class VersionCheckConfig:
    enabled: bool = True
    url: str = "https://api.github.com/repos/vault-rebalancer/vault-rebalancer/releases/latest"


@dataclass(frozen=True)
class AppConfig:
    bot: BotConfig = field(default_factory=BotConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    version_check: VersionCheckConfig = field(default_factory=VersionCheckConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_bot(raw: dict[str, Any]) -> BotConfig:
    return BotConfig(
        name=raw.get("name", BotConfig.name),
        address=raw.get("address", ""),
    )


def _build_engine(raw: dict[str, Any]) -> EngineConfig:
    return EngineConfig(
        tick_interval_seconds=int(raw.get("tick_interval_seconds", 10)),
        safety_margin=to_decimal(raw.get("safety_margin"), SAFETY_RATIO_MARGIN),
        stable_symbol=raw.get("stable_symbol", DEFAULT_STABLE_SYMBOL),
        reward_symbol=raw.get("reward_symbol", DEFAULT_REWARD_SYMBOL),
        utxo_reserve=to_decimal(raw.get("utxo_reserve"), MINIMUM_UTXO_RESERVE),
        failure_policy=str(raw.get("failure_policy", "continue")).lower(),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


def _build_version_check(raw: dict[str, Any]) -> VersionCheckConfig:
    return VersionCheckConfig(
        enabled=bool(raw.get("enabled", True)),
        url=raw.get("url", VersionCheckConfig.url),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate process configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        bot=_build_bot(raw.get("bot", {})),
        engine=_build_engine(raw.get("engine", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
        version_check=_build_version_check(raw.get("version_check", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.bot.address:
        raise ValueError("Bot address must be configured")
    if cfg.engine.tick_interval_seconds <= 0:
        raise ValueError("tick_interval_seconds must be positive")
    if cfg.engine.failure_policy not in ("continue", "abort"):
        raise ValueError(
            f"Unknown failure_policy '{cfg.engine.failure_policy}' "
            "(expected 'continue' or 'abort')"
        )
    if cfg.engine.stable_symbol == cfg.engine.reward_symbol:
        raise ValueError("stable_symbol and reward_symbol must differ")


# ---------------------------------------------------------------------------
# Bot configuration (published on the ledger by the owner's app)
# ---------------------------------------------------------------------------

COMPOUNDING_MODES = (0, 1, 2, 3)


@dataclass(frozen=True)
class CompoundingSettings:
    """How idle rewards are reinvested.

    Modes: 0 disabled, 1 add reward token as collateral, 2 swap into
    ``token``, 3 swap into ``token`` and add it as collateral.
    """

    mode: int = 0
    threshold: Decimal = Decimal(0)
    token: str | None = None


@dataclass(frozen=True)
class BotConfiguration:
    version: str
    vault_id: str
    keep_min_ratio: Decimal
    keep_max_ratio: Decimal
    weights: dict[str, Decimal]
    compounding: CompoundingSettings = field(default_factory=CompoundingSettings)
    pause: int = 0

    @property
    def target_ratio(self) -> Decimal:
        """The middle of the configured ratio range."""
        return (self.keep_min_ratio + self.keep_max_ratio) / 2

    @property
    def is_paused_indefinitely(self) -> bool:
        return self.pause == -1


def _required(raw: Mapping[str, Any], key: str, where: str = "") -> Any:
    if key not in raw or raw[key] is None:
        raise ConfigurationError(f"Bot configuration is missing '{where}{key}'")
    return raw[key]


def _required_decimal(raw: Mapping[str, Any], key: str, where: str = "") -> Decimal:
    value = to_decimal(_required(raw, key, where))
    if value is None:
        raise ConfigurationError(f"Bot configuration field '{where}{key}' is not a number")
    return value


def _parse_weights(raw: Any) -> dict[str, Decimal]:
    if not isinstance(raw, Mapping) or not raw:
        raise ConfigurationError("Bot configuration needs at least one pool pair weight")
    weights: dict[str, Decimal] = {}
    for symbol, share in raw.items():
        value = to_decimal(share)
        if value is None or value < 0:
            raise ConfigurationError(f"Invalid weight for '{symbol}': {share!r}")
        weights[str(symbol)] = value
    if sum(weights.values()) <= 0:
        raise ConfigurationError("Pool pair weights must add up to more than zero")
    return weights


def _parse_compounding(raw: Mapping[str, Any] | None) -> CompoundingSettings:
    if not raw:
        return CompoundingSettings()
    try:
        mode = int(raw.get("mode", 0))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid compounding mode: {raw.get('mode')!r}") from e
    if mode not in COMPOUNDING_MODES:
        raise ConfigurationError(f'Compounding mode "{mode}" is not a valid compounding mode')
    token = raw.get("token") or None
    if mode in (2, 3) and not token:
        raise ConfigurationError(f"Compounding mode {mode} needs a target token")
    threshold = to_decimal(raw.get("threshold"), Decimal(0))
    if threshold is None or threshold < 0:
        raise ConfigurationError(f"Invalid compounding threshold: {raw.get('threshold')!r}")
    return CompoundingSettings(mode=mode, threshold=threshold, token=token)


def parse_bot_configuration(raw: Mapping[str, Any]) -> BotConfiguration:
    """Validate a raw bot configuration message.

    Unknown versions are rejected before anything else is read.

    Raises:
        ConfigurationError: on unsupported versions, missing or malformed fields.
    """
    version = str(_required(raw, "version"))
    if version not in SUPPORTED_CONFIG_VERSIONS:
        raise ConfigurationError(
            f"Unsupported configuration version '{version}'. Please make sure "
            "that you have the latest app and the latest backend version."
        )

    rules = _required(raw, "rules")
    if not isinstance(rules, Mapping):
        raise ConfigurationError("Bot configuration field 'rules' must be a mapping")

    try:
        pause = int(raw.get("pause", 0))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid pause value: {raw.get('pause')!r}") from e
    if pause < -1:
        raise ConfigurationError(f"Invalid pause value: {pause}")

    return BotConfiguration(
        version=version,
        vault_id=str(_required(raw, "vaultId")),
        keep_min_ratio=_required_decimal(rules, "keepMinRatio", "rules."),
        keep_max_ratio=_required_decimal(rules, "keepMaxRatio", "rules."),
        weights=_parse_weights(_required(raw, "poolpairs")),
        compounding=_parse_compounding(raw.get("compounding")),
        pause=pause,
    )


def normalize_bot_configuration(
    configuration: BotConfiguration, vault_min_ratio: Decimal
) -> BotConfiguration:
    """Bring the ratio range into a shape the rules can work with.

    - a minimum below the vault scheme's minimum is raised to it, keeping
      the spread (at least 2)
    - a maximum below the minimum is swapped with it
    - equal minimum and maximum get a spread of 2
    """
    low = configuration.keep_min_ratio
    high = configuration.keep_max_ratio

    if low < vault_min_ratio:
        spread = high - low
        new_low = vault_min_ratio
        new_high = vault_min_ratio + (spread if spread > MINIMUM_RATIO_SPREAD else MINIMUM_RATIO_SPREAD)
        logger.warning(
            "Min ratio %s is below the vault minimum %s. New min/max ratio: %s/%s",
            low, vault_min_ratio, new_low, new_high,
        )
    elif high < low:
        new_low, new_high = high, low
        logger.warning(
            "Min ratio %s was larger than max ratio %s. Exchanged the values", low, high
        )
    elif high == low:
        new_low, new_high = low, high + MINIMUM_RATIO_SPREAD
        logger.warning(
            "Min and max ratio were the same. New min/max ratio: %s/%s", new_low, new_high
        )
    else:
        return configuration

    return replace(configuration, keep_min_ratio=new_low, keep_max_ratio=new_high)
