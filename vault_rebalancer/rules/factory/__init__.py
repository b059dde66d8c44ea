"""Factories composing parameters, conditions and actions into rules."""
from .action_factory import ActionFactory
from .condition_factory import ConditionFactory
from .parameter_factory import ParameterFactory
from .rule_factory import RuleFactory

__all__ = ["ActionFactory", "ConditionFactory", "ParameterFactory", "RuleFactory"]
