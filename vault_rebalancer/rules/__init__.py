"""Rule engine: when to act (conditions) and what to do (actions)."""
from .model import (
    Action,
    ActionSet,
    ComparisonOperator,
    Composite,
    Condition,
    ConditionSet,
    FailurePolicy,
    Leaf,
    LogicalOperator,
    Parameter,
    Rule,
)

__all__ = [
    "Action",
    "ActionSet",
    "ComparisonOperator",
    "Composite",
    "Condition",
    "ConditionSet",
    "FailurePolicy",
    "Leaf",
    "LogicalOperator",
    "Parameter",
    "Rule",
]
