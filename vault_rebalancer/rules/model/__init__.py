"""Rule model classes."""
from .action import Action
from .action_set import ActionSet, FailurePolicy
from .condition import ComparisonOperator, Condition
from .condition_set import Composite, ConditionSet, Leaf, LogicalOperator, evaluate
from .parameter import Parameter
from .rule import Rule

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
    "evaluate",
]
