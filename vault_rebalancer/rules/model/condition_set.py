"""Boolean tree of conditions."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

from .condition import Condition


class LogicalOperator(str, Enum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class Leaf:
    condition: Condition


@dataclass(frozen=True)
class Composite:
    condition_set: ConditionSet


Node = Union[Leaf, Composite]


def _as_node(child: Condition | ConditionSet | Leaf | Composite) -> Node:
    if isinstance(child, (Leaf, Composite)):
        return child
    if isinstance(child, ConditionSet):
        return Composite(child)
    if isinstance(child, Condition):
        return Leaf(child)
    raise TypeError(f"Unsupported condition node: {child!r}")


async def evaluate(node: Node) -> bool:
    """Evaluate one node of a condition tree."""
    if isinstance(node, Leaf):
        return await node.condition.is_fulfilled()
    return await node.condition_set.is_fulfilled()


class ConditionSet:
    """Children combined with AND (default) or OR.

    Siblings are read-only and independent, so they are evaluated
    concurrently and folded once all of them are done.
    """

    def __init__(
        self,
        conditions: Iterable[Condition | ConditionSet | Leaf | Composite],
        operator: LogicalOperator | str = LogicalOperator.AND,
    ) -> None:
        self.children: tuple[Node, ...] = tuple(_as_node(c) for c in conditions)
        self.operator = LogicalOperator(operator)

    async def is_fulfilled(self) -> bool:
        results = await asyncio.gather(*(evaluate(child) for child in self.children))
        if self.operator is LogicalOperator.AND:
            return all(results)
        return any(results)

    def __repr__(self) -> str:
        return f"ConditionSet({self.operator.value}, {len(self.children)} children)"
