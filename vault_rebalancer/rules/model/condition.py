"""Comparison of a parameter's current value against a threshold."""
from __future__ import annotations

import logging
import operator
from enum import Enum
from typing import Any, Callable

from ...errors import ConditionTypeError, ConfigurationError
from .parameter import Parameter, ParameterValue

logger = logging.getLogger(__name__)


class ComparisonOperator(str, Enum):
    LT = "<"
    LE = "<="
    GE = ">="
    GT = ">"
    EQ = "=="
    NE = "!="

    @property
    def is_ordering(self) -> bool:
        return self not in (ComparisonOperator.EQ, ComparisonOperator.NE)


_COMPARATORS: dict[ComparisonOperator, Callable[[Any, Any], bool]] = {
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.LE: operator.le,
    ComparisonOperator.GE: operator.ge,
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.EQ: operator.eq,
    ComparisonOperator.NE: operator.ne,
}


class Condition:
    """``parameter <operator> threshold``.

    Strings (categorical values such as a vault state) only support ``==``
    and ``!=``. The check runs once at construction against the threshold
    and again on every evaluation against the value the parameter returned.
    """

    def __init__(
        self,
        name: str,
        parameter: Parameter,
        threshold: ParameterValue,
        operator: ComparisonOperator | str,
    ) -> None:
        self.name = name
        self.parameter = parameter
        self.threshold = threshold
        try:
            self.operator = ComparisonOperator(operator)
        except ValueError:
            # Unknown operators are kept as-is and never match.
            self.operator = operator  # type: ignore[assignment]

        if isinstance(threshold, str) and self._is_ordering():
            raise ConfigurationError(
                f"Cannot use operator {self._symbol()} for a string threshold "
                f"(condition {name})"
            )

    def _is_ordering(self) -> bool:
        if isinstance(self.operator, ComparisonOperator):
            return self.operator.is_ordering
        return False

    def _symbol(self) -> str:
        if isinstance(self.operator, ComparisonOperator):
            return self.operator.value
        return str(self.operator)

    async def is_fulfilled(self) -> bool:
        value = await self.parameter.current_value()
        if isinstance(value, str) and self._is_ordering():
            raise ConditionTypeError(
                f"Cannot use operator {self._symbol()} for a string value "
                f"received from parameter {self.parameter.name}"
            )

        logger.debug(
            "Validating condition %s: %s %s %s",
            self.name, value, self._symbol(), self.threshold,
        )
        comparator = _COMPARATORS.get(self.operator)  # type: ignore[arg-type]
        if comparator is None:
            return False
        return bool(comparator(value, self.threshold))

    def __repr__(self) -> str:
        return f"Condition({self.name!r}, {self._symbol()} {self.threshold!r})"
