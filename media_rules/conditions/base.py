"""Condition matcher interface and shared comparison helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from media_rules.models import ItemMetadata
from media_rules.rules.models import NumericOperator


class IConditionMatcher(ABC):
    """Stateless predicate for one condition type.

    ``matches`` must not raise and must not mutate its arguments. Missing or
    malformed parameters make the condition fail instead of passing.
    """

    @property
    @abstractmethod
    def condition_type(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        raise NotImplementedError


def is_blank(value: Any) -> bool:
    """True for values a rule editor would consider "not filled in"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, bool):
        return not value
    return False


def compare_numeric(actual: int, operator: str, value: int, value_end: int) -> bool:
    if operator == NumericOperator.GT.value:
        return actual > value
    if operator == NumericOperator.GTE.value:
        return actual >= value
    if operator == NumericOperator.LT.value:
        return actual < value
    if operator == NumericOperator.LTE.value:
        return actual <= value
    if operator == NumericOperator.EQ.value:
        return actual == value
    if operator == NumericOperator.BETWEEN.value:
        return value <= actual <= value_end
    return False
