"""Integer comparisons on pixel dimensions and file size."""

from typing import Any, Mapping

from media_rules.conditions.base import IConditionMatcher, compare_numeric
from media_rules.constants import KILOBYTE
from media_rules.models import ItemMetadata
from media_rules.rules.models import ConditionType, Dimension, NumericOperator
from media_rules.utils import absint


class DimensionsMatcher(IConditionMatcher):
    @property
    def condition_type(self) -> str:
        return ConditionType.DIMENSIONS.value

    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        if params.get("value") is None or params.get("dimension") is None:
            return False

        dimension = params.get("dimension")
        operator = params.get("operator") or NumericOperator.GT.value
        value = absint(params.get("value"))
        value_end = absint(params.get("value_end"))

        width = absint(item.width)
        height = absint(item.height)
        if dimension == Dimension.WIDTH.value:
            actual = width
        elif dimension == Dimension.HEIGHT.value:
            actual = height
        elif dimension == Dimension.BOTH.value:
            # The smaller side has to qualify.
            actual = min(width, height)
        else:
            actual = 0

        if actual == 0:
            return False
        return compare_numeric(actual, operator, value, value_end)


class FileSizeMatcher(IConditionMatcher):
    """Thresholds are stored in KB, item sizes in bytes."""

    @property
    def condition_type(self) -> str:
        return ConditionType.FILE_SIZE.value

    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        if params.get("value") is None:
            return False

        operator = params.get("operator") or NumericOperator.GT.value
        value = absint(params.get("value")) * KILOBYTE
        value_end = absint(params.get("value_end")) * KILOBYTE

        actual = absint(item.filesize)
        if actual == 0:
            return False
        return compare_numeric(actual, operator, value, value_end)
