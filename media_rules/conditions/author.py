from typing import Any, Mapping

from media_rules.conditions.base import IConditionMatcher, is_blank
from media_rules.models import ItemMetadata
from media_rules.rules.models import ConditionType
from media_rules.utils import absint


class AuthorMatcher(IConditionMatcher):
    """Stored ids may be strings or ints; both sides are coerced."""

    @property
    def condition_type(self) -> str:
        return ConditionType.AUTHOR.value

    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        value = params.get("value")
        if is_blank(value):
            return False
        return absint(item.author_id) == absint(value)
