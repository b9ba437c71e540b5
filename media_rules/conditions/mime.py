from typing import Any, Mapping

from media_rules.conditions.base import IConditionMatcher, is_blank
from media_rules.models import ItemMetadata
from media_rules.rules.models import ConditionType


def mime_matches(mime_type: str, pattern: str) -> bool:
    """``image/*`` matches by prefix, anything else must be equal."""
    if "/*" in pattern:
        return mime_type.startswith(pattern.replace("/*", "/"))
    return mime_type == pattern


class MimeTypeMatcher(IConditionMatcher):
    @property
    def condition_type(self) -> str:
        return ConditionType.MIME_TYPE.value

    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        value = params.get("value")
        if is_blank(value) or not item.mime_type:
            return False
        return mime_matches(item.mime_type, str(value))
