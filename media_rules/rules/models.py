"""Rule data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from media_rules.constants import DEFAULT_RULE_PRIORITY


class ConditionType(str, Enum):
    FILENAME_REGEX = "filename_regex"
    MIME_TYPE = "mime_type"
    DIMENSIONS = "dimensions"
    FILE_SIZE = "file_size"
    EXIF_CAMERA = "exif_camera"
    EXIF_DATE = "exif_date"
    AUTHOR = "author"
    IPTC_KEYWORDS = "iptc_keywords"


class NumericOperator(str, Enum):
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"
    BETWEEN = "between"


class DateOperator(str, Enum):
    AFTER = "after"
    BEFORE = "before"
    ON = "on"
    BETWEEN = "between"
    YEAR = "year"
    MONTH = "month"


class Dimension(str, Enum):
    WIDTH = "width"
    HEIGHT = "height"
    BOTH = "both"


@dataclass(frozen=True)
class Condition:
    type: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def get(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)

    def as_dict(self) -> dict[str, Any]:
        return {"type": self.type, **self.params}


@dataclass(frozen=True)
class Rule:
    id: str
    name: str
    conditions: tuple[Condition, ...]
    folder_id: int
    priority: int = DEFAULT_RULE_PRIORITY
    # Stored and round-tripped; evaluation stops at the first match either way.
    stop_processing: bool = True
    enabled: bool = True

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "conditions": [condition.as_dict() for condition in self.conditions],
            "folder_id": self.folder_id,
            "priority": self.priority,
            "stop_processing": self.stop_processing,
            "enabled": self.enabled,
        }

    def summary(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name}
