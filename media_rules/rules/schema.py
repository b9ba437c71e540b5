"""JSON Schema for rule payloads accepted by the store."""

from typing import Any, Final

from media_rules.rules.models import (
    ConditionType,
    DateOperator,
    Dimension,
    NumericOperator,
)

_NUMBER_LIKE: Final[dict[str, Any]] = {
    "anyOf": [
        {"type": "integer", "minimum": 0},
        {"type": "string", "pattern": r"^\s*\d*\s*$"},
        {"type": "null"},
    ]
}


def _when_type(condition_type: ConditionType, then: dict[str, Any]) -> dict[str, Any]:
    return {
        "if": {
            "properties": {"type": {"const": condition_type.value}},
            "required": ["type"],
        },
        "then": then,
    }


CONDITION_SCHEMA: Final[dict[str, Any]] = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
    },
    "allOf": [
        _when_type(
            ConditionType.DIMENSIONS,
            {
                "properties": {
                    "dimension": {"enum": [item.value for item in Dimension]},
                    "operator": {"enum": [item.value for item in NumericOperator]},
                    "value": _NUMBER_LIKE,
                    "value_end": _NUMBER_LIKE,
                }
            },
        ),
        _when_type(
            ConditionType.FILE_SIZE,
            {
                "properties": {
                    "operator": {"enum": [item.value for item in NumericOperator]},
                    "value": _NUMBER_LIKE,
                    "value_end": _NUMBER_LIKE,
                }
            },
        ),
        _when_type(
            ConditionType.EXIF_DATE,
            {
                "properties": {
                    "operator": {"enum": [item.value for item in DateOperator]},
                    "value": {"type": ["string", "integer"]},
                    "value_end": {"type": ["string", "integer", "null"]},
                }
            },
        ),
        _when_type(ConditionType.AUTHOR, {"properties": {"value": _NUMBER_LIKE}}),
    ],
}

RULE_SCHEMA: Final[dict[str, Any]] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "folder_id": _NUMBER_LIKE,
        "priority": _NUMBER_LIKE,
        "enabled": {"type": "boolean"},
        "stop_processing": {"type": "boolean"},
        "conditions": {"type": "array", "items": CONDITION_SCHEMA},
    },
}
