"""Sanitize, validate and (de)serialize rule records."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

import yaml
from jsonschema import Draft202012Validator

from media_rules.conditions.image_meta import parse_date_value
from media_rules.constants import DEFAULT_RULE_PRIORITY
from media_rules.errors import InvalidRuleError
from media_rules.rules.models import (
    Condition,
    ConditionType,
    DateOperator,
    Dimension,
    NumericOperator,
    Rule,
)
from media_rules.rules.schema import RULE_SCHEMA
from media_rules.utils import absint

_RULE_VALIDATOR = Draft202012Validator(RULE_SCHEMA)
_KEY_RE = re.compile(r"[^a-z0-9_\-]")
_MIME_RE = re.compile(r"[^-+*.a-zA-Z0-9/]")

_TEXT_TYPES = (
    ConditionType.FILENAME_REGEX.value,
    ConditionType.EXIF_CAMERA.value,
    ConditionType.IPTC_KEYWORDS.value,
)


def format_schema_error(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


def validate_rule_payload(payload: Any) -> None:
    if not isinstance(payload, Mapping):
        raise InvalidRuleError("rule must be a mapping")
    error = next(iter(_RULE_VALIDATOR.iter_errors(dict(payload))), None)
    if error is not None:
        raise InvalidRuleError(format_schema_error(error))


def sanitize_key(value: Any) -> str:
    return _KEY_RE.sub("", str(value).lower())


def _text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def sanitize_condition(payload: Mapping[str, Any]) -> Condition:
    condition_type = str(payload["type"])
    value = payload.get("value")

    if condition_type in _TEXT_TYPES:
        params: dict[str, Any] = {"value": _text(value)}
    elif condition_type == ConditionType.MIME_TYPE.value:
        params = {"value": _MIME_RE.sub("", _text(value))}
    elif condition_type == ConditionType.DIMENSIONS.value:
        params = {
            "operator": sanitize_key(payload.get("operator") or NumericOperator.GT.value),
            "dimension": sanitize_key(payload.get("dimension") or Dimension.WIDTH.value),
            "value": absint(value),
            "value_end": absint(payload.get("value_end")),
        }
    elif condition_type == ConditionType.FILE_SIZE.value:
        params = {
            "operator": sanitize_key(payload.get("operator") or NumericOperator.GT.value),
            "value": absint(value),
            "value_end": absint(payload.get("value_end")),
        }
    elif condition_type == ConditionType.EXIF_DATE.value:
        params = {
            "operator": sanitize_key(payload.get("operator") or DateOperator.AFTER.value),
            "value": _text(value),
            "value_end": _text(payload.get("value_end")),
        }
    elif condition_type == ConditionType.AUTHOR.value:
        params = {"value": absint(value)}
    else:
        # Unregistered types keep their value so a later plugin can read it.
        params = {"value": _text(value)}

    return Condition(type=sanitize_key(condition_type), params=params)


def sanitize_conditions(conditions: Any) -> tuple[Condition, ...]:
    if not isinstance(conditions, (list, tuple)):
        return ()
    sanitized: list[Condition] = []
    for item in conditions:
        if not isinstance(item, Mapping) or "type" not in item:
            continue
        sanitized.append(sanitize_condition(item))
    return tuple(sanitized)


def prepare_rule_data(data: Mapping[str, Any], rule_id: str) -> Rule:
    priority = data.get("priority")
    return Rule(
        id=rule_id,
        name=_text(data.get("name")),
        conditions=sanitize_conditions(data.get("conditions")),
        folder_id=absint(data.get("folder_id")),
        priority=DEFAULT_RULE_PRIORITY if priority is None else absint(priority),
        stop_processing=bool(data.get("stop_processing", False)),
        enabled=bool(data.get("enabled", False)),
    )


def rule_from_dict(payload: Mapping[str, Any]) -> Rule:
    """Load a stored record; unlike incoming data it must carry its id."""
    rule_id = payload.get("id")
    if not isinstance(rule_id, str) or not rule_id:
        raise InvalidRuleError("stored rule without id")
    return prepare_rule_data(payload, rule_id)


def validate_rule(rule: Rule) -> list[str]:
    """Editor-level checks; matchers never repeat them."""
    errors: list[str] = []
    if not rule.name.strip():
        errors.append("Rule name is required")
    if not rule.folder_id:
        errors.append("Target folder is required")
    if not rule.conditions:
        errors.append("At least one condition is required")

    for index, condition in enumerate(rule.conditions, start=1):
        if condition.get("operator") != NumericOperator.BETWEEN.value:
            continue
        if condition.type == ConditionType.EXIF_DATE.value:
            value = parse_date_value(condition.get("value")) or 0
            value_end = parse_date_value(condition.get("value_end")) or 0
        else:
            value = absint(condition.get("value"))
            value_end = absint(condition.get("value_end"))
        if value_end <= value:
            errors.append(
                f"Condition {index} ({condition.type}): range end must be greater than start"
            )
    return errors


def parse_rules_document(text: str) -> list[dict[str, Any]]:
    """Accept either a bare YAML list or a mapping with a ``rules`` key."""
    try:
        raw = yaml.safe_load(text) if text.strip() else []
    except yaml.YAMLError as exc:
        raise InvalidRuleError(f"unreadable YAML: {exc}") from exc
    if isinstance(raw, Mapping):
        raw = raw.get("rules", [])
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidRuleError("rules document must be a list")
    for item in raw:
        validate_rule_payload(item)
    return [dict(item) for item in raw]


def serialize_rules(rules: Iterable[Rule]) -> str:
    payload = [rule.as_dict() for rule in rules]
    return yaml.safe_dump(payload, default_flow_style=False, sort_keys=False)
