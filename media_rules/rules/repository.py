"""Repository for rule CRUD operations."""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import yaml

from media_rules.constants import RULE_ID_LENGTH, RULE_ID_PREFIX, RULES_FILENAME
from media_rules.errors import InvalidRuleError, InvalidRulesFileError
from media_rules.interfaces.repositories import IRuleSource
from media_rules.rules.models import Rule
from media_rules.rules.parser import (
    prepare_rule_data,
    rule_from_dict,
    serialize_rules,
    validate_rule_payload,
)
from media_rules.utils import write_text_atomic

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_letters + string.digits


class RulesRepository(IRuleSource):
    """Rules kept as one YAML list; every write replaces the whole file."""

    def __init__(self, root: Path) -> None:
        self._rules_path = root / RULES_FILENAME

    @property
    def rules_path(self) -> Path:
        return self._rules_path

    def list_rules(self) -> list[Rule]:
        # sorted() is stable, so equal priorities keep their stored order.
        return sorted(self._load(), key=lambda rule: rule.priority)

    def get_enabled(self) -> list[Rule]:
        return [rule for rule in self.list_rules() if rule.enabled]

    def get(self, rule_id: str) -> Optional[Rule]:
        for rule in self._load():
            if rule.id == rule_id:
                return rule
        return None

    def create(self, data: Mapping[str, Any]) -> Rule:
        validate_rule_payload(data)
        rules = self.list_rules()
        rule = prepare_rule_data(data, self._generate_id(rules))
        rules.append(rule)
        self._save(rules)
        logger.info("Created rule %s (%s)", rule.id, rule.name)
        return rule

    def update(self, rule_id: str, data: Mapping[str, Any]) -> Optional[Rule]:
        """Merge ``data`` over the stored record; None if the id is unknown."""
        validate_rule_payload(data)
        rules = self.list_rules()
        for index, rule in enumerate(rules):
            if rule.id != rule_id:
                continue
            merged = {**rule.as_dict(), **dict(data)}
            rules[index] = prepare_rule_data(merged, rule_id)
            self._save(rules)
            logger.info("Updated rule %s", rule_id)
            return rules[index]
        return None

    def set_enabled(self, rule_id: str, enabled: bool) -> Optional[Rule]:
        return self.update(rule_id, {"enabled": enabled})

    def delete(self, rule_id: str) -> bool:
        rules = self.list_rules()
        remaining = [rule for rule in rules if rule.id != rule_id]
        if len(remaining) == len(rules):
            return False
        self._save(remaining)
        logger.info("Deleted rule %s", rule_id)
        return True

    def reorder(self, order: Iterable[str]) -> list[Rule]:
        """Listed ids first (priority 1..n), unlisted rules keep relative order after."""
        rules_by_id = {rule.id: rule for rule in self.list_rules()}
        reordered: list[Rule] = []
        for rule_id in order:
            rule = rules_by_id.pop(rule_id, None)
            if rule is not None:
                reordered.append(rule)
        reordered.extend(rules_by_id.values())

        reordered = [
            replace(rule, priority=priority)
            for priority, rule in enumerate(reordered, start=1)
        ]
        self._save(reordered)
        return reordered

    def replace_all(self, payloads: Iterable[Mapping[str, Any]]) -> list[Rule]:
        """Replace the collection, keeping incoming ids when they are unique."""
        rules: list[Rule] = []
        seen: set[str] = set()
        for payload in payloads:
            validate_rule_payload(payload)
            rule_id = payload.get("id")
            if not isinstance(rule_id, str) or not rule_id or rule_id in seen:
                rule_id = self._generate_id(rules)
            seen.add(rule_id)
            rules.append(prepare_rule_data(payload, rule_id))
        self._save(rules)
        return self.list_rules()

    def _load(self) -> list[Rule]:
        if not self._rules_path.exists():
            return []
        try:
            raw = yaml.safe_load(self._rules_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise InvalidRulesFileError(self._rules_path, str(exc)) from exc
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise InvalidRulesFileError(self._rules_path, "expected a list of rules")

        rules: list[Rule] = []
        for item in raw:
            if not isinstance(item, Mapping):
                raise InvalidRulesFileError(self._rules_path, "rule entry is not a mapping")
            try:
                rules.append(rule_from_dict(item))
            except InvalidRuleError as exc:
                raise InvalidRulesFileError(self._rules_path, exc.detail) from exc
        return rules

    def _save(self, rules: list[Rule]) -> None:
        write_text_atomic(self._rules_path, serialize_rules(rules))

    @staticmethod
    def _generate_id(existing: Iterable[Rule]) -> str:
        taken = {rule.id for rule in existing}
        while True:
            suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(RULE_ID_LENGTH))
            candidate = f"{RULE_ID_PREFIX}{suffix}"
            if candidate not in taken:
                return candidate
