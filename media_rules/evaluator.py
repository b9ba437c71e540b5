"""Priority ordered, first-match-wins rule evaluation."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from media_rules.conditions import IConditionMatcher, MatcherRegistry, default_matchers
from media_rules.interfaces.repositories import IMetadataProvider, IRuleSource
from media_rules.models import ItemMetadata, MatchResult
from media_rules.rules.models import Rule

logger = logging.getLogger(__name__)


class RuleEvaluator:
    """Match one item against the enabled rules.

    The evaluator holds no state between calls apart from its matcher
    registry. Extra condition types can be registered until the first
    evaluation; after that the registry is read-only.

    ``stop_processing`` is stored on rules but not consulted: the first
    matching rule always ends evaluation.
    """

    def __init__(
        self,
        rules: IRuleSource,
        metadata: Optional[IMetadataProvider] = None,
        matchers: Iterable[IConditionMatcher] = (),
    ) -> None:
        self.rules = rules
        self.metadata = metadata
        self.registry = MatcherRegistry(default_matchers())
        for matcher in matchers:
            self.registry.register(matcher)
        self._warned_types: set[str] = set()

    @property
    def matchers(self) -> Mapping[str, IConditionMatcher]:
        return self.registry.as_mapping()

    def register_matcher(self, matcher: IConditionMatcher) -> None:
        self.registry.register(matcher)

    def evaluate(
        self,
        item_id: int,
        metadata: Optional[ItemMetadata] = None,
        rule_id: Optional[str] = None,
    ) -> Optional[MatchResult]:
        self.registry.lock()
        item = metadata if metadata is not None else self._fetch(item_id)

        if rule_id is not None:
            rule = self.rules.get(rule_id)
            if rule is not None and self.rule_matches(rule, item):
                return MatchResult(folder_id=rule.folder_id, rule=rule)
            return None

        return self.first_match(self.rules.get_enabled(), item)

    def first_match(
        self, rules: Iterable[Rule], item: ItemMetadata
    ) -> Optional[MatchResult]:
        """Evaluate an already loaded snapshot of ordered rules."""
        self.registry.lock()
        for rule in rules:
            if self.rule_matches(rule, item):
                logger.debug("Item %s matched rule %s", item.item_id, rule.id)
                return MatchResult(folder_id=rule.folder_id, rule=rule)
        return None

    def rule_matches(self, rule: Rule, item: ItemMetadata) -> bool:
        if not rule.conditions:
            return False

        for condition in rule.conditions:
            matcher = self.registry.get(condition.type)
            if matcher is None:
                # Unknown types pass so older rules survive newer condition types.
                self._warn_unknown(condition.type, rule)
                continue
            if not matcher.matches(item, condition.params):
                return False
        return True

    def _fetch(self, item_id: int) -> ItemMetadata:
        if self.metadata is None:
            return ItemMetadata.empty(item_id)
        return self.metadata.get_metadata(item_id) or ItemMetadata.empty(item_id)

    def _warn_unknown(self, condition_type: str, rule: Rule) -> None:
        if condition_type in self._warned_types:
            return
        self._warned_types.add(condition_type)
        logger.warning(
            "Rule %s uses unregistered condition type '%s'; the condition is ignored",
            rule.id,
            condition_type,
        )
