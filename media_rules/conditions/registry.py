from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from media_rules.conditions.base import IConditionMatcher
from media_rules.errors import MatcherRegistryLockedError

logger = logging.getLogger(__name__)


class MatcherRegistry:
    """Condition type -> matcher; writable until ``lock`` is called."""

    def __init__(self, matchers: Iterable[IConditionMatcher] = ()) -> None:
        self._matchers: dict[str, IConditionMatcher] = {}
        self._locked = False
        for matcher in matchers:
            self.register(matcher)

    def register(self, matcher: IConditionMatcher) -> None:
        condition_type = matcher.condition_type
        if self._locked:
            raise MatcherRegistryLockedError(condition_type)
        if condition_type in self._matchers:
            logger.debug("Replacing matcher for condition type %s", condition_type)
        self._matchers[condition_type] = matcher

    def lock(self) -> None:
        self._locked = True

    def get(self, condition_type: str) -> Optional[IConditionMatcher]:
        return self._matchers.get(condition_type)

    def as_mapping(self) -> Mapping[str, IConditionMatcher]:
        return MappingProxyType(self._matchers)
