from __future__ import annotations

import logging
from typing import Callable, Optional

from media_rules.constants import UPLOAD_CONTEXT_CREATE
from media_rules.evaluator import RuleEvaluator
from media_rules.interfaces.repositories import IFolderSink
from media_rules.models import ItemMetadata, MatchResult
from media_rules.rules.models import Rule

logger = logging.getLogger(__name__)

SkipIfAssigned = Callable[[int, int], bool]
OnAssigned = Callable[[int, int, Rule], None]


def always_skip_assigned(item_id: int, folder_id: int) -> bool:
    return True


def notify_assigned(
    hook: Optional[OnAssigned], item_id: int, folder_id: int, rule: Rule
) -> None:
    """Run the after-assignment hook; its failures are logged, never raised."""
    if hook is None:
        return
    try:
        hook(item_id, folder_id, rule)
    except Exception as exc:
        logger.error("Assignment hook failed for item %s: %s", item_id, exc)


class UploadClassifier:
    """Place freshly uploaded items into the folder of the first matching rule.

    Items that already carry a folder are left alone unless the
    ``skip_if_assigned`` hook returns False for them. ``on_assigned`` is
    called with the item id, folder id and rule after each assignment.
    """

    def __init__(
        self,
        evaluator: RuleEvaluator,
        sink: IFolderSink,
        skip_if_assigned: SkipIfAssigned = always_skip_assigned,
        on_assigned: Optional[OnAssigned] = None,
    ) -> None:
        self.evaluator = evaluator
        self.sink = sink
        self.skip_if_assigned = skip_if_assigned
        self.on_assigned = on_assigned

    def handle(
        self,
        item_id: int,
        metadata: Optional[ItemMetadata] = None,
        context: str = UPLOAD_CONTEXT_CREATE,
    ) -> Optional[MatchResult]:
        if context != UPLOAD_CONTEXT_CREATE:
            return None

        current = self.sink.folder_of(item_id)
        if current is not None and self.skip_if_assigned(item_id, current):
            logger.debug("Item %s already in folder %s; skipping", item_id, current)
            return None

        result = self.evaluator.evaluate(item_id, metadata)
        if result is None or not result.folder_id:
            return None

        if not self.sink.assign(item_id, result.folder_id):
            logger.warning(
                "Rule %s matched item %s but folder %s could not be assigned",
                result.rule.id,
                item_id,
                result.folder_id,
            )
            return None

        logger.info(
            "Item %s assigned to folder %s by rule %s",
            item_id,
            result.folder_id,
            result.rule.id,
        )
        notify_assigned(self.on_assigned, item_id, result.folder_id, result.rule)
        return result
