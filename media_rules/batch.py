"""Run the evaluator across the media library: dry-run preview and apply."""

from __future__ import annotations

import logging
from typing import Optional

from media_rules.evaluator import RuleEvaluator
from media_rules.interfaces.repositories import ILibrary, IRuleSource
from media_rules.models import (
    ApplyItem,
    ApplyRequest,
    ApplyResult,
    ApplyStatus,
    Folder,
    ItemMetadata,
    LibraryStats,
    MatchResult,
    PreviewItem,
    PreviewRequest,
    PreviewResult,
    PreviewStatus,
)
from media_rules.rules.models import Rule
from media_rules.upload import OnAssigned, notify_assigned

logger = logging.getLogger(__name__)

UNKNOWN_FOLDER_NAME = "Unknown"
NO_MATCH_MESSAGE = "No matching rule"
ASSIGN_FAILED_MESSAGE = "Failed to assign folder"


class BatchProcessor:
    def __init__(
        self,
        evaluator: RuleEvaluator,
        library: ILibrary,
        rules: Optional[IRuleSource] = None,
        on_assigned: Optional[OnAssigned] = None,
    ) -> None:
        self.evaluator = evaluator
        self.library = library
        self.rules = rules or evaluator.rules
        self.on_assigned = on_assigned

    def preview(self, request: Optional[PreviewRequest] = None) -> PreviewResult:
        """Scan one page of the filtered items without changing anything.

        Every examined item is reported, matched or not, so the next page
        starts at ``offset + total``. A page ends after ``limit`` items,
        ``max_scan`` items or ``target_matches`` matches, whichever comes first.
        An item whose metadata or evaluation fails is logged and reported as
        unmatched.
        """
        request = request or PreviewRequest()
        item_ids = self.library.list_item_ids(
            unassigned_only=request.unassigned_only,
            mime_type=request.mime_type,
        )
        rules = self._snapshot(request.rule_id)
        folders = {folder.id: folder for folder in self.library.list_folders()}

        result = PreviewResult(
            total_count=len(item_ids),
            offset=request.offset,
            limit=request.limit,
            rule_id=request.rule_id,
        )
        position = request.offset
        while position < len(item_ids):
            if result.total >= request.limit or result.total >= request.max_scan:
                break
            if request.target_matches is not None and result.matched >= request.target_matches:
                break

            item_id = item_ids[position]
            position += 1
            result.total += 1

            try:
                item = self._metadata(item_id)
                match = self.evaluator.first_match(rules, item)
            except Exception as exc:
                logger.error("Previewing rules for item %s failed: %s", item_id, exc)
                item = ItemMetadata.empty(item_id)
                match = None
            if match is None:
                result.unmatched += 1
            else:
                result.matched += 1
            result.items.append(self._preview_item(item, match, folders))

        result.has_more = position < len(item_ids)
        logger.debug(
            "Preview scanned %s of %s items from offset %s (%s matched)",
            result.total,
            result.total_count,
            request.offset,
            result.matched,
        )
        return result

    def apply(self, request: Optional[ApplyRequest] = None) -> ApplyResult:
        """Evaluate every filtered item and commit matches; failures are counted.

        Assignments run inside the library's ``batch()`` block, so a store
        may write once for the whole run.
        """
        request = request or ApplyRequest()
        item_ids = self.library.list_item_ids(
            unassigned_only=request.effective_unassigned_only,
            mime_type=request.mime_type,
            item_ids=request.item_ids or None,
        )
        rules = self._snapshot(None)

        result = ApplyResult(total=len(item_ids))
        with self.library.batch():
            for item_id in item_ids:
                self._apply_one(item_id, rules, result)

        logger.info(
            "Apply finished: %s assigned, %s skipped, %s errors of %s",
            result.assigned,
            result.skipped,
            result.errors,
            result.total,
        )
        return result

    def _apply_one(self, item_id: int, rules: list[Rule], result: ApplyResult) -> None:
        try:
            match = self.evaluator.first_match(rules, self._metadata(item_id))
            if match is None:
                result.skipped += 1
                result.items.append(
                    ApplyItem(item_id, ApplyStatus.SKIPPED, message=NO_MATCH_MESSAGE)
                )
                return

            if not self.library.assign(item_id, match.folder_id):
                result.errors += 1
                result.items.append(
                    ApplyItem(item_id, ApplyStatus.ERROR, message=ASSIGN_FAILED_MESSAGE)
                )
                return
        except Exception as exc:
            logger.error("Applying rules to item %s failed: %s", item_id, exc)
            result.errors += 1
            result.items.append(
                ApplyItem(item_id, ApplyStatus.ERROR, message=f"{ASSIGN_FAILED_MESSAGE}: {exc}")
            )
            return

        folder = self.library.get_folder(match.folder_id)
        result.assigned += 1
        result.items.append(
            ApplyItem(
                item_id,
                ApplyStatus.ASSIGNED,
                folder_id=match.folder_id,
                folder_name=folder.name if folder else "",
                rule_id=match.rule.id,
                rule_name=match.rule.name,
            )
        )
        notify_assigned(self.on_assigned, item_id, match.folder_id, match.rule)

    def get_stats(self) -> LibraryStats:
        total, assigned = self.library.counts()
        return LibraryStats(
            total=total,
            assigned=assigned,
            unassigned=total - assigned,
            folders=len(self.library.list_folders()),
            rules=len(self.rules.list_rules()),
            rules_enabled=len(self.rules.get_enabled()),
        )

    def _snapshot(self, rule_id: Optional[str]) -> list[Rule]:
        """Rules for one pass; a single named rule is used even when disabled."""
        if rule_id is None:
            return self.rules.get_enabled()
        rule = self.rules.get(rule_id)
        return [rule] if rule is not None else []

    def _metadata(self, item_id: int) -> ItemMetadata:
        return self.library.get_metadata(item_id) or ItemMetadata.empty(item_id)

    @staticmethod
    def _preview_item(
        item: ItemMetadata, match: Optional[MatchResult], folders: dict[int, Folder]
    ) -> PreviewItem:
        if match is None:
            return PreviewItem(
                item_id=item.item_id,
                title=item.title,
                filename=item.filename,
                thumbnail=item.thumbnail,
                status=PreviewStatus.NO_MATCH,
            )
        folder = folders.get(match.folder_id)
        return PreviewItem(
            item_id=item.item_id,
            title=item.title,
            filename=item.filename,
            thumbnail=item.thumbnail,
            status=PreviewStatus.WILL_ASSIGN,
            matched_rule=match.rule.summary(),
            target_folder={
                "id": match.folder_id,
                "name": folder.name if folder else UNKNOWN_FOLDER_NAME,
            },
        )
