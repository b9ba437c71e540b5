from typing import Optional

from rich.console import Console

from media_rules.models import (
    ApplyResult,
    ApplyStatus,
    Folder,
    ItemMetadata,
    LibraryStats,
    MatchResult,
    PreviewResult,
)
from media_rules.rules.models import Rule
from media_rules.tui.enums import UIStyle
from media_rules.tui.sections import UISection
from media_rules.tui.tables import (
    ApplyTable,
    LibraryTable,
    PreviewTable,
    RulesTable,
    StatsTable,
)
from media_rules.utils import compact_home_path


class RulesConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_rules(self, rules: list[Rule], folders: list[Folder]) -> None:
        if not rules:
            self.console.print(
                UISection.note(
                    "rules",
                    "No rules configured.\n- media-rules rules add --help",
                    style=UIStyle.YELLOW.value,
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "rules",
                RulesTable.rules_table(rules, {folder.id: folder for folder in folders}),
                style=UIStyle.BLUE.value,
            )
        )

    def render_rule(self, rule: Rule, folder: Optional[Folder]) -> None:
        self.console.print(
            UISection.wrap("rule", RulesTable.rule_detail(rule, folder), style=UIStyle.CYAN.value)
        )

    def render_rule_saved(self, rule: Rule, verb: str) -> None:
        self.console.print(
            UISection.note(
                "rule",
                f"Rule {verb}: [bold]{rule.name}[/bold] ({rule.id})",
                style=UIStyle.GREEN.value,
            )
        )

    def render_rule_removed(self, rule_id: str) -> None:
        self.console.print(
            UISection.note("rule", f"Removed rule {rule_id}", style=UIStyle.YELLOW.value)
        )

    def render_validation_errors(self, errors: list[str]) -> None:
        self.console.print(
            UISection.note(
                "invalid rule",
                "\n".join(f"- {item}" for item in errors),
                style=UIStyle.RED.value,
            )
        )

    def render_folders(self, folders: list[Folder], counts: dict[int, int]) -> None:
        if not folders:
            self.console.print(
                UISection.note("folders", "No folders configured.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "folders",
                LibraryTable.folders_table(folders, counts),
                style=UIStyle.BLUE.value,
            )
        )

    def render_folder_saved(self, folder: Folder, removed: bool = False) -> None:
        verb = "removed" if removed else "added"
        border_style = UIStyle.YELLOW.value if removed else UIStyle.GREEN.value
        self.console.print(
            UISection.note(
                "folder",
                f"Folder {verb}: [bold]{folder.name}[/bold] ({folder.id})",
                style=border_style,
            )
        )

    def render_items(self, items: list[ItemMetadata], assignments: dict[int, str]) -> None:
        if not items:
            self.console.print(
                UISection.note("library", "No media items.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "library",
                LibraryTable.items_table(items, assignments),
                style=UIStyle.BLUE.value,
            )
        )

    def render_items_added(self, items: list[ItemMetadata], root: str) -> None:
        lines = [f"- {item.item_id}: {item.filename} ({item.mime_type})" for item in items]
        self.console.print(
            UISection.note(
                "library",
                f"Added {len(items)} item(s) to {compact_home_path(root)}\n" + "\n".join(lines),
                style=UIStyle.GREEN.value,
            )
        )

    def render_match(
        self, item_id: int, match: Optional[MatchResult], folder: Optional[Folder]
    ) -> None:
        if match is None:
            self.console.print(
                UISection.note(
                    "evaluate",
                    f"Item {item_id}: no rule matched.",
                    style=UIStyle.YELLOW.value,
                )
            )
            return
        folder_name = folder.name if folder else "Unknown"
        self.console.print(
            UISection.note(
                "evaluate",
                f"Item {item_id} matches [bold]{match.rule.name}[/bold] ({match.rule.id})\n"
                f"-> folder {folder_name} ({match.folder_id})",
                style=UIStyle.GREEN.value,
            )
        )

    def render_preview(self, result: PreviewResult, mode: str) -> None:
        self.console.print(
            UISection.wrap(
                "preview overview",
                PreviewTable.summary_block(result, mode=mode),
                style=UIStyle.BLUE.value,
            )
        )
        if result.items:
            self.console.print(
                UISection.wrap(
                    "items",
                    PreviewTable.items_table(result),
                    style=UIStyle.CYAN.value,
                )
            )
        else:
            self.console.print(
                UISection.note("items", "Nothing to scan.", style=UIStyle.DIM.value)
            )

        next_steps = ["- media-rules apply"]
        if result.has_more:
            next_steps.insert(
                0, f"- media-rules preview --offset {result.offset + result.total}"
            )
        self.console.print(
            UISection.note("next", "\n".join(next_steps), style=UIStyle.DIM.value)
        )

    def render_apply_result(self, result: ApplyResult, verbose: bool = False) -> None:
        self.console.print(ApplyTable.stats_panel(result))
        if verbose and result.items:
            self.console.print(
                UISection.wrap("items", ApplyTable.items_table(result), style=UIStyle.CYAN.value)
            )
        failures = [item for item in result.items if item.status == ApplyStatus.ERROR]
        if failures:
            failure_text = "\n".join(
                f"- item {item.item_id}: {item.message}" for item in failures
            )
            self.console.print(
                UISection.note("failures", failure_text, style=UIStyle.RED.value)
            )

    def render_stats(self, stats: LibraryStats) -> None:
        self.console.print(
            UISection.wrap("stats", StatsTable.stats_table(stats), style=UIStyle.BLUE.value)
        )
