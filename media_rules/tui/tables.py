from collections import Counter

from rich.panel import Panel
from rich.table import Column, Table

from media_rules.models import (
    ApplyResult,
    Folder,
    ItemMetadata,
    LibraryStats,
    PreviewResult,
)
from media_rules.rules.models import Condition, ConditionType, NumericOperator, Rule
from media_rules.tui.enums import APPLY_STATUS_STYLE, PREVIEW_STATUS_STYLE, UIStyle


def describe_condition(condition: Condition) -> str:
    operator = condition.get("operator")
    value = condition.get("value")
    if operator == NumericOperator.BETWEEN.value:
        value = f"{value}..{condition.get('value_end')}"

    if condition.type == ConditionType.DIMENSIONS.value:
        return f"{condition.get('dimension')} {operator} {value}px"
    if condition.type == ConditionType.FILE_SIZE.value:
        return f"size {operator} {value} KB"
    if condition.type == ConditionType.EXIF_DATE.value:
        return f"taken {operator} {value}"
    if condition.type == ConditionType.FILENAME_REGEX.value:
        return f"filename ~ {value}"
    if condition.type == ConditionType.MIME_TYPE.value:
        return f"type = {value}"
    if condition.type == ConditionType.EXIF_CAMERA.value:
        return f"camera ~ {value}"
    if condition.type == ConditionType.AUTHOR.value:
        return f"author = {value}"
    if condition.type == ConditionType.IPTC_KEYWORDS.value:
        return f"keywords ~ {value}"
    return f"{condition.type} {value}"


def _styled(value: str, style: str) -> str:
    return f"[{style}]{value}[/{style}]"


class RulesTable:
    @staticmethod
    def rules_table(rules: list[Rule], folders: dict[int, Folder]) -> Table:
        table = Table(
            Column(header="#", width=4, justify="right"),
            Column(header="Id", width=14),
            Column(header="Name", overflow="ellipsis", max_width=32),
            Column(header="Conditions", overflow="fold"),
            Column(header="Folder", overflow="ellipsis", max_width=24),
            Column(header="Enabled", width=8),
            expand=True,
            header_style="bold",
        )
        for rule in rules:
            folder = folders.get(rule.folder_id)
            folder_text = folder.name if folder else f"missing ({rule.folder_id})"
            enabled = (
                _styled("yes", UIStyle.GREEN.value)
                if rule.enabled
                else _styled("no", UIStyle.DIM.value)
            )
            table.add_row(
                str(rule.priority),
                rule.id,
                rule.name,
                "\n".join(describe_condition(item) for item in rule.conditions) or "-",
                folder_text,
                enabled,
            )
        return table

    @staticmethod
    def rule_detail(rule: Rule, folder: Folder | None) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Id", rule.id)
        table.add_row("Name", rule.name)
        table.add_row("Priority", str(rule.priority))
        table.add_row("Enabled", "yes" if rule.enabled else "no")
        table.add_row("Stop processing", "yes" if rule.stop_processing else "no")
        table.add_row(
            "Folder", f"{folder.name} ({folder.id})" if folder else f"missing ({rule.folder_id})"
        )
        table.add_row(
            "Conditions",
            "\n".join(describe_condition(item) for item in rule.conditions) or "-",
        )
        return table


class LibraryTable:
    @staticmethod
    def folders_table(folders: list[Folder], counts: dict[int, int]) -> Table:
        table = Table(
            Column(header="Id", width=6, justify="right"),
            Column(header="Name", overflow="ellipsis"),
            Column(header="Items", width=8, justify="right"),
            expand=True,
            header_style="bold",
        )
        for folder in folders:
            table.add_row(str(folder.id), folder.name, str(counts.get(folder.id, 0)))
        return table

    @staticmethod
    def items_table(items: list[ItemMetadata], assignments: dict[int, str]) -> Table:
        table = Table(
            Column(header="Id", width=6, justify="right"),
            Column(header="Filename", overflow="ellipsis", max_width=40),
            Column(header="Type", width=18),
            Column(header="Size", width=10, justify="right"),
            Column(header="Pixels", width=11),
            Column(header="Folder", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            pixels = f"{item.width}x{item.height}" if item.width and item.height else ""
            size = f"{(item.filesize or 0) // 1024} KB" if item.filesize else ""
            table.add_row(
                str(item.item_id),
                item.filename,
                item.mime_type,
                size,
                pixels,
                assignments.get(item.item_id, ""),
            )
        return table


class PreviewTable:
    @staticmethod
    def summary_block(result: PreviewResult, mode: str) -> Table:
        counts = Counter(item.status.value for item in result.items)
        chips = [f"{key}={value}" for key, value in sorted(counts.items()) if value > 0]
        if not chips:
            chips = ["none"]

        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Mode", mode)
        table.add_row("Scanned", f"{result.total} of {result.total_count}")
        table.add_row("Offset", str(result.offset))
        table.add_row("Statuses", "  ".join(chips))
        if result.has_more:
            table.add_row("Next offset", str(result.offset + result.total))
        return table

    @staticmethod
    def items_table(result: PreviewResult) -> Table:
        table = Table(
            Column(header="Id", width=6, justify="right"),
            Column(header="Filename", overflow="ellipsis", max_width=40),
            Column(header="Status", width=12),
            Column(header="Rule", overflow="ellipsis", max_width=28),
            Column(header="Folder", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in result.items:
            style = PREVIEW_STATUS_STYLE.get(item.status, UIStyle.WHITE.value)
            table.add_row(
                str(item.item_id),
                item.filename,
                _styled(item.status.value, style),
                item.matched_rule["name"] if item.matched_rule else "",
                str(item.target_folder["name"]) if item.target_folder else "",
            )
        return table


class ApplyTable:
    @staticmethod
    def stats_panel(result: ApplyResult) -> Panel:
        stats: dict[str, str] = {
            "total": str(result.total),
            "assigned": str(result.assigned),
            "skipped": str(result.skipped),
            "errors": str(result.errors),
        }
        table = Table(show_header=False, box=None)
        for key, value in stats.items():
            table.add_row(f"[bold]{key}[/bold]", value)
        return Panel(
            table,
            title="apply",
            border_style=UIStyle.GREEN.value if result.errors == 0 else UIStyle.RED.value,
        )

    @staticmethod
    def items_table(result: ApplyResult) -> Table:
        table = Table(
            Column(header="Id", width=6, justify="right"),
            Column(header="Status", width=10),
            Column(header="Folder", overflow="ellipsis", max_width=28),
            Column(header="Rule", overflow="ellipsis", max_width=28),
            Column(header="Message", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in result.items:
            style = APPLY_STATUS_STYLE.get(item.status, UIStyle.WHITE.value)
            table.add_row(
                str(item.item_id),
                _styled(item.status.value, style),
                item.folder_name or "",
                item.rule_name or "",
                item.message or "",
            )
        return table


class StatsTable:
    @staticmethod
    def stats_table(stats: LibraryStats) -> Table:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column(justify="right")
        table.add_row("Media items", str(stats.total))
        table.add_row("In a folder", str(stats.assigned))
        table.add_row("Unassigned", str(stats.unassigned))
        table.add_row("Folders", str(stats.folders))
        table.add_row("Rules", f"{stats.rules_enabled} enabled / {stats.rules} total")
        return table
