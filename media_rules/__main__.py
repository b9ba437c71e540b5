import functools
import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click
import yaml
from rich.console import Console

from media_rules.batch import BatchProcessor
from media_rules.constants import (
    APP_DIRNAME,
    HOME_ENV_VAR,
    PREVIEW_DEFAULT_LIMIT,
    PREVIEW_DEFAULT_MAX_SCAN,
    PREVIEW_DEFAULT_TARGET_MATCHES,
)
from media_rules.errors import (
    FolderNotFoundError,
    ItemNotFoundError,
    MediaRulesError,
    RuleNotFoundError,
)
from media_rules.evaluator import RuleEvaluator
from media_rules.library.ingest import read_item_metadata
from media_rules.library.repository import LibraryRepository
from media_rules.logs import configure_logging
from media_rules.models import ApplyRequest, ItemMetadata, PreviewRequest
from media_rules.rules.parser import (
    parse_rules_document,
    prepare_rule_data,
    serialize_rules,
    validate_rule,
)
from media_rules.rules.repository import RulesRepository
from media_rules.tui import RulesConsoleUI
from media_rules.upload import UploadClassifier
from media_rules.utils import backup_file


def _default_root() -> Path:
    return Path.home() / ".config" / APP_DIRNAME


def _repos_from_obj(obj: Dict[str, Any]) -> tuple[RulesRepository, LibraryRepository]:
    root: Path = obj["root"]
    return RulesRepository(root), LibraryRepository(root)


def _app_errors(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except MediaRulesError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


def _parse_condition(text: str) -> dict[str, Any]:
    """``{type: mime_type, value: image/*}`` or ``type=mime_type;value=image/*``."""
    stripped = text.strip()
    if stripped.startswith("{"):
        try:
            mapping = yaml.safe_load(stripped)
        except yaml.YAMLError as exc:
            raise click.BadParameter(f"cannot parse condition {text!r}: {exc}") from exc
        if not isinstance(mapping, dict):
            raise click.BadParameter(f"condition must be a mapping: {text!r}")
        return mapping

    payload: dict[str, Any] = {}
    for part in stripped.split(";"):
        if not part.strip():
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise click.BadParameter(f"expected key=value in condition part {part!r}")
        payload[key.strip()] = value.strip()
    if "type" not in payload:
        raise click.BadParameter(f"condition without type: {text!r}")
    return payload


def _check_rule(ui: RulesConsoleUI, library: LibraryRepository, payload: dict[str, Any]) -> None:
    errors = validate_rule(prepare_rule_data(payload, "pending"))
    if errors:
        ui.render_validation_errors(errors)
        raise click.ClickException("Rule not saved.")
    folder_id = payload.get("folder_id")
    if folder_id is not None:
        library.require_folder(int(folder_id))


def _build_evaluator(rules: RulesRepository, library: LibraryRepository) -> RuleEvaluator:
    return RuleEvaluator(rules=rules, metadata=library)


def _collect_files(paths: tuple[Path, ...]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(
                child
                for child in sorted(path.rglob("*"))
                if child.is_file() and not child.name.startswith(".")
            )
        elif path.is_file():
            files.append(path)
    return files


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--root",
    type=click.Path(path_type=Path, file_okay=False),
    envvar=HOME_ENV_VAR,
    default=None,
    help=f"Data directory (default: ~/.config/{APP_DIRNAME}).",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, root: Optional[Path], verbose: bool) -> None:
    """Sort media items into folders with ordered rules."""
    configure_logging(verbose=verbose)
    ctx.obj = {"root": (root or _default_root()).expanduser()}


# rules


@cli.group(help="Manage classification rules.")
def rules() -> None:
    pass


@rules.command("list", help="List rules in evaluation order.")
@click.pass_obj
@_app_errors
def rules_list(obj: Dict[str, Any]) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library = _repos_from_obj(obj)
    ui.render_rules(rules_repo.list_rules(), library.list_folders())


@rules.command("show", help="Show one rule.")
@click.argument("rule_id")
@click.pass_obj
@_app_errors
def rules_show(obj: Dict[str, Any], rule_id: str) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library = _repos_from_obj(obj)
    rule = rules_repo.get(rule_id)
    if rule is None:
        raise RuleNotFoundError(rule_id)
    ui.render_rule(rule, library.get_folder(rule.folder_id))


@rules.command("add", help="Create a rule.")
@click.option("--name", required=True)
@click.option("--folder", "folder_id", type=int, required=True, help="Target folder id.")
@click.option("--priority", type=int, default=None, help="Lower runs first.")
@click.option(
    "--condition",
    "conditions",
    multiple=True,
    help="Condition as 'type=mime_type;value=image/*' or a YAML mapping.",
)
@click.option("--disabled", is_flag=True, help="Store the rule disabled.")
@click.option("--stop/--no-stop", "stop_processing", default=True)
@click.pass_obj
@_app_errors
def rules_add(
    obj: Dict[str, Any],
    name: str,
    folder_id: int,
    priority: Optional[int],
    conditions: tuple[str, ...],
    disabled: bool,
    stop_processing: bool,
) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library = _repos_from_obj(obj)
    payload: dict[str, Any] = {
        "name": name,
        "folder_id": folder_id,
        "priority": priority,
        "conditions": [_parse_condition(item) for item in conditions],
        "enabled": not disabled,
        "stop_processing": stop_processing,
    }
    _check_rule(ui, library, payload)
    ui.render_rule_saved(rules_repo.create(payload), verb="created")


@rules.command("update", help="Change fields of a rule.")
@click.argument("rule_id")
@click.option("--name", default=None)
@click.option("--folder", "folder_id", type=int, default=None)
@click.option("--priority", type=int, default=None)
@click.option(
    "--condition",
    "conditions",
    multiple=True,
    help="Replaces all conditions when given.",
)
@click.pass_obj
@_app_errors
def rules_update(
    obj: Dict[str, Any],
    rule_id: str,
    name: Optional[str],
    folder_id: Optional[int],
    priority: Optional[int],
    conditions: tuple[str, ...],
) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library = _repos_from_obj(obj)
    existing = rules_repo.get(rule_id)
    if existing is None:
        raise RuleNotFoundError(rule_id)

    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if folder_id is not None:
        changes["folder_id"] = folder_id
    if priority is not None:
        changes["priority"] = priority
    if conditions:
        changes["conditions"] = [_parse_condition(item) for item in conditions]

    _check_rule(ui, library, {**existing.as_dict(), **changes})
    updated = rules_repo.update(rule_id, changes)
    if updated is None:
        raise RuleNotFoundError(rule_id)
    ui.render_rule_saved(updated, verb="updated")


@rules.command("remove", help="Delete a rule.")
@click.argument("rule_id")
@click.pass_obj
@_app_errors
def rules_remove(obj: Dict[str, Any], rule_id: str) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, _ = _repos_from_obj(obj)
    if not rules_repo.delete(rule_id):
        raise RuleNotFoundError(rule_id)
    ui.render_rule_removed(rule_id)


def _toggle(obj: Dict[str, Any], rule_id: str, enabled: bool) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, _ = _repos_from_obj(obj)
    rule = rules_repo.set_enabled(rule_id, enabled)
    if rule is None:
        raise RuleNotFoundError(rule_id)
    ui.render_rule_saved(rule, verb="enabled" if enabled else "disabled")


@rules.command("enable", help="Enable a rule.")
@click.argument("rule_id")
@click.pass_obj
@_app_errors
def rules_enable(obj: Dict[str, Any], rule_id: str) -> None:
    _toggle(obj, rule_id, True)


@rules.command("disable", help="Disable a rule.")
@click.argument("rule_id")
@click.pass_obj
@_app_errors
def rules_disable(obj: Dict[str, Any], rule_id: str) -> None:
    _toggle(obj, rule_id, False)


@rules.command("reorder", help="Set evaluation order; unlisted rules go last.")
@click.argument("rule_ids", nargs=-1, required=True)
@click.pass_obj
@_app_errors
def rules_reorder(obj: Dict[str, Any], rule_ids: tuple[str, ...]) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library = _repos_from_obj(obj)
    ui.render_rules(rules_repo.reorder(rule_ids), library.list_folders())


@rules.command("import", help="Replace all rules with a YAML document.")
@click.argument("source", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.pass_obj
@_app_errors
def rules_import(obj: Dict[str, Any], source: Path) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library = _repos_from_obj(obj)
    payloads = parse_rules_document(source.read_text(encoding="utf-8"))
    if rules_repo.rules_path.exists():
        backup_file(rules_repo.rules_path)
    ui.render_rules(rules_repo.replace_all(payloads), library.list_folders())


@rules.command("export", help="Write all rules as YAML.")
@click.argument("target", type=click.Path(path_type=Path, dir_okay=False), required=False)
@click.pass_obj
@_app_errors
def rules_export(obj: Dict[str, Any], target: Optional[Path]) -> None:
    rules_repo, _ = _repos_from_obj(obj)
    document = serialize_rules(rules_repo.list_rules())
    if target is None:
        click.echo(document, nl=False)
        return
    target.write_text(document, encoding="utf-8")
    click.echo(f"Exported rules to {target}")


# folders


@cli.group(help="Manage destination folders.")
def folders() -> None:
    pass


@folders.command("list", help="List folders.")
@click.pass_obj
@_app_errors
def folders_list(obj: Dict[str, Any]) -> None:
    ui = RulesConsoleUI(Console())
    _, library = _repos_from_obj(obj)
    counts: dict[int, int] = {}
    for item in library.list_items():
        folder_id = library.folder_of(item.item_id)
        if folder_id is not None:
            counts[folder_id] = counts.get(folder_id, 0) + 1
    ui.render_folders(library.list_folders(), counts)


@folders.command("add", help="Create a folder.")
@click.argument("name")
@click.pass_obj
@_app_errors
def folders_add(obj: Dict[str, Any], name: str) -> None:
    ui = RulesConsoleUI(Console())
    _, library = _repos_from_obj(obj)
    try:
        folder = library.add_folder(name)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    ui.render_folder_saved(folder)


@folders.command("remove", help="Delete a folder and its assignments.")
@click.argument("folder_id", type=int)
@click.pass_obj
@_app_errors
def folders_remove(obj: Dict[str, Any], folder_id: int) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library = _repos_from_obj(obj)
    folder = library.get_folder(folder_id)
    if folder is None or not library.remove_folder(folder_id):
        raise FolderNotFoundError(folder_id)
    ui.render_folder_saved(folder, removed=True)
    orphaned = [rule.name for rule in rules_repo.list_rules() if rule.folder_id == folder_id]
    if orphaned:
        click.echo(f"Rules still targeting this folder: {', '.join(orphaned)}")


# library


@cli.group(help="Manage media items.")
def library() -> None:
    pass


@library.command("add", help="Add files (or directories of files) to the library.")
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path, exists=True))
@click.option("--author", "author_id", type=int, default=0, help="Uploader user id.")
@click.option("--keyword", "keywords", multiple=True, help="IPTC keyword to attach.")
@click.pass_obj
@_app_errors
def library_add(
    obj: Dict[str, Any], paths: tuple[Path, ...], author_id: int, keywords: tuple[str, ...]
) -> None:
    ui = RulesConsoleUI(Console())
    _, library_repo = _repos_from_obj(obj)
    added: list[ItemMetadata] = []
    with library_repo.batch():
        for path in _collect_files(paths):
            added.append(library_repo.add_item(read_item_metadata(path, author_id, keywords)))
    ui.render_items_added(added, str(library_repo.library_path))


@library.command("list", help="List media items.")
@click.option("--unassigned", is_flag=True, help="Only items without a folder.")
@click.pass_obj
@_app_errors
def library_list(obj: Dict[str, Any], unassigned: bool) -> None:
    ui = RulesConsoleUI(Console())
    _, library_repo = _repos_from_obj(obj)
    wanted = set(library_repo.list_item_ids(unassigned_only=unassigned))
    folder_names = {folder.id: folder.name for folder in library_repo.list_folders()}
    items = [item for item in library_repo.list_items() if item.item_id in wanted]
    assignments: dict[int, str] = {}
    for item in items:
        folder_id = library_repo.folder_of(item.item_id)
        if folder_id is not None:
            assignments[item.item_id] = folder_names.get(folder_id, str(folder_id))
    ui.render_items(items, assignments)


@library.command("remove", help="Forget a media item.")
@click.argument("item_id", type=int)
@click.pass_obj
@_app_errors
def library_remove(obj: Dict[str, Any], item_id: int) -> None:
    _, library_repo = _repos_from_obj(obj)
    if not library_repo.remove_item(item_id):
        raise ItemNotFoundError(item_id)
    click.echo(f"Removed item {item_id}")


@library.command("unassign", help="Take a media item out of its folder.")
@click.argument("item_id", type=int)
@click.pass_obj
@_app_errors
def library_unassign(obj: Dict[str, Any], item_id: int) -> None:
    _, library_repo = _repos_from_obj(obj)
    if library_repo.get_metadata(item_id) is None:
        raise ItemNotFoundError(item_id)
    if library_repo.unassign(item_id):
        click.echo(f"Item {item_id} is no longer in a folder")
    else:
        click.echo(f"Item {item_id} was not in a folder")


@cli.command(help="Add a file and file it by the first matching rule.")
@click.argument("path", type=click.Path(path_type=Path, exists=True, dir_okay=False))
@click.option("--author", "author_id", type=int, default=0)
@click.option("--keyword", "keywords", multiple=True)
@click.pass_obj
@_app_errors
def upload(obj: Dict[str, Any], path: Path, author_id: int, keywords: tuple[str, ...]) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library_repo = _repos_from_obj(obj)
    item = library_repo.add_item(read_item_metadata(path, author_id, keywords))
    classifier = UploadClassifier(_build_evaluator(rules_repo, library_repo), library_repo)
    match = classifier.handle(item.item_id, item)
    ui.render_items_added([item], str(library_repo.library_path))
    folder = library_repo.get_folder(match.folder_id) if match else None
    ui.render_match(item.item_id, match, folder)


# evaluation


@cli.command(help="Show which rule would file one item.")
@click.argument("item_id", type=int)
@click.option("--rule", "rule_id", default=None, help="Only test this rule.")
@click.pass_obj
@_app_errors
def evaluate(obj: Dict[str, Any], item_id: int, rule_id: Optional[str]) -> None:
    ui = RulesConsoleUI(Console())
    rules_repo, library_repo = _repos_from_obj(obj)
    if library_repo.get_metadata(item_id) is None:
        raise ItemNotFoundError(item_id)
    if rule_id is not None and rules_repo.get(rule_id) is None:
        raise RuleNotFoundError(rule_id)
    match = _build_evaluator(rules_repo, library_repo).evaluate(item_id, rule_id=rule_id)
    folder = library_repo.get_folder(match.folder_id) if match else None
    ui.render_match(item_id, match, folder)


@cli.command(help="Dry-run rules over one page of the library.")
@click.option("--all", "all_items", is_flag=True, help="Include items that already have a folder.")
@click.option("--mime-type", default=None, help="e.g. image, image/*, video/mp4")
@click.option("--limit", type=int, default=PREVIEW_DEFAULT_LIMIT, show_default=True)
@click.option("--offset", type=int, default=0, show_default=True)
@click.option(
    "--target-matches",
    type=int,
    default=PREVIEW_DEFAULT_TARGET_MATCHES,
    show_default=True,
    help="Stop after this many matches.",
)
@click.option("--max-scan", type=int, default=PREVIEW_DEFAULT_MAX_SCAN, show_default=True)
@click.option("--rule", "rule_id", default=None, help="Only scan with this rule.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result.")
@click.pass_obj
@_app_errors
def preview(
    obj: Dict[str, Any],
    all_items: bool,
    mime_type: Optional[str],
    limit: int,
    offset: int,
    target_matches: Optional[int],
    max_scan: int,
    rule_id: Optional[str],
    as_json: bool,
) -> None:
    rules_repo, library_repo = _repos_from_obj(obj)
    request = PreviewRequest(
        unassigned_only=not all_items,
        mime_type=mime_type,
        limit=limit,
        offset=offset,
        target_matches=target_matches,
        max_scan=max_scan,
        rule_id=rule_id,
    )
    processor = BatchProcessor(_build_evaluator(rules_repo, library_repo), library_repo)
    result = processor.preview(request)
    if as_json:
        click.echo(json.dumps(result.as_dict(), indent=2))
        return
    scope = "all" if all_items else "unassigned"
    RulesConsoleUI(Console()).render_preview(result, mode=f"preview:{scope}")


@cli.command(help="Assign folders using the current rules.")
@click.option("--all", "all_items", is_flag=True, help="Include items that already have a folder.")
@click.option("--mime-type", default=None)
@click.option("--item", "item_ids", type=int, multiple=True, help="Only these item ids.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result.")
@click.option("--details", is_flag=True, help="List every item.")
@click.pass_obj
@_app_errors
def apply(
    obj: Dict[str, Any],
    all_items: bool,
    mime_type: Optional[str],
    item_ids: tuple[int, ...],
    as_json: bool,
    details: bool,
) -> None:
    rules_repo, library_repo = _repos_from_obj(obj)
    request = ApplyRequest(
        unassigned_only=not all_items,
        mime_type=mime_type,
        item_ids=item_ids or None,
    )
    processor = BatchProcessor(_build_evaluator(rules_repo, library_repo), library_repo)
    result = processor.apply(request)
    if as_json:
        click.echo(json.dumps(result.as_dict(), indent=2))
    else:
        RulesConsoleUI(Console()).render_apply_result(result, verbose=details)

    if result.errors:
        raise click.exceptions.Exit(1)


@cli.command(help="Show library and rule counts.")
@click.option("--json", "as_json", is_flag=True, help="Print the raw counts.")
@click.pass_obj
@_app_errors
def stats(obj: Dict[str, Any], as_json: bool) -> None:
    rules_repo, library_repo = _repos_from_obj(obj)
    processor = BatchProcessor(_build_evaluator(rules_repo, library_repo), library_repo)
    library_stats = processor.get_stats()
    if as_json:
        click.echo(json.dumps(library_stats.as_dict(), indent=2))
        return
    RulesConsoleUI(Console()).render_stats(library_stats)


def main() -> int:
    try:
        result = cli(standalone_mode=False)
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return 2
    except click.exceptions.Abort:
        return 1
    # Exit raised inside a command comes back as the return value here.
    return result if isinstance(result, int) else 0


if __name__ == "__main__":
    raise SystemExit(main())
