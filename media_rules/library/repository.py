"""JSON-backed media library: items, folders and folder assignments."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from media_rules.conditions.mime import mime_matches
from media_rules.constants import LIBRARY_FILENAME
from media_rules.errors import FolderNotFoundError, InvalidJsonFormatError
from media_rules.interfaces.repositories import ILibrary
from media_rules.models import Folder, ItemMetadata
from media_rules.utils import absint, read_json_safe, write_json

logger = logging.getLogger(__name__)


def mime_filter_matches(mime_type: str, mime_filter: str) -> bool:
    """Listing filter: ``image``, ``image/*``, exact types, comma separated."""
    for part in mime_filter.split(","):
        pattern = part.strip()
        if not pattern:
            continue
        if "/" not in pattern:
            pattern = f"{pattern}/*"
        if mime_matches(mime_type, pattern):
            return True
    return False


class LibraryRepository(ILibrary):
    """The whole document is loaded once and rewritten on every change.

    Inside a ``batch()`` block changes stay in memory and the document is
    written once when the outermost block exits.
    """

    def __init__(self, root: Path) -> None:
        self._library_path = root / LIBRARY_FILENAME
        self._state: Optional[dict[str, Any]] = None
        self._items: dict[int, dict[str, Any]] = {}
        self._folders: dict[int, Folder] = {}
        self._batch_depth = 0
        self._dirty = False

    @property
    def library_path(self) -> Path:
        return self._library_path

    # items

    def list_items(self) -> list[ItemMetadata]:
        items = [ItemMetadata.from_dict(raw) for raw in self._load()["items"]]
        return sorted(items, key=lambda item: item.item_id)

    def get_metadata(self, item_id: int) -> Optional[ItemMetadata]:
        self._load()
        raw = self._items.get(item_id)
        if raw is None:
            return None
        return ItemMetadata.from_dict(raw)

    def add_item(self, payload: dict[str, Any]) -> ItemMetadata:
        state = self._load()
        item_id = absint(state.get("next_item_id")) or 1
        record = ItemMetadata.from_dict({**payload, "id": item_id}).as_dict()
        state["items"].append(record)
        self._items[item_id] = record
        state["next_item_id"] = item_id + 1
        self._save()
        logger.info("Added media item %s (%s)", item_id, record["filename"])
        return ItemMetadata.from_dict(record)

    def remove_item(self, item_id: int) -> bool:
        state = self._load()
        remaining = [raw for raw in state["items"] if absint(raw.get("id")) != item_id]
        if len(remaining) == len(state["items"]):
            return False
        state["items"] = remaining
        self._items.pop(item_id, None)
        state["assignments"].pop(str(item_id), None)
        self._save()
        return True

    def list_item_ids(
        self,
        unassigned_only: bool = False,
        mime_type: Optional[str] = None,
        item_ids: Optional[Iterable[int]] = None,
    ) -> list[int]:
        state = self._load()
        wanted = {absint(item) for item in item_ids} if item_ids else None

        result: list[int] = []
        for raw in state["items"]:
            item_id = absint(raw.get("id"))
            if wanted is not None and item_id not in wanted:
                continue
            if unassigned_only and str(item_id) in state["assignments"]:
                continue
            if mime_type and not mime_filter_matches(
                str(raw.get("mime_type") or ""), mime_type
            ):
                continue
            result.append(item_id)
        return sorted(result)

    def counts(self) -> tuple[int, int]:
        state = self._load()
        item_ids = {absint(raw.get("id")) for raw in state["items"]}
        assigned = sum(1 for key in state["assignments"] if absint(key) in item_ids)
        return len(item_ids), assigned

    # folders

    def list_folders(self) -> list[Folder]:
        self._load()
        return sorted(self._folders.values(), key=lambda folder: folder.id)

    def get_folder(self, folder_id: int) -> Optional[Folder]:
        self._load()
        return self._folders.get(folder_id)

    def add_folder(self, name: str) -> Folder:
        normalized = name.strip()
        if not normalized:
            raise ValueError("Folder name cannot be empty")
        state = self._load()
        folder_id = absint(state.get("next_folder_id")) or 1
        state["folders"].append({"id": folder_id, "name": normalized})
        self._folders[folder_id] = Folder(id=folder_id, name=normalized)
        state["next_folder_id"] = folder_id + 1
        self._save()
        logger.info("Added folder %s (%s)", folder_id, normalized)
        return Folder(id=folder_id, name=normalized)

    def remove_folder(self, folder_id: int) -> bool:
        state = self._load()
        remaining = [raw for raw in state["folders"] if absint(raw.get("id")) != folder_id]
        if len(remaining) == len(state["folders"]):
            return False
        state["folders"] = remaining
        self._folders.pop(folder_id, None)
        state["assignments"] = {
            key: value
            for key, value in state["assignments"].items()
            if absint(value) != folder_id
        }
        self._save()
        logger.info("Removed folder %s", folder_id)
        return True

    # assignments

    def folder_of(self, item_id: int) -> Optional[int]:
        value = self._load()["assignments"].get(str(item_id))
        return None if value is None else absint(value)

    def assign(self, item_id: int, folder_id: int) -> bool:
        if self.get_folder(folder_id) is None:
            logger.warning("Cannot assign item %s: folder %s does not exist", item_id, folder_id)
            return False
        if item_id not in self._items:
            logger.warning("Cannot assign item %s: no such item", item_id)
            return False

        assignments = self._load()["assignments"]
        if assignments.get(str(item_id)) == folder_id:
            return True
        assignments[str(item_id)] = folder_id
        self._save()
        logger.debug("Assigned item %s to folder %s", item_id, folder_id)
        return True

    def unassign(self, item_id: int) -> bool:
        if self._load()["assignments"].pop(str(item_id), None) is None:
            return False
        self._save()
        return True

    def require_folder(self, folder_id: int) -> Folder:
        folder = self.get_folder(folder_id)
        if folder is None:
            raise FolderNotFoundError(folder_id)
        return folder

    @contextmanager
    def batch(self) -> Iterator[None]:
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self.flush()

    def flush(self) -> None:
        if self._state is None:
            return
        write_json(self._library_path, self._state)
        self._dirty = False

    def _load(self) -> dict[str, Any]:
        if self._state is not None:
            return self._state

        payload, error = read_json_safe(self._library_path)
        if error is not None:
            raise InvalidJsonFormatError(self._library_path, error)
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise InvalidJsonFormatError(self._library_path, "expected an object")

        items = payload.get("items")
        folders = payload.get("folders")
        assignments = payload.get("assignments")
        self._state = {
            "next_item_id": absint(payload.get("next_item_id")),
            "next_folder_id": absint(payload.get("next_folder_id")),
            "items": [raw for raw in items if isinstance(raw, dict)]
            if isinstance(items, list)
            else [],
            "folders": [raw for raw in folders if isinstance(raw, dict)]
            if isinstance(folders, list)
            else [],
            "assignments": {
                str(key): absint(value) for key, value in assignments.items()
            }
            if isinstance(assignments, dict)
            else {},
        }
        self._fix_counters(self._state)
        self._items = {absint(raw.get("id")): raw for raw in self._state["items"]}
        self._folders = {}
        for raw in self._state["folders"]:
            folder = Folder(id=absint(raw.get("id")), name=str(raw.get("name") or ""))
            self._folders[folder.id] = folder
        return self._state

    @staticmethod
    def _fix_counters(state: dict[str, Any]) -> None:
        max_item = max((absint(raw.get("id")) for raw in state["items"]), default=0)
        max_folder = max((absint(raw.get("id")) for raw in state["folders"]), default=0)
        state["next_item_id"] = max(state["next_item_id"], max_item + 1)
        state["next_folder_id"] = max(state["next_folder_id"], max_folder + 1)

    def _save(self) -> None:
        self._load()
        self._dirty = True
        if self._batch_depth == 0:
            self.flush()
