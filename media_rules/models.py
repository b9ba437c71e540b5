from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from media_rules.constants import (
    PREVIEW_DEFAULT_LIMIT,
    PREVIEW_DEFAULT_MAX_SCAN,
    PREVIEW_MAX_LIMIT,
    PREVIEW_MAX_MAX_SCAN,
    PREVIEW_MAX_TARGET_MATCHES,
    PREVIEW_MIN_LIMIT,
    PREVIEW_MIN_MAX_SCAN,
    PREVIEW_MIN_TARGET_MATCHES,
)
from media_rules.rules.models import Rule
from media_rules.utils import absint


class PreviewStatus(str, Enum):
    WILL_ASSIGN = "will_assign"
    NO_MATCH = "no_match"


class ApplyStatus(str, Enum):
    ASSIGNED = "assigned"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class ImageMeta:
    camera: str = ""
    created_timestamp: int = 0
    keywords: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, Any]:
        return {
            "camera": self.camera,
            "created_timestamp": self.created_timestamp,
            "keywords": list(self.keywords),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "ImageMeta":
        if not isinstance(payload, dict):
            return cls()
        keywords = payload.get("keywords") or []
        if not isinstance(keywords, (list, tuple)):
            keywords = []
        return cls(
            camera=str(payload.get("camera") or ""),
            created_timestamp=absint(payload.get("created_timestamp")),
            keywords=tuple(str(item) for item in keywords),
        )


@dataclass(frozen=True)
class ItemMetadata:
    item_id: int
    filename: str = ""
    mime_type: str = ""
    author_id: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    filesize: Optional[int] = None
    image_meta: ImageMeta = field(default_factory=ImageMeta)
    title: str = ""
    thumbnail: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.item_id,
            "filename": self.filename,
            "mime_type": self.mime_type,
            "author_id": self.author_id,
            "width": self.width,
            "height": self.height,
            "filesize": self.filesize,
            "image_meta": self.image_meta.as_dict(),
            "title": self.title,
            "thumbnail": self.thumbnail,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ItemMetadata":
        def _optional_int(key: str) -> Optional[int]:
            value = payload.get(key)
            if value is None:
                return None
            return absint(value)

        return cls(
            item_id=absint(payload.get("id")),
            filename=str(payload.get("filename") or ""),
            mime_type=str(payload.get("mime_type") or ""),
            author_id=absint(payload.get("author_id")),
            width=_optional_int("width"),
            height=_optional_int("height"),
            filesize=_optional_int("filesize"),
            image_meta=ImageMeta.from_dict(payload.get("image_meta")),
            title=str(payload.get("title") or ""),
            thumbnail=str(payload.get("thumbnail") or ""),
        )

    @classmethod
    def empty(cls, item_id: int) -> "ItemMetadata":
        return cls(item_id=item_id)


@dataclass(frozen=True)
class Folder:
    id: int
    name: str


@dataclass(frozen=True)
class MatchResult:
    folder_id: int
    rule: Rule


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True)
class PreviewRequest:
    unassigned_only: bool = True
    mime_type: Optional[str] = None
    limit: int = PREVIEW_DEFAULT_LIMIT
    offset: int = 0
    target_matches: Optional[int] = None
    max_scan: int = PREVIEW_DEFAULT_MAX_SCAN
    rule_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "limit", _clamp(int(self.limit), PREVIEW_MIN_LIMIT, PREVIEW_MAX_LIMIT)
        )
        object.__setattr__(self, "offset", max(0, int(self.offset)))
        object.__setattr__(
            self,
            "max_scan",
            _clamp(int(self.max_scan), PREVIEW_MIN_MAX_SCAN, PREVIEW_MAX_MAX_SCAN),
        )
        if self.target_matches is not None:
            object.__setattr__(
                self,
                "target_matches",
                _clamp(
                    int(self.target_matches),
                    PREVIEW_MIN_TARGET_MATCHES,
                    PREVIEW_MAX_TARGET_MATCHES,
                ),
            )
        if not self.mime_type:
            object.__setattr__(self, "mime_type", None)
        if not self.rule_id:
            object.__setattr__(self, "rule_id", None)


@dataclass(frozen=True)
class ApplyRequest:
    unassigned_only: bool = True
    mime_type: Optional[str] = None
    item_ids: Optional[tuple[int, ...]] = None

    def __post_init__(self) -> None:
        if self.item_ids is not None:
            object.__setattr__(
                self, "item_ids", tuple(absint(item) for item in self.item_ids)
            )
        if not self.mime_type:
            object.__setattr__(self, "mime_type", None)

    @property
    def effective_unassigned_only(self) -> bool:
        # An explicit selection wins over the unassigned filter.
        if self.item_ids:
            return False
        return self.unassigned_only


@dataclass(frozen=True)
class PreviewItem:
    item_id: int
    title: str
    filename: str
    thumbnail: str
    status: PreviewStatus
    matched_rule: Optional[dict[str, str]] = None
    target_folder: Optional[dict[str, Any]] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "attachment_id": self.item_id,
            "title": self.title,
            "filename": self.filename,
            "thumbnail": self.thumbnail,
            "matched_rule": self.matched_rule,
            "target_folder": self.target_folder,
            "status": self.status.value,
        }


@dataclass
class PreviewResult:
    total: int = 0
    total_count: int = 0
    matched: int = 0
    unmatched: int = 0
    items: list[PreviewItem] = field(default_factory=list)
    has_more: bool = False
    offset: int = 0
    limit: int = PREVIEW_DEFAULT_LIMIT
    rule_id: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "total_count": self.total_count,
            "matched": self.matched,
            "unmatched": self.unmatched,
            "items": [item.as_dict() for item in self.items],
            "has_more": self.has_more,
            "offset": self.offset,
            "limit": self.limit,
            "rule_id": self.rule_id,
        }


@dataclass(frozen=True)
class ApplyItem:
    item_id: int
    status: ApplyStatus
    folder_id: Optional[int] = None
    folder_name: Optional[str] = None
    rule_id: Optional[str] = None
    rule_name: Optional[str] = None
    message: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "attachment_id": self.item_id,
            "status": self.status.value,
        }
        optional = {
            "folder_id": self.folder_id,
            "folder_name": self.folder_name,
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "message": self.message,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass
class ApplyResult:
    total: int = 0
    assigned: int = 0
    skipped: int = 0
    errors: int = 0
    items: list[ApplyItem] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "assigned": self.assigned,
            "skipped": self.skipped,
            "errors": self.errors,
            "items": [item.as_dict() for item in self.items],
        }


@dataclass(frozen=True)
class LibraryStats:
    total: int
    assigned: int
    unassigned: int
    folders: int
    rules: int
    rules_enabled: int

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "assigned": self.assigned,
            "unassigned": self.unassigned,
            "folders": self.folders,
            "rules": self.rules,
            "rules_enabled": self.rules_enabled,
        }
