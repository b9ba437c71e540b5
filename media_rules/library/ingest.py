"""Build library records from files on disk."""

from __future__ import annotations

import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

import exifread

from media_rules.utils import absint

logger = logging.getLogger(__name__)

# EXIF tags checked in priority order
EXIF_DATE_TAGS = [
    "EXIF DateTimeOriginal",
    "EXIF DateTimeDigitized",
    "Image DateTime",
]

EXIF_WIDTH_TAGS = ["EXIF ExifImageWidth", "Image ImageWidth"]
EXIF_HEIGHT_TAGS = ["EXIF ExifImageLength", "Image ImageLength"]

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


def _parse_exif_date(raw_value: str) -> Optional[int]:
    """Parse an EXIF date string as UTC, returning None if invalid or zeroed."""
    try:
        dt = datetime.strptime(raw_value.strip(), EXIF_DATE_FORMAT)
    except (ValueError, AttributeError):
        return None
    # Guard against cameras writing zeroed dates
    if dt.year < 1970:
        return None
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


def _first_int(tags: dict[str, Any], names: list[str]) -> Optional[int]:
    for name in names:
        if name in tags:
            value = absint(str(tags[name]))
            if value:
                return value
    return None


def read_exif_tags(file_path: Path) -> dict[str, Any]:
    """All EXIF tags exifread can find, or an empty dict for unreadable files."""
    try:
        with open(file_path, "rb") as handle:
            return exifread.process_file(handle, details=False)
    except Exception as exc:
        logger.debug("No EXIF data in %s: %s", file_path, exc)
        return {}


def camera_from_tags(tags: dict[str, Any]) -> str:
    make = str(tags.get("Image Make", "")).strip()
    model = str(tags.get("Image Model", "")).strip()
    if make and model.lower().startswith(make.lower()):
        return model
    return " ".join(part for part in (make, model) if part)


def created_from_tags(tags: dict[str, Any]) -> int:
    for tag_name in EXIF_DATE_TAGS:
        if tag_name in tags:
            created = _parse_exif_date(str(tags[tag_name]))
            if created is not None:
                return created
    return 0


def read_item_metadata(
    file_path: Path,
    author_id: int = 0,
    keywords: Iterable[str] = (),
    title: Optional[str] = None,
) -> dict[str, Any]:
    """Return a library record (without id) describing ``file_path``."""
    mime_type, _ = mimetypes.guess_type(file_path.name)
    mime_type = mime_type or "application/octet-stream"

    tags: dict[str, Any] = {}
    if mime_type.startswith("image/"):
        tags = read_exif_tags(file_path)

    return {
        "filename": file_path.name,
        "title": title if title is not None else file_path.stem,
        "mime_type": mime_type,
        "author_id": author_id,
        "filesize": file_path.stat().st_size,
        "width": _first_int(tags, EXIF_WIDTH_TAGS),
        "height": _first_int(tags, EXIF_HEIGHT_TAGS),
        "thumbnail": str(file_path.resolve()),
        "image_meta": {
            "camera": camera_from_tags(tags),
            "created_timestamp": created_from_tags(tags),
            "keywords": [keyword.strip() for keyword in keywords if keyword.strip()],
        },
    }
