"""Matchers over embedded image metadata (EXIF camera/date, IPTC keywords)."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from media_rules.conditions.base import IConditionMatcher, is_blank
from media_rules.models import ItemMetadata
from media_rules.rules.models import ConditionType, DateOperator

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d",
    "%Y:%m:%d %H:%M:%S",
    "%Y-%m",
)


def parse_date_value(value: Any) -> Optional[int]:
    """Parse a condition date into a UTC epoch, or None.

    Naive values are read as UTC. A bare four digit year means January 1st
    of that year; longer digit strings are taken as epoch seconds.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.isascii() and text.isdigit():
        try:
            if len(text) != 4:
                return int(text)
            return _epoch(datetime(int(text), 1, 1))
        except (ValueError, OverflowError, OSError):
            return None

    try:
        return _epoch(datetime.fromisoformat(text))
    except (ValueError, OverflowError, OSError):
        pass
    for fmt in DATE_FORMATS:
        try:
            return _epoch(datetime.strptime(text, fmt))
        except (ValueError, OverflowError, OSError):
            continue
    return None


def _epoch(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def _utc(timestamp: int, fmt: str) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(fmt)


def compare_dates(actual: int, operator: str, value: int, value_end: int) -> bool:
    if operator == DateOperator.AFTER.value:
        return actual > value
    if operator == DateOperator.BEFORE.value:
        return actual < value
    if operator == DateOperator.ON.value:
        return _utc(actual, "%Y-%m-%d") == _utc(value, "%Y-%m-%d")
    if operator == DateOperator.BETWEEN.value:
        return value <= actual <= value_end
    if operator == DateOperator.YEAR.value:
        return _utc(actual, "%Y") == _utc(value, "%Y")
    if operator == DateOperator.MONTH.value:
        return _utc(actual, "%Y-%m") == _utc(value, "%Y-%m")
    return False


class ExifCameraMatcher(IConditionMatcher):
    @property
    def condition_type(self) -> str:
        return ConditionType.EXIF_CAMERA.value

    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        value = params.get("value")
        camera = item.image_meta.camera
        if is_blank(value) or not camera:
            return False
        return str(value).lower() in camera.lower()


class ExifDateMatcher(IConditionMatcher):
    @property
    def condition_type(self) -> str:
        return ConditionType.EXIF_DATE.value

    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        if is_blank(params.get("value")):
            return False

        created = item.image_meta.created_timestamp
        if not created:
            return False

        value = parse_date_value(params.get("value"))
        if value is None:
            return False
        value_end = 0
        if not is_blank(params.get("value_end")):
            value_end = parse_date_value(params.get("value_end")) or 0

        operator = params.get("operator") or DateOperator.AFTER.value
        try:
            return compare_dates(created, operator, value, value_end)
        except (OverflowError, OSError, ValueError):
            return False


class IptcKeywordsMatcher(IConditionMatcher):
    @property
    def condition_type(self) -> str:
        return ConditionType.IPTC_KEYWORDS.value

    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        value = params.get("value")
        keywords = [keyword.lower() for keyword in item.image_meta.keywords]
        if is_blank(value) or not keywords:
            return False

        targets = [target.strip() for target in str(value).lower().split(",")]
        for target in targets:
            if not target:
                continue
            if any(target in keyword for keyword in keywords):
                return True
        return False
