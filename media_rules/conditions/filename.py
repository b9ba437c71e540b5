"""Filename matching: user regex first, shell-style glob as a fallback."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Any, Mapping, Optional

from media_rules.conditions.base import IConditionMatcher, is_blank
from media_rules.models import ItemMetadata
from media_rules.rules.models import ConditionType

_GLOB_CHARS = ("*", "?")


def compile_user_regex(raw: str) -> Optional[re.Pattern[str]]:
    """Compile ``raw`` as a case-insensitive regex, or None if it is invalid."""
    body = raw.replace("/", r"\/")
    try:
        return re.compile(body, re.IGNORECASE)
    except (re.error, OverflowError, RecursionError):
        return None


def looks_like_glob(raw: str) -> bool:
    return any(char in raw for char in _GLOB_CHARS)


def glob_to_regex(raw: str) -> re.Pattern[str]:
    """Translate ``*`` and ``?`` into regex wildcards, everything else literal."""
    body = re.escape(raw).replace(r"\*", ".*").replace(r"\?", ".")
    return re.compile(body, re.IGNORECASE)


def basename(filename: str) -> str:
    return PurePosixPath(filename.replace("\\", "/")).name


class FilenameRegexMatcher(IConditionMatcher):
    @property
    def condition_type(self) -> str:
        return ConditionType.FILENAME_REGEX.value

    def matches(self, item: ItemMetadata, params: Mapping[str, Any]) -> bool:
        value = params.get("value")
        if is_blank(value):
            return False
        name = basename(item.filename)
        if not name:
            return False

        raw = str(value).strip()
        pattern = compile_user_regex(raw)
        if pattern is not None:
            return pattern.search(name) is not None

        if looks_like_glob(raw):
            return glob_to_regex(raw).search(name) is not None
        return False
