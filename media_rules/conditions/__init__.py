from media_rules.conditions.author import AuthorMatcher
from media_rules.conditions.base import IConditionMatcher
from media_rules.conditions.filename import FilenameRegexMatcher
from media_rules.conditions.image_meta import (
    ExifCameraMatcher,
    ExifDateMatcher,
    IptcKeywordsMatcher,
)
from media_rules.conditions.mime import MimeTypeMatcher
from media_rules.conditions.numeric import DimensionsMatcher, FileSizeMatcher
from media_rules.conditions.registry import MatcherRegistry


def default_matchers() -> list[IConditionMatcher]:
    return [
        FilenameRegexMatcher(),
        MimeTypeMatcher(),
        DimensionsMatcher(),
        FileSizeMatcher(),
        ExifCameraMatcher(),
        ExifDateMatcher(),
        AuthorMatcher(),
        IptcKeywordsMatcher(),
    ]


__all__ = [
    "AuthorMatcher",
    "DimensionsMatcher",
    "ExifCameraMatcher",
    "ExifDateMatcher",
    "FileSizeMatcher",
    "FilenameRegexMatcher",
    "IConditionMatcher",
    "IptcKeywordsMatcher",
    "MatcherRegistry",
    "MimeTypeMatcher",
    "default_matchers",
]
