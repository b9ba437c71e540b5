from datetime import datetime, timezone

import pytest

from media_rules.conditions.author import AuthorMatcher
from media_rules.conditions.image_meta import (
    ExifCameraMatcher,
    ExifDateMatcher,
    IptcKeywordsMatcher,
    compare_dates,
    parse_date_value,
)


def _ts(*parts: int) -> int:
    return int(datetime(*parts, tzinfo=timezone.utc).timestamp())


TAKEN = _ts(2024, 6, 15, 12, 30)


# --- parse_date_value ---


def test_parse_iso_date_as_utc() -> None:
    assert parse_date_value("2024-06-15") == _ts(2024, 6, 15)
    assert parse_date_value("2024-06-15 12:30:00") == TAKEN


def test_parse_exif_style_date() -> None:
    assert parse_date_value("2024:06:15 12:30:00") == TAKEN


def test_parse_bare_year() -> None:
    assert parse_date_value("2023") == _ts(2023, 1, 1)


def test_parse_epoch_seconds() -> None:
    assert parse_date_value(str(TAKEN)) == TAKEN
    assert parse_date_value(TAKEN) == TAKEN


@pytest.mark.parametrize("value", [None, "", "yesterday-ish", True, ["2024"]])
def test_parse_rejects_garbage(value) -> None:
    assert parse_date_value(value) is None


def test_compare_dates_calendar_operators() -> None:
    assert compare_dates(TAKEN, "on", _ts(2024, 6, 15), 0)
    assert not compare_dates(TAKEN, "on", _ts(2024, 6, 16), 0)
    assert compare_dates(TAKEN, "month", _ts(2024, 6, 1), 0)
    assert compare_dates(TAKEN, "year", _ts(2024, 12, 31), 0)
    assert not compare_dates(TAKEN, "year", _ts(2023, 12, 31), 0)
    assert not compare_dates(TAKEN, "sometime", TAKEN, 0)


# --- exif_date ---


def test_exif_date_after_and_before(make_item) -> None:
    matcher = ExifDateMatcher()
    item = make_item(created=TAKEN)

    assert matcher.matches(item, {"operator": "after", "value": "2024-01-01"})
    assert not matcher.matches(item, {"operator": "before", "value": "2024-01-01"})
    assert matcher.matches(item, {"operator": "before", "value": "2025-01-01"})


def test_exif_date_on_same_day(make_item) -> None:
    matcher = ExifDateMatcher()

    assert matcher.matches(make_item(created=TAKEN), {"operator": "on", "value": "2024-06-15"})
    assert not matcher.matches(
        make_item(created=TAKEN), {"operator": "on", "value": "2024-06-14"}
    )


def test_exif_date_year_and_month(make_item) -> None:
    matcher = ExifDateMatcher()
    item = make_item(created=TAKEN)

    assert matcher.matches(item, {"operator": "year", "value": "2024"})
    assert not matcher.matches(item, {"operator": "year", "value": "2023"})
    assert matcher.matches(item, {"operator": "month", "value": "2024-06"})
    assert not matcher.matches(item, {"operator": "month", "value": "2023-06"})


def test_exif_date_between(make_item) -> None:
    matcher = ExifDateMatcher()
    params = {"operator": "between", "value": "2024-06-01", "value_end": "2024-06-30"}

    assert matcher.matches(make_item(created=TAKEN), params)
    assert not matcher.matches(make_item(created=_ts(2024, 7, 2)), params)


def test_exif_date_default_operator_is_after(make_item) -> None:
    assert ExifDateMatcher().matches(make_item(created=TAKEN), {"value": "2020-01-01"})


def test_exif_date_without_capture_time_never_matches(make_item) -> None:
    matcher = ExifDateMatcher()

    assert not matcher.matches(make_item(created=0), {"operator": "before", "value": "2030"})


def test_exif_date_unparseable_value_never_matches(make_item) -> None:
    matcher = ExifDateMatcher()

    assert not matcher.matches(make_item(created=TAKEN), {"operator": "after", "value": "soon"})
    assert not matcher.matches(make_item(created=TAKEN), {"operator": "after"})


@pytest.mark.parametrize(
    "value", ["0000", "0001-00-00", "9999-12-31T23:59:59-23:59", float("inf"), "\u00b2\u00b2"]
)
def test_exif_date_out_of_range_value_never_matches(make_item, value) -> None:
    item = make_item(created=1_600_000_000)

    assert not ExifDateMatcher().matches(item, {"operator": "year", "value": value})


def test_parse_year_zero_is_rejected() -> None:
    assert parse_date_value("0000") is None


# --- exif_camera ---


def test_exif_camera_substring_case_insensitive(make_item) -> None:
    matcher = ExifCameraMatcher()
    item = make_item(camera="Canon EOS R5")

    assert matcher.matches(item, {"value": "canon"})
    assert matcher.matches(item, {"value": "EOS r5"})
    assert not matcher.matches(item, {"value": "Nikon"})


def test_exif_camera_requires_both_sides(make_item) -> None:
    matcher = ExifCameraMatcher()

    assert not matcher.matches(make_item(camera=""), {"value": "Canon"})
    assert not matcher.matches(make_item(camera="Canon"), {"value": ""})


# --- iptc_keywords ---


def test_iptc_any_target_in_any_keyword(make_item) -> None:
    matcher = IptcKeywordsMatcher()
    item = make_item(keywords=("Summer Holiday", "Beach"))

    assert matcher.matches(item, {"value": "beach"})
    assert matcher.matches(item, {"value": "winter, holiday"})
    assert not matcher.matches(item, {"value": "winter, mountain"})


def test_iptc_ignores_empty_targets(make_item) -> None:
    matcher = IptcKeywordsMatcher()

    assert not matcher.matches(make_item(keywords=("beach",)), {"value": " , "})


def test_iptc_without_keywords_never_matches(make_item) -> None:
    assert not IptcKeywordsMatcher().matches(make_item(), {"value": "beach"})


# --- author ---


def test_author_compares_as_integers(make_item) -> None:
    matcher = AuthorMatcher()

    assert matcher.matches(make_item(author_id=5), {"value": "5"})
    assert matcher.matches(make_item(author_id=5), {"value": 5})
    assert not matcher.matches(make_item(author_id=6), {"value": "5"})


@pytest.mark.parametrize("value", [None, "", "0", 0])
def test_author_blank_value_never_matches(make_item, value) -> None:
    assert not AuthorMatcher().matches(make_item(author_id=0), {"value": value})
