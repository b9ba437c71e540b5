import pytest

from media_rules.conditions import default_matchers

MALFORMED_PARAMS = [
    {},
    {"value": None},
    {"value": "0000", "operator": "year"},
    {"value": "0001-00-00", "operator": "on"},
    {"value": 10**30, "operator": "month"},
    {"value": float("nan"), "operator": "between", "value_end": float("inf")},
    {"value": "a{99999999999}"},
    {"value": "(" * 5000},
    {"value": ["image/*"], "operator": ["gt"]},
    {"value": {"nested": True}, "dimension": {"both": 1}},
    {"value": "2024-01-01", "value_end": "garbage"},
    {"value": "100", "value_end": "50", "operator": "gt", "dimension": "width"},
    {"value": -5, "operator": "between", "value_end": "x", "dimension": "unknown"},
    {"value": True, "operator": 42},
    {"value": "\u00b2\u00b2\u00b2\u00b2"},
    {"value": "9" * 5000, "operator": "on"},
]


@pytest.fixture
def odd_items(make_item):
    return [
        make_item(),
        make_item(filename="", mime_type="", created=10**20, width=0, height=0, filesize=0),
        make_item(
            filename="C:\\uploads\\IMG_1.JPG",
            camera="Canon",
            created=-1,
            keywords=("", "beach"),
            width=10**12,
            height=1,
            filesize=10**15,
            author_id=7,
        ),
    ]


@pytest.mark.parametrize("matcher", default_matchers(), ids=lambda matcher: matcher.condition_type)
@pytest.mark.parametrize("params", MALFORMED_PARAMS)
def test_matchers_return_bool_for_malformed_input(matcher, params, odd_items) -> None:
    for item in odd_items:
        assert matcher.matches(item, params) in (True, False)
