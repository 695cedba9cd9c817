from datetime import date

import pytest

from storecomms.models.domain.announcement_domain import (
    HistoryFilter,
    HistoryItem,
    build_teaser,
    match_store_title,
    parse_iso_date,
    parse_teaser_due_date,
    post_status,
)


def test_teaser_encodes_metadata():
    assert (
        build_teaser("Safety", 2, date(2026, 10, 20))
        == "Category: Safety; Stores: 2; DueDate: 2026-10-20"
    )


@pytest.mark.parametrize(
    "due",
    ["2026-10-20", "2026-10-20T23:59:59.000Z", "next Friday", "20/10/2026"],
)
def test_teaser_due_date_round_trip(due):
    teaser = f"Category: Ops; Stores: 12; DueDate: {due}"

    assert parse_teaser_due_date(teaser) == due


def test_teaser_without_due_date():
    assert parse_teaser_due_date(build_teaser("Ops", 3, None)) is None
    assert parse_teaser_due_date("Category: Ops; Stores: 3") is None
    assert parse_teaser_due_date(None) is None


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Store #123", "123"),
        ("store 45", "45"),
        ("STORE#A7", "A7"),
        ("  Store # 9  ", "9"),
        ("Store #12 Annex", None),
        ("Warehouse 12", None),
        ("", None),
        (None, None),
    ],
)
def test_match_store_title(title, expected):
    assert match_store_title(title) == expected


def test_post_status():
    assert post_status({"published": "2026-01-01T00:00:00Z", "planned": None}) == "Published"
    assert post_status({"published": None, "planned": "2026-01-02T00:00:00Z"}) == "Scheduled"
    assert post_status({}) == "Draft"


def test_parse_iso_date_accepts_datetimes():
    assert parse_iso_date("2026-10-20T23:59:59.000Z") == date(2026, 10, 20)
    assert parse_iso_date("not a date") is None
    assert parse_iso_date(None) is None


def _item(**kwargs):
    defaults = {"channel_id": "c1", "title": "Safety Drill", "created_at": "2026-10-01T00:00:00Z"}
    return HistoryItem(**{**defaults, **kwargs})


def test_filter_category_is_case_insensitive():
    item = _item(department="Safety")

    assert HistoryFilter(category="safety").matches(item)
    assert not HistoryFilter(category="Marketing").matches(item)


def test_filter_due_date_range_excludes_items_without_due_date():
    in_range = _item(due_date="2026-10-20")
    no_due = _item(due_date=None)
    window = HistoryFilter(due_date_from=date(2026, 10, 1), due_date_to=date(2026, 10, 31))

    assert window.matches(in_range)
    assert not window.matches(no_due)
    assert not HistoryFilter(due_date_to=date(2026, 10, 19)).matches(in_range)
    assert not HistoryFilter(due_date_from=date(2026, 10, 21)).matches(in_range)


def test_filter_search_matches_title_or_department():
    item = _item(title="Fire Safety Drill", department="Operations")

    assert HistoryFilter(search="fire").matches(item)
    assert HistoryFilter(search="OPERA").matches(item)
    assert not HistoryFilter(search="payroll").matches(item)
