from datetime import date

import pytest

from storecomms.models.domain.announcement_domain import HistoryFilter
from storecomms.services.directory_cache import DirectoryCache
from storecomms.services.history_service import HistoryService
from storecomms.services.staffbase.client import ApiError

SPACE = "space-1"
INSTALLATIONS = f"/spaces/{SPACE}/installations"
STUDIO = "https://studio.example.com"


def _channel(channel_id, title, created_at, accessors, plugin="news"):
    return {
        "id": channel_id,
        "pluginID": plugin,
        "createdAt": created_at,
        "accessorIDs": accessors,
        "config": {"localization": {"en_US": {"title": title}}},
    }


def _post(post_id, title, kicker, teaser, published=None, planned=None):
    return {
        "data": [
            {
                "id": post_id,
                "published": published,
                "planned": planned,
                "contents": {"en_US": {"title": title, "kicker": kicker, "teaser": teaser}},
            }
        ]
    }


@pytest.fixture
def history(fake_staffbase, fake_clock, user_factory):
    fake_staffbase.paged("/users", [user_factory("user-100", "100"), user_factory("user-200", "200")])
    fake_staffbase.paged(
        INSTALLATIONS,
        [
            _channel("chan-old", "Safety - 10/1/2026", "2026-10-01T08:00:00Z", ["user-100"]),
            _channel("chan-new", "Ops - 10/15/2026", "2026-10-15T08:00:00Z", ["user-100", "user-200"]),
            _channel("proj-100", "Store #100", "2026-01-01T00:00:00Z", ["user-100"], plugin="tasks"),
            _channel("chan-bare", "Marketing - 10/10/2026", "2026-10-10T08:00:00Z", ["user-200"]),
        ],
    )
    fake_staffbase.on(
        "GET",
        "/channels/chan-old/posts",
        _post(
            "post-old",
            "Fire Drill",
            "Safety",
            "Category: Safety; Stores: 1; DueDate: 2026-10-05",
            published="2026-10-01T09:00:00Z",
        ),
    )
    fake_staffbase.on(
        "GET",
        "/channels/chan-new/posts",
        _post(
            "post-new",
            "Inventory Count",
            "Operations",
            "Category: Operations; Stores: 2; DueDate: 2026-10-30",
            planned="2026-10-20T09:00:00Z",
        ),
    )
    fake_staffbase.on("GET", "/channels/chan-bare/posts", ApiError("API 500: boom", status=500))

    directory = DirectoryCache(fake_staffbase, "storeid", clock=fake_clock)
    return HistoryService(fake_staffbase, directory, space_id=SPACE, studio_url=STUDIO)


@pytest.mark.asyncio
async def test_lists_news_channels_newest_first(history):
    items = await history.list_items(HistoryFilter())

    assert [item.channel_id for item in items] == ["chan-new", "chan-bare", "chan-old"]

    newest = items[0]
    assert newest.post_id == "post-new"
    assert newest.title == "Inventory Count"
    assert newest.department == "Operations"
    assert newest.due_date == "2026-10-30"
    assert newest.status == "Scheduled"
    assert newest.user_count == 2
    assert newest.edit_url == f"{STUDIO}/studio/channels/chan-new/posts/post-new/edit"

    assert items[2].status == "Published"


@pytest.mark.asyncio
async def test_post_fetch_failure_keeps_draft_defaults(history):
    items = await history.list_items(HistoryFilter())
    bare = next(item for item in items if item.channel_id == "chan-bare")

    assert bare.post_id is None
    assert bare.title == "Marketing - 10/10/2026"
    assert bare.department == "Uncategorized"
    assert bare.status == "Draft"
    assert bare.edit_url is None


@pytest.mark.asyncio
async def test_store_filter_uses_channel_accessors(history, fake_staffbase):
    items = await history.list_items(HistoryFilter(store_id="200"))

    assert [item.channel_id for item in items] == ["chan-new", "chan-bare"]


@pytest.mark.asyncio
async def test_unknown_store_returns_empty(history, fake_staffbase):
    items = await history.list_items(HistoryFilter(store_id="999"))

    assert items == []
    assert fake_staffbase.calls_to("GET", INSTALLATIONS) == []


@pytest.mark.asyncio
async def test_filters_apply_after_decoding(history):
    by_category = await history.list_items(HistoryFilter(category="safety"))
    by_search = await history.list_items(HistoryFilter(search="inventory"))
    by_due = await history.list_items(
        HistoryFilter(due_date_from=date(2026, 10, 1), due_date_to=date(2026, 10, 10))
    )

    assert [item.channel_id for item in by_category] == ["chan-old"]
    assert [item.channel_id for item in by_search] == ["chan-new"]
    assert [item.channel_id for item in by_due] == ["chan-old"]


@pytest.mark.asyncio
async def test_total_failure_returns_empty_list(fake_staffbase, fake_clock):
    fake_staffbase.on("GET", INSTALLATIONS, ApiError("API 503: down", status=503))
    directory = DirectoryCache(fake_staffbase, "storeid", clock=fake_clock)
    service = HistoryService(fake_staffbase, directory, space_id=SPACE)

    assert await service.list_items(HistoryFilter()) == []
