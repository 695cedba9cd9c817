"""
Announcement history.

Rebuilds the list of past announcements from the news installations in
the space and the most recent post of each. Nothing is cached; per-item
failures degrade to draft defaults and the query itself never raises.
"""

from datetime import UTC, datetime

from storecomms.infrastructure.observability.logging import get_logger
from storecomms.models.domain.announcement_domain import (
    NEWS_PLUGIN_ID,
    HistoryFilter,
    HistoryItem,
    installation_title,
    parse_teaser_due_date,
    post_status,
)
from storecomms.services.staffbase.pagination import paginate

logger = get_logger(__name__)

UNTITLED = "Untitled"


def _created_sort_key(item: HistoryItem) -> datetime:
    try:
        parsed = datetime.fromisoformat(item.created_at.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.min.replace(tzinfo=UTC)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class HistoryService:
    """Lists announcements with optional store, category, due date and text filters."""

    def __init__(self, client, directory, space_id: str, studio_url: str | None = None):
        self._client = client
        self._directory = directory
        self.space_id = space_id
        self.studio_url = studio_url.rstrip("/") if studio_url else None

    async def list_items(self, filters: HistoryFilter) -> list[HistoryItem]:
        try:
            return await self._list_items(filters)
        except Exception as e:
            logger.error("Failed to list announcements", error=str(e))
            return []

    async def _list_items(self, filters: HistoryFilter) -> list[HistoryItem]:
        target_user_id = None
        if filters.store_id:
            entry = await self._directory.resolve(filters.store_id)
            if entry is None:
                logger.info("History store id not found", store_id=filters.store_id)
                return []
            target_user_id = entry.platform_user_id

        items: list[HistoryItem] = []
        async for installation in paginate(self._client, f"/spaces/{self.space_id}/installations"):
            if installation.get("pluginID") != NEWS_PLUGIN_ID:
                continue

            accessor_ids = installation.get("accessorIDs") or []
            if target_user_id and target_user_id not in accessor_ids:
                continue

            item = await self._build_item(installation, accessor_ids)
            if filters.matches(item):
                items.append(item)

        items.sort(key=_created_sort_key, reverse=True)
        logger.info("Announcements listed", count=len(items))
        return items

    async def _build_item(self, installation: dict, accessor_ids: list[str]) -> HistoryItem:
        item = HistoryItem(
            channel_id=installation["id"],
            title=installation_title(installation) or UNTITLED,
            created_at=(
                installation.get("createdAt")
                or installation.get("created")
                or datetime.now(UTC).isoformat()
            ),
            user_count=len(accessor_ids),
        )

        try:
            posts = await self._client.call(
                "GET", f"/channels/{item.channel_id}/posts", params={"limit": 1}
            )
        except Exception as e:
            logger.warning("Failed to fetch latest post", channel_id=item.channel_id, error=str(e))
            return item

        data = (posts or {}).get("data") or []
        if not data:
            return item

        post = data[0]
        contents = (post.get("contents") or {}).get("en_US") or {}

        item.post_id = post.get("id")
        item.title = contents.get("title") or item.title
        kicker = (contents.get("kicker") or "").strip()
        if kicker:
            item.department = kicker
        item.due_date = parse_teaser_due_date(contents.get("teaser"))
        item.status = post_status(post)

        if self.studio_url and item.post_id:
            item.edit_url = (
                f"{self.studio_url}/studio/channels/{item.channel_id}/posts/{item.post_id}/edit"
            )

        return item
