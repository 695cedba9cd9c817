"""
Directory cache for resolving store identifiers to Staffbase users.

Holds one immutable snapshot built by paging the whole user directory.
The snapshot is replaced wholesale when it is older than the TTL or a
refresh is forced; readers always see a complete old or new snapshot.
"""

import asyncio
import time
from collections.abc import Callable, Iterable

from storecomms.infrastructure.observability.logging import get_logger
from storecomms.models.domain.directory_domain import DirectoryEntry, DirectorySnapshot
from storecomms.models.domain.errors import ValidationError
from storecomms.services.staffbase.client import ApiError
from storecomms.services.staffbase.pagination import paginate

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60
USERS_PATH = "/users"
PAUSE_EVERY_USERS = 1000


class DirectoryCache:
    """TTL cache of store id -> DirectoryEntry."""

    def __init__(
        self,
        client,
        attribute_key: str,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self.attribute_key = attribute_key
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot: DirectorySnapshot | None = None
        self._rebuild_lock = asyncio.Lock()
        self.rebuild_count = 0

    def _is_fresh(self, snapshot: DirectorySnapshot | None) -> bool:
        return snapshot is not None and self._clock() - snapshot.built_at < self.ttl_seconds

    async def snapshot(self, force_refresh: bool = False) -> DirectorySnapshot:
        """Return a valid snapshot, rebuilding it first when expired or forced."""
        seen = self._snapshot
        if not force_refresh and self._is_fresh(seen):
            return seen

        async with self._rebuild_lock:
            current = self._snapshot
            # Another caller rebuilt while we waited for the lock
            if current is not seen and self._is_fresh(current):
                return current
            if not force_refresh and self._is_fresh(current):
                return current

            rebuilt = await self._build()
            self._snapshot = rebuilt
            return rebuilt

    @property
    def complete(self) -> bool:
        """False when the current snapshot was cut short by a failed page fetch."""
        return self._snapshot is None or self._snapshot.complete

    async def refresh(self) -> DirectorySnapshot:
        return await self.snapshot(force_refresh=True)

    async def _build(self) -> DirectorySnapshot:
        logger.info("Refreshing directory snapshot", attribute_key=self.attribute_key)
        self.rebuild_count += 1

        entries: dict[str, DirectoryEntry] = {}
        complete = True
        scanned = 0

        try:
            async for user in paginate(self._client, USERS_PATH, pause_every=PAUSE_EVERY_USERS):
                scanned += 1
                entry = DirectoryEntry.from_user(user, self.attribute_key)
                if entry is not None:
                    entries[entry.visible_store_id] = entry
        except ApiError as e:
            # Partial snapshots are served rather than failing the request
            complete = False
            logger.error(
                "Directory page fetch failed, serving partial snapshot",
                error=str(e),
                status_code=e.status,
                users_scanned=scanned,
                entries=len(entries),
            )

        snapshot = DirectorySnapshot(entries=entries, built_at=self._clock(), complete=complete)
        logger.info(
            "Directory snapshot loaded",
            entries=len(snapshot),
            users_scanned=scanned,
            complete=complete,
        )
        return snapshot

    async def resolve(self, store_id: str) -> DirectoryEntry | None:
        snapshot = await self.snapshot()
        return snapshot.get(store_id)

    async def resolve_all(
        self, store_ids: Iterable[str | int]
    ) -> tuple[list[DirectoryEntry], list[str]]:
        """
        Partition store ids into resolved entries and unknown ids.

        Every input id lands in exactly one of the two lists, in input order.

        Raises:
            ValidationError: If an identifier is not a string or number
        """
        normalized = [_normalize_store_id(store_id) for store_id in store_ids]
        snapshot = await self.snapshot()

        found: list[DirectoryEntry] = []
        not_found: list[str] = []
        for store_id in normalized:
            entry = snapshot.get(store_id)
            if entry is not None:
                found.append(entry)
            else:
                not_found.append(store_id)

        logger.info(
            "Store ids resolved",
            requested=len(normalized),
            found=len(found),
            not_found=len(not_found),
        )
        return found, not_found


def _normalize_store_id(store_id) -> str:
    if isinstance(store_id, bool) or not isinstance(store_id, (str, int)):
        raise ValidationError(f"Invalid store id: {store_id!r}", field="storeIds")
    return str(store_id).strip()
