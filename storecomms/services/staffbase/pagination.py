"""Offset pagination over Staffbase list endpoints."""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

PAGE_SIZE = 100


async def paginate(
    client,
    path: str,
    page_size: int = PAGE_SIZE,
    params: dict[str, Any] | None = None,
    pause_every: int | None = None,
    pause_seconds: float = 0.2,
) -> AsyncIterator[dict]:
    """
    Yield every item of a ``{"data": [...]}`` list endpoint.

    Stops on an empty page or a page shorter than ``page_size``. When
    ``pause_every`` is set, sleeps ``pause_seconds`` each time the offset
    crosses a multiple of it.
    """
    offset = 0
    while True:
        page_params = {**(params or {}), "limit": page_size, "offset": offset}
        result = await client.call("GET", path, params=page_params)
        items = (result or {}).get("data") or []
        if not items:
            return

        for item in items:
            yield item

        if len(items) < page_size:
            return
        offset += page_size

        if pause_every and offset % pause_every == 0:
            await asyncio.sleep(pause_seconds)
