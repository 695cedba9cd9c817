import asyncio
from dataclasses import dataclass

import pytest

from storecomms.services.staffbase.client import ApiError


@dataclass
class RecordedCall:
    method: str
    path: str
    body: object = None
    params: dict | None = None
    headers: dict | None = None


class FakeStaffbase:
    """In-memory stand-in for StaffbaseClient keyed by (method, path)."""

    def __init__(self):
        self.routes: dict[tuple[str, str], object] = {}
        self.calls: list[RecordedCall] = []
        self.uploads: list[str] = []
        self.upload_result: dict = {"importId": "imp-1"}
        self.in_flight = 0
        self.peak_in_flight = 0

    def on(self, method: str, path: str, response=None):
        """Register a static response, an exception, or a callable(call) -> response."""
        self.routes[(method, path)] = response

    def on_sequence(self, method: str, path: str, responses: list):
        """Serve responses in order, repeating the last one."""
        remaining = list(responses)

        def _next(call):
            return remaining.pop(0) if len(remaining) > 1 else remaining[0]

        self.routes[(method, path)] = _next

    def paged(self, path: str, items: list, fail_at_offset: int | None = None):
        """Serve ``items`` through limit/offset pagination."""

        def _page(call):
            offset = call.params["offset"]
            if fail_at_offset is not None and offset >= fail_at_offset:
                return ApiError("API 500: boom", status=500, body="boom")
            limit = call.params["limit"]
            return {"data": items[offset : offset + limit]}

        self.routes[("GET", path)] = _page

    async def call(self, method, path, body=None, *, params=None, headers=None):
        call = RecordedCall(method, path, body, params, headers)
        self.calls.append(call)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            # let concurrent callers interleave like real I/O
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

        if (method, path) not in self.routes:
            raise ApiError(f"API 404: {method} {path}", status=404, body="not found")

        response = self.routes[(method, path)]
        if callable(response) and not isinstance(response, Exception):
            response = response(call)
        if isinstance(response, Exception):
            raise response
        return response

    async def upload_csv(self, csv_content, filename="import.csv"):
        self.uploads.append(csv_content)
        if isinstance(self.upload_result, Exception):
            raise self.upload_result
        return self.upload_result

    def calls_to(self, method: str, path: str) -> list[RecordedCall]:
        return [c for c in self.calls if c.method == method and c.path == path]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_user(user_id: str, store_id: str | None, first: str = "Store", last: str = "") -> dict:
    profile = {"storeid": store_id} if store_id is not None else {}
    return {
        "id": user_id,
        "externalId": f"ext-{user_id}",
        "firstName": first,
        "lastName": last or (store_id or ""),
        "profile": profile,
    }


@pytest.fixture
def fake_staffbase():
    return FakeStaffbase()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def user_factory():
    return make_user
