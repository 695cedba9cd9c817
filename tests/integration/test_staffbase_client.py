import httpx
import pytest
from structlog.testing import capture_logs

from storecomms.services.staffbase.client import ApiError, StaffbaseClient

BASE_URL = "https://staffbase.test/api"


def _client(**kwargs) -> StaffbaseClient:
    return StaffbaseClient(
        BASE_URL, "secret-token", rate_limit_backoff=0, transport_backoff=0, **kwargs
    )


@pytest.mark.asyncio
async def test_call_sends_credentials_and_parses_json(httpx_mock):
    httpx_mock.add_response(
        method="POST",
        url=f"{BASE_URL}/channels/chan-1/posts",
        json={"id": "post-1"},
    )
    client = _client()

    result = await client.call("POST", "/channels/chan-1/posts", {"contents": {}})
    await client.close()

    assert result == {"id": "post-1"}
    request = httpx_mock.get_requests()[0]
    assert request.headers["Authorization"] == "Basic secret-token"
    assert request.headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_call_passes_query_params_and_extra_headers(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=f"{BASE_URL}/users?limit=100&offset=0",
        json={"data": []},
    )
    client = _client()

    await client.call(
        "GET", "/users", params={"limit": 100, "offset": 0}, headers={"Accept": "application/x-test"}
    )
    await client.close()

    assert httpx_mock.get_requests()[0].headers["Accept"] == "application/x-test"


@pytest.mark.asyncio
async def test_no_content_returns_empty_result(httpx_mock):
    httpx_mock.add_response(method="DELETE", url=f"{BASE_URL}/installations/chan-1", status_code=204)
    client = _client()

    result = await client.call("DELETE", "/installations/chan-1")
    await client.close()

    assert result == {}


@pytest.mark.asyncio
async def test_rate_limit_is_retried(httpx_mock):
    url = f"{BASE_URL}/tasks/proj-1/lists"
    httpx_mock.add_response(method="POST", url=url, status_code=429)
    httpx_mock.add_response(method="POST", url=url, json={"id": "list-1"})
    client = _client()

    result = await client.call("POST", "/tasks/proj-1/lists", {"name": "Drill"})
    await client.close()

    assert result == {"id": "list-1"}
    assert len(httpx_mock.get_requests()) == 2


@pytest.mark.asyncio
async def test_each_attempt_is_logged_with_status(httpx_mock):
    url = f"{BASE_URL}/tasks/proj-1/lists"
    httpx_mock.add_response(method="POST", url=url, status_code=429)
    httpx_mock.add_response(method="POST", url=url, json={"id": "list-1"})
    client = _client()

    with capture_logs() as logs:
        await client.call("POST", "/tasks/proj-1/lists", {"name": "Drill"})
    await client.close()

    attempts = [entry for entry in logs if entry["event"].startswith("Staffbase call")]
    assert [(e["status_code"], e["attempt"], e["log_level"]) for e in attempts] == [
        (429, 1, "warning"),
        (200, 2, "debug"),
    ]
    assert all(e["path"] == "/tasks/proj-1/lists" for e in attempts)


@pytest.mark.asyncio
async def test_rate_limit_exhausts_attempts(httpx_mock):
    url = f"{BASE_URL}/users/search"
    for _ in range(3):
        httpx_mock.add_response(method="GET", url=url, status_code=429)
    client = _client()

    with pytest.raises(ApiError) as exc:
        await client.call("GET", "/users/search")
    await client.close()

    assert exc.value.timeout is True
    assert len(httpx_mock.get_requests()) == 3


@pytest.mark.asyncio
async def test_other_errors_are_not_retried(httpx_mock):
    httpx_mock.add_response(
        method="POST",
        url=f"{BASE_URL}/spaces/space-1/installations",
        status_code=400,
        text="pluginID missing",
    )
    client = _client()

    with pytest.raises(ApiError) as exc:
        await client.call("POST", "/spaces/space-1/installations", {})
    await client.close()

    assert exc.value.status == 400
    assert exc.value.body == "pluginID missing"
    assert exc.value.timeout is False
    assert len(httpx_mock.get_requests()) == 1


@pytest.mark.asyncio
async def test_transport_errors_are_retried(httpx_mock):
    url = f"{BASE_URL}/users/u-1"
    httpx_mock.add_exception(httpx.ConnectError("connection refused"), method="GET", url=url)
    httpx_mock.add_response(method="GET", url=url, json={"id": "u-1"})
    client = _client()

    result = await client.call("GET", "/users/u-1")
    await client.close()

    assert result == {"id": "u-1"}


@pytest.mark.asyncio
async def test_transport_errors_exhaust_attempts(httpx_mock):
    url = f"{BASE_URL}/users/u-1"
    for _ in range(3):
        httpx_mock.add_exception(httpx.ReadTimeout("slow"), method="GET", url=url)
    client = _client()

    with pytest.raises(ApiError) as exc:
        await client.call("GET", "/users/u-1")
    await client.close()

    assert exc.value.timeout is True
    assert exc.value.status is None


@pytest.mark.asyncio
async def test_upload_csv_reads_import_id_from_location(httpx_mock):
    httpx_mock.add_response(
        method="POST",
        url=f"{BASE_URL}/users/imports",
        status_code=201,
        headers={"Location": f"{BASE_URL}/users/imports/imp-42"},
    )
    client = _client()

    result = await client.upload_csv("storeid,region\n100,North", "merge.csv")
    await client.close()

    assert result["importId"] == "imp-42"
    request = httpx_mock.get_requests()[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    body = request.read()
    assert b'filename="merge.csv"' in body
    assert b"storeid,region\n100,North" in body


@pytest.mark.asyncio
async def test_upload_csv_falls_back_to_body_id(httpx_mock):
    httpx_mock.add_response(
        method="POST", url=f"{BASE_URL}/users/imports", json={"id": "imp-7", "state": "UPLOADED"}
    )
    client = _client()

    result = await client.upload_csv("storeid\n100")
    await client.close()

    assert result["importId"] == "imp-7"
    assert result["state"] == "UPLOADED"


@pytest.mark.asyncio
async def test_upload_csv_failure(httpx_mock):
    httpx_mock.add_response(
        method="POST", url=f"{BASE_URL}/users/imports", status_code=413, text="too large"
    )
    client = _client()

    with pytest.raises(ApiError) as exc:
        await client.upload_csv("storeid\n100")
    await client.close()

    assert exc.value.status == 413
