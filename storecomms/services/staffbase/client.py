"""
Staffbase API client.
Every outbound call to the platform goes through this gate: credentials,
JSON headers, retry on rate limiting and transport errors, and uniform
ApiError surfacing.
"""

import asyncio
import time
from typing import Any

import httpx

from storecomms.infrastructure.observability.logging import get_logger, log_staffbase_call

logger = get_logger(__name__)

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 30  # seconds
MAX_ATTEMPTS = 3
RATE_LIMIT_BACKOFF = 2.0  # seconds
TRANSPORT_BACKOFF = 1.0  # seconds

CSV_IMPORT_PATH = "/users/imports"


class ApiError(Exception):
    """Raised when the Staffbase API rejects a request or cannot be reached."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: str = "",
        method: str | None = None,
        path: str | None = None,
        timeout: bool = False,
    ):
        super().__init__(message)
        self.status = status
        self.body = body
        self.method = method
        self.path = path
        self.timeout = timeout


class StaffbaseClient:
    """
    Async client for the Staffbase REST API.

    One instance is created at startup and shared by all services.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        auth_scheme: str = "Basic",
        timeout: float = REQUEST_TIMEOUT,
        max_attempts: int = MAX_ATTEMPTS,
        rate_limit_backoff: float = RATE_LIMIT_BACKOFF,
        transport_backoff: float = TRANSPORT_BACKOFF,
    ):
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._auth_scheme = auth_scheme
        self.max_attempts = max_attempts
        self.rate_limit_backoff = rate_limit_backoff
        self.transport_backoff = transport_backoff
        self._client = self._create_client(timeout)

    def _create_client(self, timeout: float) -> httpx.AsyncClient:
        """Create async HTTP client for the Staffbase API."""
        limits = httpx.Limits(max_keepalive_connections=20, max_connections=50)
        return httpx.AsyncClient(
            base_url=self.base_url, timeout=httpx.Timeout(timeout), limits=limits
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"{self._auth_scheme} {self._token}"}

    def _json_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            **self._auth_headers(),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Execute an API call and return the decoded JSON payload.

        Args:
            method: HTTP method
            path: API path relative to the base URL
            body: JSON body (optional)
            params: Query parameters (optional)
            headers: Extra headers merged over the defaults (optional)

        Returns:
            Parsed JSON, or an empty dict for 204/empty responses

        Raises:
            ApiError: On non-2xx responses or when retries are exhausted
        """
        request_headers = self._json_headers(headers)

        for attempt in range(1, self.max_attempts + 1):
            start_time = time.perf_counter()
            try:
                response = await self._client.request(
                    method, path, json=body, params=params, headers=request_headers
                )
            except httpx.RequestError as e:
                logger.warning(
                    "Staffbase request error",
                    method=method,
                    path=path,
                    attempt=attempt,
                    error=str(e),
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.transport_backoff)
                continue

            log_staffbase_call(
                method,
                path,
                response.status_code,
                attempt,
                round((time.perf_counter() - start_time) * 1000, 2),
            )

            if response.status_code == 429:
                logger.warning(
                    "Staffbase rate limit hit",
                    method=method,
                    path=path,
                    attempt=attempt,
                    backoff_seconds=self.rate_limit_backoff,
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.rate_limit_backoff)
                continue

            return self._handle_response(response, method, path)

        logger.error(
            "Staffbase request gave up after retries",
            method=method,
            path=path,
            attempts=self.max_attempts,
        )
        raise ApiError(
            f"API timeout after {self.max_attempts} attempts: {method} {path}",
            method=method,
            path=path,
            timeout=True,
        )

    def _handle_response(self, response: httpx.Response, method: str, path: str) -> Any:
        if not response.is_success:
            text = response.text or ""
            logger.error(
                "Staffbase API call failed",
                method=method,
                path=path,
                status_code=response.status_code,
                response_text=text[:500],
            )
            raise ApiError(
                f"API {response.status_code}: {text}",
                status=response.status_code,
                body=text,
                method=method,
                path=path,
            )

        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "Failed to parse Staffbase response",
                method=method,
                path=path,
                error=str(e),
            )
            raise ApiError(
                f"Invalid response format: {e}",
                status=response.status_code,
                body=response.text,
                method=method,
                path=path,
            ) from e

    async def upload_csv(self, csv_content: str, filename: str = "import.csv") -> dict[str, Any]:
        """
        Upload CSV bytes to create a user import.

        The import endpoint expects a multipart file upload, so this bypasses
        the JSON helper.

        Returns:
            dict: Response body plus ``importId`` taken from the Location
            header, falling back to the body's ``id``
        """
        files = {"file": (filename, csv_content.encode("utf-8"), "text/csv")}

        try:
            response = await self._client.post(
                CSV_IMPORT_PATH, files=files, headers=self._auth_headers()
            )
        except httpx.RequestError as e:
            logger.error("CSV upload request error", path=CSV_IMPORT_PATH, error=str(e))
            raise ApiError(
                f"CSV upload failed: {e}", method="POST", path=CSV_IMPORT_PATH, timeout=True
            ) from e

        if not response.is_success:
            logger.error(
                "CSV upload failed",
                path=CSV_IMPORT_PATH,
                status_code=response.status_code,
                response_text=(response.text or "")[:500],
            )
            raise ApiError(
                f"CSV Upload failed: {response.status_code} - {response.text}",
                status=response.status_code,
                body=response.text or "",
                method="POST",
                path=CSV_IMPORT_PATH,
            )

        location = response.headers.get("location")
        import_id = location.rstrip("/").split("/")[-1] if location else None

        data: dict[str, Any] = {}
        if response.content:
            try:
                parsed = response.json()
                if isinstance(parsed, dict):
                    data = parsed
            except ValueError:
                logger.debug("CSV upload response is not JSON", status_code=response.status_code)

        return {**data, "importId": import_id or data.get("id")}
