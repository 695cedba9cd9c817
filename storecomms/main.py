"""
Store communications service.
Wires the Staffbase client, directory cache and services into the FastAPI app.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from storecomms.config import Settings, settings
from storecomms.infrastructure.observability.logging import get_logger, log_request, setup_logging
from storecomms.routes import announcements, directory, health, user_import
from storecomms.services.announcement_service import AnnouncementService
from storecomms.services.directory_cache import DirectoryCache
from storecomms.services.history_service import HistoryService
from storecomms.services.staffbase.client import StaffbaseClient
from storecomms.services.user_import_service import UserImportService

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


def build_services(app: FastAPI, config: Settings) -> StaffbaseClient:
    """Construct the shared client, cache and services on ``app.state``."""
    client = StaffbaseClient(
        base_url=config.STAFFBASE_BASE_URL,
        token=config.STAFFBASE_TOKEN,
        auth_scheme=config.STAFFBASE_AUTH_SCHEME,
        timeout=config.REQUEST_TIMEOUT_SECONDS,
    )
    directory_cache = DirectoryCache(
        client,
        attribute_key=config.HIDDEN_ATTRIBUTE_KEY,
        ttl_seconds=config.DIRECTORY_CACHE_TTL_SECONDS,
    )

    app.state.settings = config
    app.state.staffbase_client = client
    app.state.directory_cache = directory_cache
    app.state.user_import_service = UserImportService(
        client, identifier_field=config.HIDDEN_ATTRIBUTE_KEY
    )
    app.state.announcement_service = AnnouncementService(
        client,
        space_id=config.STAFFBASE_SPACE_ID,
        fixed_ops_ids=config.fixed_ops_ids(),
        ops_group_id=config.OPS_GROUP_ID,
        timezone=config.local_tz(),
    )
    app.state.history_service = HistoryService(
        client,
        directory_cache,
        space_id=config.STAFFBASE_SPACE_ID,
        studio_url=config.studio_url(),
    )
    return client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build shared services on startup and close the HTTP client on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    if not settings.STAFFBASE_TOKEN or not settings.STAFFBASE_SPACE_ID:
        logger.warning("Staffbase token or space id is not configured")

    client = build_services(app, settings)
    logger.info("All services initialized successfully", base_url=client.base_url)

    yield

    logger.info("Application shutting down")
    try:
        await client.close()
    except Exception as e:
        logger.error("Error closing Staffbase client", error=str(e))


app = FastAPI(
    title="Store Communications",
    description="Store directory lookup, profile imports and announcement distribution",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(directory.router)
app.include_router(user_import.router)
app.include_router(announcements.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(request.method, request.url.path, response.status_code, round(process_time, 2))
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
