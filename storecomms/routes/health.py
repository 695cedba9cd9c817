"""
Health and client configuration endpoints.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from storecomms.config import Settings
from storecomms.dependencies import get_settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/config")
async def client_config(settings: Settings = Depends(get_settings)):
    """Values the browser UI needs to build Studio links."""
    return {"studioUrl": settings.studio_url()}
