"""
Directory API Routes
Store id verification and profile lookup against the cached user directory.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from storecomms.dependencies import get_directory_cache, get_staffbase_client
from storecomms.infrastructure.observability.logging import get_logger
from storecomms.models.api.directory_request import VerifyUsersRequest
from storecomms.models.api.directory_response import DirectoryUserResponse, VerifyUsersResponse
from storecomms.models.domain.errors import ValidationError
from storecomms.services.directory_cache import DirectoryCache
from storecomms.services.staffbase.client import ApiError, StaffbaseClient

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["directory"])


@router.post("/verify-users", response_model=VerifyUsersResponse)
async def verify_users(
    body: VerifyUsersRequest,
    directory: DirectoryCache = Depends(get_directory_cache),
):
    """Split store ids into directory users and unknown ids."""
    try:
        found, not_found = await directory.resolve_all(body.store_ids)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Error verifying store ids", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to verify users"
        )

    return VerifyUsersResponse(
        found_users=[DirectoryUserResponse.from_entry(entry) for entry in found],
        not_found_ids=not_found,
        directory_complete=directory.complete,
    )


@router.get("/user/{store_id}")
async def get_store_user(
    store_id: str,
    directory: DirectoryCache = Depends(get_directory_cache),
    client: StaffbaseClient = Depends(get_staffbase_client),
):
    """Full Staffbase profile of the user behind a store id."""
    entry = await directory.resolve(store_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        return await client.call("GET", f"/users/{entry.platform_user_id}")
    except ApiError as e:
        logger.error("Error fetching user profile", store_id=store_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
