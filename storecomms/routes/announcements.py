"""
Announcement API Routes
Create announcement channels with store tasks, list past announcements, delete channels.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from storecomms.dependencies import (
    get_announcement_service,
    get_directory_cache,
    get_history_service,
)
from storecomms.infrastructure.observability.logging import get_logger
from storecomms.models.api.announcement_request import CreateAnnouncementRequest
from storecomms.models.api.announcement_response import (
    CreateAnnouncementResponse,
    DeleteResponse,
    HistoryItemResponse,
    HistoryListResponse,
    TaskErrorResponse,
)
from storecomms.models.domain.announcement_domain import HistoryFilter, parse_iso_date
from storecomms.models.domain.errors import ValidationError
from storecomms.services.announcement_service import AnnouncementService, build_announcement
from storecomms.services.directory_cache import DirectoryCache
from storecomms.services.history_service import HistoryService
from storecomms.services.staffbase.client import ApiError

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["announcements"])


@router.post(
    "/create", response_model=CreateAnnouncementResponse, response_model_exclude_none=True
)
async def create_announcement(
    body: CreateAnnouncementRequest,
    announcements: AnnouncementService = Depends(get_announcement_service),
    directory: DirectoryCache = Depends(get_directory_cache),
):
    """Create the news channel and post, then distribute tasks to store projects."""
    try:
        target_users = [user.to_domain() for user in body.verified_users]
        if not target_users and body.store_ids:
            target_users, _ = await directory.resolve_all(body.store_ids)

        request = build_announcement(
            target_users,
            body.title,
            body.department,
            [task.to_domain() for task in body.tasks],
        )
        result = await announcements.create_and_distribute(request)

    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ApiError as e:
        logger.error("Announcement creation failed", status_code=e.status, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except Exception as e:
        logger.error("Unexpected error creating announcement", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create announcement",
        )

    return CreateAnnouncementResponse(
        success=True,
        channel_id=result.channel_id,
        post_id=result.post_id,
        task_lists_created=result.task_lists_created,
        task_count=result.task_count,
        task_errors=[TaskErrorResponse.from_error(e) for e in result.task_errors] or None,
        stores_without_project=result.stores_without_project or None,
        discovery_error=result.discovery_error,
    )


@router.get("/items", response_model=HistoryListResponse)
async def list_announcements(
    response: Response,
    store_id: str | None = Query(None, alias="storeId"),
    category: str | None = Query(None),
    due_date_from: str | None = Query(None, alias="dueDateFrom"),
    due_date_to: str | None = Query(None, alias="dueDateTo"),
    search: str | None = Query(None),
    history: HistoryService = Depends(get_history_service),
):
    """List past announcements, newest first."""
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate"

    filters = HistoryFilter(
        store_id=store_id or None,
        category=category or None,
        due_date_from=parse_iso_date(due_date_from),
        due_date_to=parse_iso_date(due_date_to),
        search=search or None,
    )
    items = await history.list_items(filters)
    return HistoryListResponse(items=[HistoryItemResponse.from_item(item) for item in items])


@router.delete("/delete/{channel_id}", response_model=DeleteResponse)
async def delete_announcement(
    channel_id: str,
    announcements: AnnouncementService = Depends(get_announcement_service),
):
    """Delete an announcement channel."""
    try:
        await announcements.delete_channel(channel_id)
    except ApiError as e:
        logger.error("Channel deletion failed", channel_id=channel_id, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return DeleteResponse(success=True)
