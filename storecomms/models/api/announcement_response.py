# storecomms/models/api/announcement_response.py
"""
Announcement API response models.
Used by routes for output formatting.
"""

from pydantic import Field

from storecomms.models.api.common import CamelModel
from storecomms.models.domain.announcement_domain import HistoryItem, PartialDistributionError


class TaskErrorResponse(CamelModel):
    installation: str = Field(..., description="Project installation ID")
    store_id: str | None = Field(None, description="Store the installation belongs to")
    task: str | None = Field(None, description="Task title, absent for task list failures")
    error: str = Field(..., description="Error message")

    @classmethod
    def from_error(cls, error: PartialDistributionError) -> "TaskErrorResponse":
        return cls(
            installation=error.installation_id,
            store_id=error.store_id,
            task=error.task,
            error=error.error,
        )


class CreateAnnouncementResponse(CamelModel):
    success: bool = Field(..., description="Channel and post were created")
    channel_id: str = Field(..., description="News channel installation ID")
    post_id: str | None = Field(None, description="Post ID")
    task_lists_created: int = Field(..., description="Task lists created in store projects")
    task_count: int = Field(..., description="Tasks created across all projects")
    task_errors: list[TaskErrorResponse] | None = Field(
        None, description="Per-store task failures, omitted when empty"
    )
    stores_without_project: list[str] | None = Field(
        None, description="Targeted stores with no project installation"
    )
    discovery_error: str | None = Field(
        None, description="Set when store projects could not be listed and no tasks were sent"
    )


class HistoryItemResponse(CamelModel):
    channel_id: str
    post_id: str | None = None
    title: str
    department: str
    user_count: int
    created_at: str
    due_date: str | None = None
    status: str
    edit_url: str | None = None

    @classmethod
    def from_item(cls, item: HistoryItem) -> "HistoryItemResponse":
        return cls(
            channel_id=item.channel_id,
            post_id=item.post_id,
            title=item.title,
            department=item.department,
            user_count=item.user_count,
            created_at=item.created_at,
            due_date=item.due_date,
            status=item.status,
            edit_url=item.edit_url,
        )


class HistoryListResponse(CamelModel):
    items: list[HistoryItemResponse] = Field(default_factory=list)


class DeleteResponse(CamelModel):
    success: bool
