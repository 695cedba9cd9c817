# storecomms/models/api/announcement_request.py
"""
Announcement API request models.
Used by routes for input validation.
"""

import json
from datetime import date

from pydantic import Field, field_validator

from storecomms.models.api.common import CamelModel
from storecomms.models.domain.announcement_domain import Task, parse_iso_date
from storecomms.models.domain.directory_domain import DirectoryEntry


def _decode_json_list(value):
    # Legacy form posts send arrays as JSON strings
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if value is None:
        return []
    return value


class TaskRequest(CamelModel):
    """A task to distribute to store projects."""

    title: str | None = Field(default="", description="Task title")
    description: str | None = Field(default="", description="Task description")
    due_date: date | None = Field(None, description="Due date (YYYY-MM-DD)")

    @field_validator("due_date", mode="before")
    @classmethod
    def _lenient_due_date(cls, value):
        # Unparseable dates are dropped rather than failing the whole request
        if isinstance(value, str):
            return parse_iso_date(value)
        if value is None or isinstance(value, date):
            return value
        return None

    def to_domain(self) -> Task:
        return Task(
            title=(self.title or "").strip(),
            description=(self.description or "").strip(),
            due_date=self.due_date,
        )


class VerifiedUserRequest(CamelModel):
    """A store user previously returned by /verify-users."""

    id: str = Field(..., description="Staffbase user ID")
    visible_id: str | None = Field(None, description="Store identifier")
    csv_id: str | None = Field(None, description="Store identifier (older clients)")
    external_id: str | None = Field(None, description="External user ID")
    name: str = Field(default="", description="Display name")

    def to_domain(self) -> DirectoryEntry:
        return DirectoryEntry(
            platform_user_id=self.id,
            visible_store_id=str(self.visible_id or self.csv_id or ""),
            external_id=self.external_id,
            display_name=self.name,
        )


class CreateAnnouncementRequest(CamelModel):
    """Request for creating an announcement channel with tasks."""

    verified_users: list[VerifiedUserRequest] = Field(default_factory=list)
    store_ids: list[str | int] = Field(
        default_factory=list, description="Fallback when no verified users are sent"
    )
    title: str | None = Field(None, description="Announcement title")
    department: str | None = Field(None, description="Department / category")
    tasks: list[TaskRequest] = Field(default_factory=list)

    @field_validator("verified_users", "store_ids", "tasks", mode="before")
    @classmethod
    def _decode_lists(cls, value):
        return _decode_json_list(value)
