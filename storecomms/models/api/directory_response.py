# storecomms/models/api/directory_response.py
"""
Directory API response models.
Used by routes for output formatting.
"""

from pydantic import Field

from storecomms.models.api.common import CamelModel
from storecomms.models.domain.directory_domain import DirectoryEntry


class DirectoryUserResponse(CamelModel):
    """A resolved store user."""

    id: str = Field(..., description="Staffbase user ID")
    visible_id: str = Field(..., description="Store identifier")
    external_id: str | None = Field(None, description="External user ID")
    name: str = Field(default="", description="Display name")

    @classmethod
    def from_entry(cls, entry: DirectoryEntry) -> "DirectoryUserResponse":
        return cls(
            id=entry.platform_user_id,
            visible_id=entry.visible_store_id,
            external_id=entry.external_id,
            name=entry.display_name,
        )


class VerifyUsersResponse(CamelModel):
    """Response for store id verification."""

    found_users: list[DirectoryUserResponse] = Field(..., description="Resolved users")
    not_found_ids: list[str] = Field(..., description="Store ids with no directory user")
    directory_complete: bool = Field(
        True, description="False when the directory could only be partially loaded"
    )
