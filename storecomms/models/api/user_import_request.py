# storecomms/models/api/user_import_request.py
"""
User import API request models.
Used by routes for input validation.
"""

from typing import Any

from pydantic import Field

from storecomms.models.api.common import CamelModel


class UploadUsersRequest(CamelModel):
    """Request for a delta import of profile data."""

    csv_content: str = Field(default="", description="CSV with field ids as header row")
    field_mappings: dict[str, str] = Field(
        default_factory=dict, description="Profile field -> CSV column mappings"
    )


class MergeFieldsRequest(CamelModel):
    """Parsed spreadsheet to map onto profile fields."""

    headers: list[Any] = Field(..., description="Header row")
    rows: list[list[Any]] = Field(default_factory=list, description="Data rows")
    date_stamp: str | None = Field(None, description="Suffix for non primary key field ids")
