# storecomms/models/api/user_import_response.py
"""
User import API response models.
Used by routes for output formatting.
"""

from typing import Any

from pydantic import Field

from storecomms.models.api.common import CamelModel


class ImportResultResponse(CamelModel):
    """Outcome of a CSV import."""

    success: bool = Field(..., description="Whether the import succeeded or is still running")
    import_id: str = Field(..., description="Staffbase import ID")
    message: str = Field(..., description="Human readable status")
    stats: dict[str, Any] = Field(default_factory=dict, description="Import statistics")
    warning: str | None = Field(None, description="Set when the import is still processing")


class MergeFieldResponse(CamelModel):
    original_name: str
    field_id: str
    sample_value: str
    merge_code: str
    column_index: int
    is_primary_key: bool


class MergeFieldsResponse(CamelModel):
    fields: list[MergeFieldResponse] = Field(..., description="Mapped columns")
    csv_content: str = Field(..., description="CSV ready for upload")
    field_mappings: dict[str, str] = Field(..., description="Mappings for the import config")
    store_ids: list[str] = Field(..., description="First column values")
