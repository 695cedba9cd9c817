# storecomms/models/api/directory_request.py
"""
Directory API request models.
Used by routes for input validation.
"""

from pydantic import Field

from storecomms.models.api.common import CamelModel


class VerifyUsersRequest(CamelModel):
    """Request for resolving store ids against the directory."""

    store_ids: list[str | int] = Field(..., description="Store identifiers to resolve")
