"""
User Import API Routes
Merge field mapping and CSV delta import of profile data.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from storecomms.config import Settings
from storecomms.dependencies import get_settings, get_user_import_service
from storecomms.infrastructure.observability.logging import get_logger
from storecomms.models.api.user_import_request import MergeFieldsRequest, UploadUsersRequest
from storecomms.models.api.user_import_response import (
    ImportResultResponse,
    MergeFieldResponse,
    MergeFieldsResponse,
)
from storecomms.models.domain.errors import ValidationError
from storecomms.services.merge_field_service import (
    build_csv_content,
    build_merge_fields,
    field_mappings,
    primary_key_values,
)
from storecomms.services.staffbase.client import ApiError
from storecomms.services.user_import_service import CsvImportError, UserImportService

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["user-import"])


@router.post("/merge-fields", response_model=MergeFieldsResponse)
async def map_merge_fields(
    body: MergeFieldsRequest,
    settings: Settings = Depends(get_settings),
):
    """Map spreadsheet columns to profile fields and build the import CSV."""
    try:
        fields = build_merge_fields(
            body.headers, body.rows, settings.HIDDEN_ATTRIBUTE_KEY, body.date_stamp
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MergeFieldsResponse(
        fields=[
            MergeFieldResponse(
                original_name=f.original_name,
                field_id=f.field_id,
                sample_value=f.sample_value,
                merge_code=f.merge_code,
                column_index=f.column_index,
                is_primary_key=f.is_primary_key,
            )
            for f in fields
        ],
        csv_content=build_csv_content(fields, body.rows),
        field_mappings=field_mappings(fields),
        store_ids=primary_key_values(body.rows),
    )


@router.post("/upload-users", response_model=ImportResultResponse)
async def upload_users(
    body: UploadUsersRequest,
    importer: UserImportService = Depends(get_user_import_service),
):
    """
    Run a delta import of profile data.

    Blocks until the import completes or the polling budget runs out, which
    can take minutes.
    """
    if not body.csv_content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No CSV content provided")

    try:
        result = await importer.import_users(body.csv_content, body.field_mappings)
    except CsvImportError as e:
        logger.error("CSV import failed", import_id=e.import_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": str(e), "importId": e.import_id, "errors": e.errors},
        )
    except ApiError as e:
        logger.error("CSV import API error", status_code=e.status, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return ImportResultResponse(
        success=result.success,
        import_id=result.import_id,
        message=result.message,
        stats=result.stats,
        warning=result.warning,
    )
