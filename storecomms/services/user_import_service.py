"""
User import orchestration.

Drives one Staffbase CSV import job end to end:
upload -> configure delta mapping -> preview -> commit, polling the job
state between phases.
"""

import asyncio
from typing import Any

from storecomms.infrastructure.observability.logging import get_logger
from storecomms.models.domain.user_import_domain import (
    ImportJob,
    ImportResult,
    ImportState,
    can_transition,
)

logger = get_logger(__name__)

IMPORTS_PATH = "/users/imports"
UPLOAD_FILENAME = "merge_data_import.csv"

PREVIEW_POLL_INTERVAL = 1.0  # seconds
PREVIEW_POLL_ATTEMPTS = 30
IMPORT_POLL_INTERVAL = 2.0  # seconds
IMPORT_POLL_ATTEMPTS = 60


class CsvImportError(Exception):
    """Raised when an import job cannot be driven to completion."""

    def __init__(
        self,
        message: str,
        import_id: str | None = None,
        errors: Any = None,
        state: ImportState | None = None,
    ):
        super().__init__(message)
        self.import_id = import_id
        self.errors = errors
        self.state = state


class UserImportService:
    """
    Orchestrates delta imports of profile data.

    A preview that does not finish within its polling budget is not fatal:
    the job is committed anyway and the import phase reports the outcome.
    """

    def __init__(
        self,
        client,
        identifier_field: str,
        preview_interval: float = PREVIEW_POLL_INTERVAL,
        preview_attempts: int = PREVIEW_POLL_ATTEMPTS,
        import_interval: float = IMPORT_POLL_INTERVAL,
        import_attempts: int = IMPORT_POLL_ATTEMPTS,
    ):
        self._client = client
        self.identifier_field = identifier_field
        self.preview_interval = preview_interval
        self.preview_attempts = preview_attempts
        self.import_interval = import_interval
        self.import_attempts = import_attempts

    async def import_users(self, csv_content: str, field_mappings: dict[str, str]) -> ImportResult:
        """
        Upload CSV content and drive the import job.

        Returns:
            ImportResult: success, or success with a warning when the job is
            still running after the polling budget

        Raises:
            CsvImportError: Missing import id, failed preview/import, or an
            unrecognized job state
            ApiError: If a Staffbase call fails
        """
        logger.info("Starting CSV import", mapped_fields=sorted(field_mappings))

        upload = await self._client.upload_csv(csv_content, UPLOAD_FILENAME)
        import_id = upload.get("importId")
        if not import_id:
            raise CsvImportError("Failed to get import ID from upload response")

        job = ImportJob(
            import_id=str(import_id),
            identifier_field=self.identifier_field,
            field_mappings=dict(field_mappings),
        )
        logger.info("CSV uploaded", import_id=job.import_id)

        await self._client.call("PATCH", f"{IMPORTS_PATH}/{job.import_id}/config", job.mapping_config())
        logger.info("Import mapping configured", import_id=job.import_id)

        await self._preview(job)
        return await self._commit(job)

    async def _preview(self, job: ImportJob) -> None:
        await self._request_state(job, ImportState.PREVIEW_PENDING)

        for _ in range(self.preview_attempts):
            await asyncio.sleep(self.preview_interval)
            status = await self._poll(job)

            if job.state.is_preview_ready:
                logger.info("Import preview ready", import_id=job.import_id, state=job.state.value)
                return
            if job.state == ImportState.PREVIEW_FAILED:
                raise CsvImportError(
                    f"Preview failed: {status.get('errors') or {}}",
                    import_id=job.import_id,
                    errors=status.get("errors"),
                    state=job.state,
                )

        logger.warning(
            "Import preview did not finish, committing anyway",
            import_id=job.import_id,
            state=job.state.value,
            attempts=self.preview_attempts,
        )

    async def _commit(self, job: ImportJob) -> ImportResult:
        await self._request_state(job, ImportState.IMPORT_PENDING)

        for _ in range(self.import_attempts):
            await asyncio.sleep(self.import_interval)
            status = await self._poll(job)

            if job.state == ImportState.IMPORT_COMPLETE:
                logger.info("CSV import completed", import_id=job.import_id, stats=job.stats)
                return ImportResult(
                    success=True,
                    import_id=job.import_id,
                    message="User data imported successfully",
                    stats=job.stats,
                )
            if job.state == ImportState.IMPORT_FAILED:
                raise CsvImportError(
                    f"Import failed: {status.get('errors') or {}}",
                    import_id=job.import_id,
                    errors=status.get("errors"),
                    state=job.state,
                )

        logger.warning(
            "CSV import still processing after polling budget",
            import_id=job.import_id,
            state=job.state.value,
        )
        return ImportResult(
            success=True,
            import_id=job.import_id,
            message="Import started - check Staffbase Studio for status",
            stats=job.stats,
            warning="Import is still processing",
        )

    async def _request_state(self, job: ImportJob, target: ImportState) -> None:
        # Guard the phases this client drives; the observed state may lag behind
        if not can_transition(job.phase, target):
            raise CsvImportError(
                f"Cannot move import from {job.phase.value} to {target.value}",
                import_id=job.import_id,
                state=job.state,
            )
        await self._client.call("PATCH", f"{IMPORTS_PATH}/{job.import_id}", {"state": target.value})
        job.phase = target

    async def _poll(self, job: ImportJob) -> dict[str, Any]:
        status = await self._client.call("GET", f"{IMPORTS_PATH}/{job.import_id}") or {}
        raw_state = status.get("state")

        try:
            state = ImportState.parse(raw_state)
        except ValueError as e:
            logger.error("Unrecognized import state", import_id=job.import_id, state=raw_state)
            raise CsvImportError(
                f"Unrecognized import state: {raw_state!r}", import_id=job.import_id
            ) from e

        if not (can_transition(job.state, state) or can_transition(job.phase, state)):
            logger.warning(
                "Unexpected import state transition",
                import_id=job.import_id,
                previous=job.state.value,
                current=state.value,
            )

        job.state = state
        job.stats = status.get("stats") or {}
        job.errors = status.get("errors")
        return status

