"""
User Import Domain Models
Remote CSV import job states, the job/result shapes, and merge fields.
"""

import enum
from dataclasses import dataclass, field
from typing import Any


class ImportState(str, enum.Enum):
    """States reported by the Staffbase user import job."""

    UPLOADED = "UPLOADED"
    DRAFT = "DRAFT"
    PREVIEW_PENDING = "PREVIEW_PENDING"
    PREVIEW_COMPLETE = "PREVIEW_COMPLETE"
    PREVIEW_FAILED = "PREVIEW_FAILED"
    IMPORT_PENDING = "IMPORT_PENDING"
    IMPORT_COMPLETE = "IMPORT_COMPLETE"
    IMPORT_FAILED = "IMPORT_FAILED"

    @classmethod
    def parse(cls, raw: Any) -> "ImportState":
        """Map a remote state string to the enum; raises ValueError if unknown."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            raise ValueError(f"Unrecognized import state: {raw!r}")
        return cls(raw.strip().upper())

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES

    @property
    def is_preview_ready(self) -> bool:
        # DRAFT is what the API reports once a preview has been generated
        return self in (ImportState.PREVIEW_COMPLETE, ImportState.DRAFT)


TERMINAL_STATES = frozenset(
    {ImportState.PREVIEW_FAILED, ImportState.IMPORT_COMPLETE, ImportState.IMPORT_FAILED}
)

# Allowed transitions, both server-driven and requested by the orchestrator.
# PREVIEW_PENDING -> IMPORT_PENDING covers committing after a preview timeout.
TRANSITIONS: dict[ImportState, frozenset[ImportState]] = {
    ImportState.UPLOADED: frozenset({ImportState.PREVIEW_PENDING, ImportState.DRAFT}),
    ImportState.DRAFT: frozenset({ImportState.PREVIEW_PENDING, ImportState.IMPORT_PENDING}),
    ImportState.PREVIEW_PENDING: frozenset(
        {
            ImportState.PREVIEW_COMPLETE,
            ImportState.DRAFT,
            ImportState.PREVIEW_FAILED,
            ImportState.IMPORT_PENDING,
        }
    ),
    ImportState.PREVIEW_COMPLETE: frozenset({ImportState.IMPORT_PENDING}),
    ImportState.IMPORT_PENDING: frozenset(
        {ImportState.IMPORT_COMPLETE, ImportState.IMPORT_FAILED}
    ),
    ImportState.PREVIEW_FAILED: frozenset(),
    ImportState.IMPORT_COMPLETE: frozenset(),
    ImportState.IMPORT_FAILED: frozenset(),
}


def can_transition(current: ImportState, target: ImportState) -> bool:
    """True if ``target`` may follow ``current`` (staying put is always allowed)."""
    return current == target or target in TRANSITIONS[current]


@dataclass(slots=True)
class ImportJob:
    """Client-side view of one remote import job."""

    import_id: str
    identifier_field: str
    field_mappings: dict[str, str] = field(default_factory=dict)
    state: ImportState = ImportState.UPLOADED
    # last state this client requested; `state` is what the server last reported
    phase: ImportState = ImportState.UPLOADED
    stats: dict[str, Any] = field(default_factory=dict)
    errors: Any = None

    def mapping_config(self) -> dict[str, Any]:
        """Delta-mode mapping payload: update existing users only."""
        return {
            "delta": True,
            "mapping": {"identifier": self.identifier_field, **self.field_mappings},
        }


@dataclass(slots=True)
class ImportResult:
    success: bool
    import_id: str
    message: str
    stats: dict[str, Any] = field(default_factory=dict)
    warning: str | None = None


@dataclass(frozen=True, slots=True)
class MergeField:
    """A spreadsheet column mapped to a user profile field."""

    original_name: str
    field_id: str
    sample_value: str
    column_index: int
    is_primary_key: bool

    @property
    def merge_code(self) -> str:
        return f"{{{{user.profile.{self.field_id}}}}}"
