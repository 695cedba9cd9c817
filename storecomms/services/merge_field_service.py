"""Merge field mapping for uploaded spreadsheet columns."""

import csv
import io
import re
from collections.abc import Sequence
from typing import Any

from storecomms.models.domain.errors import ValidationError
from storecomms.models.domain.user_import_domain import MergeField

_FIELD_ID_STRIP = re.compile(r"[^a-z0-9]")
_DATE_STAMP_STRIP = re.compile(r"[^0-9]")


def sanitize_field_id(name: str) -> str:
    return _FIELD_ID_STRIP.sub("", name.lower())


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index])


def build_merge_fields(
    headers: Sequence[Any],
    rows: Sequence[Sequence[Any]],
    primary_key_field: str,
    date_stamp: str | None = None,
) -> list[MergeField]:
    """
    Map spreadsheet headers to profile field ids.

    Column 0 is the primary key and always maps to ``primary_key_field``.
    Other columns are lowercased, stripped to ``[a-z0-9]`` and suffixed with
    the digits of ``date_stamp`` when given.
    """
    if not headers:
        raise ValidationError("Spreadsheet has no header row", field="headers")

    suffix = _DATE_STAMP_STRIP.sub("", date_stamp or "")
    first_row = rows[0] if rows else []

    fields: list[MergeField] = []
    used_ids: set[str] = set()

    for index, header in enumerate(headers):
        if header is None or str(header).strip() == "":
            continue

        original_name = str(header).strip()
        is_primary_key = index == 0

        if is_primary_key:
            field_id = primary_key_field
        else:
            base = sanitize_field_id(original_name) or f"field{index}"
            field_id = f"{base}{suffix}"
            if field_id in used_ids:
                field_id = f"{base}{index}{suffix}"

        used_ids.add(field_id)
        fields.append(
            MergeField(
                original_name=original_name,
                field_id=field_id,
                sample_value=_cell(first_row, index),
                column_index=index,
                is_primary_key=is_primary_key,
            )
        )

    return fields


def build_csv_content(fields: Sequence[MergeField], rows: Sequence[Sequence[Any]]) -> str:
    """Render the import CSV with field ids as the header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([f.field_id for f in fields])
    for row in rows:
        if not any(value not in (None, "") for value in row):
            continue
        writer.writerow([_cell(row, f.column_index) for f in fields])
    return buffer.getvalue().rstrip("\n")


def field_mappings(fields: Sequence[MergeField]) -> dict[str, str]:
    """Import mapping for every non primary key field (profile field -> column)."""
    return {f.field_id: f.field_id for f in fields if not f.is_primary_key}


def primary_key_values(rows: Sequence[Sequence[Any]]) -> list[str]:
    """Non-empty first-column values, used to pre-fill store ids."""
    return [_cell(row, 0).strip() for row in rows if _cell(row, 0).strip()]
