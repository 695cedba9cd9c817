"""HTML rendering for announcement posts."""

from datetime import date
from html import escape

from storecomms.models.domain.announcement_domain import Task

PLACEHOLDER = "—"

_CELL = "border:1px solid #e5e7eb; padding:12px;"
_HEADER_CELL = f"{_CELL} text-align:left; font-weight:600;"


def format_due_date(value: date | None) -> str:
    """``Oct 20, 2026`` style date, or an em dash placeholder."""
    if value is None:
        return PLACEHOLDER
    return f"{value:%b} {value.day}, {value.year}"


def format_channel_date(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def channel_name(department: str, today: date) -> str:
    return f"{department} - {format_channel_date(today)}"


def render_task_table(tasks: list[Task]) -> str:
    if not tasks:
        return ""

    rows = []
    for index, task in enumerate(tasks, 1):
        description = escape(task.description) if task.description else PLACEHOLDER
        rows.append(
            "<tr>"
            f'<td style="{_CELL} text-align:center; font-weight:600; color:#FF6900;">{index}</td>'
            f'<td style="{_CELL} font-weight:500;">{escape(task.title)}</td>'
            f'<td style="{_CELL} color:#6b7280;">{description}</td>'
            f'<td style="{_CELL} white-space:nowrap;">{format_due_date(task.due_date)}</td>'
            "</tr>"
        )

    header = "".join(
        f'<th style="{_HEADER_CELL}">{label}</th>'
        for label in ("#", "Task", "Description", "Due Date")
    )
    return (
        "<h3>Action Items</h3>"
        '<table style="width:100%; border-collapse:collapse; margin:16px 0; font-size:14px;">'
        f'<thead><tr style="background:#f3f4f6;">{header}</tr></thead>'
        f"<tbody>{''.join(rows)}</tbody>"
        "</table>"
    )


def render_post_content(title: str, tasks: list[Task]) -> str:
    return f"<h2>{escape(title)}</h2><hr>{render_task_table(tasks)}"
