"""
Announcement Domain Models
Announcements, their tasks, distribution outcomes and history items.
Also holds the small parsing rules shared by creation and history:
teaser metadata encoding and store project title matching.
"""

import re
from dataclasses import dataclass, field
from datetime import date

from storecomms.models.domain.directory_domain import DirectoryEntry

MAX_TASKS = 20
DEFAULT_DEPARTMENT = "Uncategorized"

NEWS_PLUGIN_ID = "news"

STORE_TITLE_PATTERN = re.compile(r"^Store\s*#?\s*(\w+)$", re.IGNORECASE)
DUE_DATE_PATTERN = re.compile(r"DueDate:\s*([^;]*)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class Task:
    title: str
    description: str = ""
    due_date: date | None = None


@dataclass(slots=True)
class AnnouncementRequest:
    """Input to channel creation and task distribution."""

    target_users: list[DirectoryEntry]
    title: str
    department: str = DEFAULT_DEPARTMENT
    tasks: list[Task] = field(default_factory=list)

    @property
    def store_ids(self) -> list[str]:
        return [user.visible_store_id for user in self.target_users]

    def earliest_due_date(self) -> date | None:
        due_dates = [task.due_date for task in self.tasks if task.due_date]
        return min(due_dates) if due_dates else None


class PartialDistributionError(Exception):
    """
    Failure of a single task list or task during distribution.

    Collected as a value alongside a successful response, never raised
    to the caller.
    """

    def __init__(
        self,
        installation_id: str,
        error: str,
        store_id: str | None = None,
        task: str | None = None,
    ):
        super().__init__(error)
        self.installation_id = installation_id
        self.store_id = store_id
        self.task = task
        self.error = error

    def to_dict(self) -> dict:
        data = {"installation": self.installation_id, "error": self.error}
        if self.store_id is not None:
            data["storeId"] = self.store_id
        if self.task is not None:
            data["task"] = self.task
        return data


@dataclass(slots=True)
class DistributionResult:
    channel_id: str
    post_id: str | None
    task_lists_created: int = 0
    task_count: int = 0
    task_errors: list[PartialDistributionError] = field(default_factory=list)
    stores_without_project: list[str] = field(default_factory=list)
    # set when project discovery failed and no tasks were distributed
    discovery_error: str | None = None


@dataclass(slots=True)
class HistoryFilter:
    store_id: str | None = None
    category: str | None = None
    due_date_from: date | None = None
    due_date_to: date | None = None
    search: str | None = None

    def matches(self, item: "HistoryItem") -> bool:
        """Category, due date range and free-text checks on a decoded item."""
        if self.category and item.department.lower() != self.category.lower():
            return False

        if self.due_date_from or self.due_date_to:
            due = parse_iso_date(item.due_date)
            if due is None:
                return False
            if self.due_date_from and due < self.due_date_from:
                return False
            if self.due_date_to and due > self.due_date_to:
                return False

        if self.search:
            needle = self.search.lower()
            if needle not in item.title.lower() and needle not in item.department.lower():
                return False

        return True


@dataclass(slots=True)
class HistoryItem:
    channel_id: str
    title: str
    created_at: str
    user_count: int = 0
    post_id: str | None = None
    department: str = DEFAULT_DEPARTMENT
    due_date: str | None = None
    status: str = "Draft"
    edit_url: str | None = None


def build_teaser(department: str, store_count: int, due_date: date | None) -> str:
    """Encode announcement metadata into the post teaser."""
    due = due_date.isoformat() if due_date else ""
    return f"Category: {department}; Stores: {store_count}; DueDate: {due}"


def parse_teaser_due_date(teaser: str | None) -> str | None:
    """Extract the DueDate token from a teaser, or None when absent or empty."""
    if not teaser:
        return None
    match = DUE_DATE_PATTERN.search(teaser)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def installation_title(installation: dict) -> str | None:
    """English title of an installation, tolerating missing or null config levels."""
    config = installation.get("config") or {}
    localization = (config.get("localization") or {}).get("en_US") or {}
    return localization.get("title")


def match_store_title(title: str | None) -> str | None:
    """Map a project title like ``Store #123`` to its store id."""
    if not title:
        return None
    match = STORE_TITLE_PATTERN.match(title.strip())
    return match.group(1) if match else None


def post_status(post: dict) -> str:
    if post.get("published"):
        return "Published"
    if post.get("planned"):
        return "Scheduled"
    return "Draft"


def parse_iso_date(value: str | None) -> date | None:
    """Parse the date part of an ISO date or datetime string."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None
