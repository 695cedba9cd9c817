"""
Announcement creation and task distribution.

Creates a news channel and post for the targeted stores, then pushes the
announcement's tasks into each store's project installation. Channel and
post failures are fatal. Project discovery and per-store task failures
are collected and returned next to the successful result.
"""

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

from storecomms.infrastructure.observability.logging import get_logger
from storecomms.models.domain.announcement_domain import (
    DEFAULT_DEPARTMENT,
    MAX_TASKS,
    NEWS_PLUGIN_ID,
    AnnouncementRequest,
    DistributionResult,
    PartialDistributionError,
    Task,
    build_teaser,
    installation_title,
    match_store_title,
)
from storecomms.models.domain.directory_domain import DirectoryEntry
from storecomms.models.domain.errors import ValidationError
from storecomms.services.announcement_content import channel_name, render_post_content
from storecomms.services.staffbase.client import ApiError
from storecomms.services.staffbase.pagination import paginate

logger = get_logger(__name__)

DISTRIBUTION_BATCH_SIZE = 5
DISTRIBUTION_BATCH_PAUSE = 0.2  # seconds
TASK_PRIORITY = "Priority_3"
TASK_STATUS = "OPEN"
USERS_SEARCH_ACCEPT = "application/vnd.staffbase.accessors.users-search.v1+json"


@dataclass(slots=True)
class _ProjectOutcome:
    list_created: bool = False
    tasks_created: int = 0
    errors: list[PartialDistributionError] = field(default_factory=list)


def build_announcement(
    target_users: list[DirectoryEntry],
    title: str | None,
    department: str | None,
    tasks: Iterable[Task],
) -> AnnouncementRequest:
    """
    Validate and normalize announcement input.

    Raises:
        ValidationError: Missing title or no target users
    """
    if not title or not title.strip():
        raise ValidationError("Title is required", field="title")
    if not target_users:
        raise ValidationError("No verified users provided.", field="verifiedUsers")

    department = (department or "").strip()
    if not department or department == "undefined":
        department = DEFAULT_DEPARTMENT

    kept = [task for task in list(tasks)[:MAX_TASKS] if task.title and task.title.strip()]

    return AnnouncementRequest(
        target_users=list(target_users),
        title=title.strip(),
        department=department,
        tasks=kept,
    )


class AnnouncementService:
    """Creates announcement channels and distributes their tasks."""

    def __init__(
        self,
        client,
        space_id: str,
        fixed_ops_ids: list[str] | None = None,
        ops_group_id: str | None = None,
        timezone: ZoneInfo = ZoneInfo("UTC"),
        batch_size: int = DISTRIBUTION_BATCH_SIZE,
        batch_pause: float = DISTRIBUTION_BATCH_PAUSE,
        now: Callable[[], datetime] | None = None,
    ):
        self._client = client
        self.space_id = space_id
        self.fixed_ops_ids = list(fixed_ops_ids or [])
        self.ops_group_id = ops_group_id
        self.timezone = timezone
        self.batch_size = batch_size
        self.batch_pause = batch_pause
        self._now = now or (lambda: datetime.now(self.timezone))

    async def create_and_distribute(self, request: AnnouncementRequest) -> DistributionResult:
        """
        Create the channel and post, then distribute tasks to store projects.

        Raises:
            ValidationError: If the request has no title or no target users
            ApiError: If channel or post creation fails
        """
        if not request.title or not request.title.strip():
            raise ValidationError("Title is required", field="title")
        if not request.target_users:
            raise ValidationError("No verified users provided.", field="verifiedUsers")

        accessor_ids = await self.resolve_accessor_ids(request.target_users)
        earliest_due = request.earliest_due_date()

        channel_id = await self._create_channel(request.department, accessor_ids)
        post_id = await self._create_post(channel_id, request, earliest_due)

        result = DistributionResult(channel_id=channel_id, post_id=post_id)

        if request.tasks:
            await self._distribute_tasks(request, result)

        logger.info(
            "Announcement created",
            channel_id=channel_id,
            post_id=post_id,
            task_lists_created=result.task_lists_created,
            task_count=result.task_count,
            task_errors=len(result.task_errors),
        )
        return result

    async def resolve_accessor_ids(self, target_users: list[DirectoryEntry]) -> list[str]:
        """Store users, ops group members and fixed operators, deduplicated in order."""
        store_user_ids = [user.platform_user_id for user in target_users]
        ops_ids = await self.ops_group_member_ids()
        return list(dict.fromkeys([*store_user_ids, *ops_ids, *self.fixed_ops_ids]))

    async def ops_group_member_ids(self) -> list[str]:
        if not self.ops_group_id:
            return []

        try:
            result = await self._client.call(
                "GET",
                "/users/search",
                params={"filter": f'groups eq "{self.ops_group_id}"'},
                headers={"Accept": USERS_SEARCH_ACCEPT},
            )
        except ApiError as e:
            logger.warning("Failed to fetch ops group members", group_id=self.ops_group_id, error=str(e))
            return []

        return [member["id"] for member in (result or {}).get("data") or [] if member.get("id")]

    async def _create_channel(self, department: str, accessor_ids: list[str]) -> str:
        name = channel_name(department, self._now().date())
        external_id = str(int(self._now().timestamp() * 1000))

        response = await self._client.call(
            "POST",
            f"/spaces/{self.space_id}/installations",
            {
                "pluginID": NEWS_PLUGIN_ID,
                "externalID": external_id,
                "config": {
                    "localization": {
                        "en_US": {"title": name},
                        "de_DE": {"title": name},
                    }
                },
                "accessorIDs": accessor_ids,
            },
        )
        channel_id = response["id"]
        logger.info("Channel created", channel_id=channel_id, channel_name=name, accessors=len(accessor_ids))
        return channel_id

    async def _create_post(
        self, channel_id: str, request: AnnouncementRequest, earliest_due: date | None
    ) -> str | None:
        teaser = build_teaser(request.department, len(request.target_users), earliest_due)

        response = await self._client.call(
            "POST",
            f"/channels/{channel_id}/posts",
            {
                "contents": {
                    "en_US": {
                        "title": request.title,
                        "content": render_post_content(request.title, request.tasks),
                        "teaser": teaser,
                        "kicker": request.department,
                    }
                }
            },
        )
        post_id = (response or {}).get("id")
        logger.info("Post created", channel_id=channel_id, post_id=post_id)
        return post_id

    async def _distribute_tasks(self, request: AnnouncementRequest, result: DistributionResult) -> None:
        store_ids = request.store_ids
        logger.info("Discovering store projects", store_count=len(store_ids))

        try:
            projects = await self.discover_projects(store_ids)
        except Exception as e:
            # Channel and post already exist, so this is reported rather than raised
            logger.error(
                "Store project discovery failed, no tasks distributed",
                channel_id=result.channel_id,
                error=str(e),
            )
            result.discovery_error = str(e)
            return

        result.stores_without_project = [s for s in store_ids if s not in projects]
        if result.stores_without_project:
            logger.warning(
                "No project installation for some stores, skipping their tasks",
                store_ids=result.stores_without_project,
            )

        if projects:
            await self._distribute(request, projects, result)

    async def discover_projects(self, store_ids: list[str]) -> dict[str, str]:
        """Map targeted store ids to their ``Store #<id>`` project installation ids."""
        wanted = set(store_ids)
        projects: dict[str, str] = {}

        async for installation in paginate(self._client, f"/spaces/{self.space_id}/installations"):
            store_id = match_store_title(installation_title(installation))
            if store_id is not None and store_id in wanted:
                projects[store_id] = installation["id"]

        logger.info("Store projects discovered", requested=len(wanted), found=len(projects))
        return projects

    async def _distribute(
        self,
        request: AnnouncementRequest,
        projects: dict[str, str],
        result: DistributionResult,
    ) -> None:
        targets = list(projects.items())
        batches = [targets[i : i + self.batch_size] for i in range(0, len(targets), self.batch_size)]

        for batch_num, batch in enumerate(batches, 1):
            outcomes = await asyncio.gather(
                *(
                    self._distribute_to_project(store_id, installation_id, request)
                    for store_id, installation_id in batch
                )
            )
            for outcome in outcomes:
                result.task_lists_created += int(outcome.list_created)
                result.task_count += outcome.tasks_created
                result.task_errors.extend(outcome.errors)

            # Pause between batches to stay under the API rate limit
            if batch_num < len(batches):
                await asyncio.sleep(self.batch_pause)

    async def _distribute_to_project(
        self, store_id: str, installation_id: str, request: AnnouncementRequest
    ) -> _ProjectOutcome:
        outcome = _ProjectOutcome()

        try:
            task_list = await self._client.call(
                "POST", f"/tasks/{installation_id}/lists", {"name": request.title}
            )
            task_list_id = task_list["id"]
        except Exception as e:
            logger.error(
                "Failed to create task list",
                installation_id=installation_id,
                store_id=store_id,
                error=str(e),
            )
            outcome.errors.append(
                PartialDistributionError(installation_id, str(e), store_id=store_id)
            )
            return outcome

        outcome.list_created = True
        logger.info("Task list created", installation_id=installation_id, task_list_id=task_list_id)

        for task in request.tasks:
            try:
                await self._client.call(
                    "POST",
                    f"/tasks/{installation_id}/tasks",
                    self.task_payload(task, task_list_id),
                )
                outcome.tasks_created += 1
            except Exception as e:
                logger.error(
                    "Failed to create task",
                    installation_id=installation_id,
                    store_id=store_id,
                    task=task.title,
                    error=str(e),
                )
                outcome.errors.append(
                    PartialDistributionError(
                        installation_id, str(e), store_id=store_id, task=task.title
                    )
                )

        return outcome

    def task_payload(self, task: Task, task_list_id: str) -> dict:
        payload = {
            "title": task.title,
            "description": task.description or "",
            "status": TASK_STATUS,
            "taskListId": task_list_id,
            "assigneeIds": [],
            "groupIds": [],
            "priority": TASK_PRIORITY,
            "attachmentIds": [],
        }
        if task.due_date:
            payload["dueDate"] = self.end_of_day(task.due_date)
        return payload

    def end_of_day(self, due: date) -> str:
        """23:59:59 local time on ``due``, as a UTC ISO timestamp."""
        local = datetime.combine(due, time(23, 59, 59), tzinfo=self.timezone)
        return local.astimezone(UTC).isoformat().replace("+00:00", "Z")

    async def delete_channel(self, channel_id: str) -> None:
        await self._client.call("DELETE", f"/installations/{channel_id}")
        logger.info("Channel deleted", channel_id=channel_id)
