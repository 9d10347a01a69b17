"""Service layer encapsulating task-related operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings
from ..core.pagination import PageMeta, PageRequest
from ..errors import NotFoundError
from ..models import Task, TaskStatus
from ..repositories import SortOrder, TaskFilter, TaskRepository

logger = logging.getLogger(__name__)

TASK_NOT_FOUND_MESSAGE = "Task not found."


def ensure_task_owner(task: Task | None, owner_id: int) -> Task:
    """Return ``task`` if ``owner_id`` owns it, otherwise raise ``NotFoundError``.

    Foreign tasks are reported exactly like missing ones.
    """

    if task is None or task.owner_id != owner_id:
        raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
    return task


@dataclass(slots=True)
class TaskPage:
    """A page of tasks plus its pagination metadata."""

    tasks: list[Task]
    meta: PageMeta


@dataclass(slots=True)
class TaskCounts:
    """Per-status counts over a filtered set."""

    total: int
    todo: int
    doing: int
    done: int


class TaskService:
    """High-level business orchestration for ``Task`` entities."""

    def __init__(self, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._repository = TaskRepository(session)

    @property
    def repository(self) -> TaskRepository:
        """Expose the underlying repository for advanced scenarios."""
        return self._repository

    async def list_tasks(
        self,
        task_filter: TaskFilter,
        *,
        sort: SortOrder = SortOrder.NEWEST,
        page: int | None = None,
        per_page: int | None = None,
    ) -> TaskPage:
        """Return one page of the owner's filtered tasks."""
        page_request = PageRequest.build(page, per_page, self._settings)
        tasks, total = await self._repository.list_page(task_filter, sort=sort, page=page_request)
        meta = PageMeta.build(page_request, total=total, count=len(tasks))
        return TaskPage(tasks=tasks, meta=meta)

    async def get_task_stats(self, task_filter: TaskFilter) -> TaskCounts:
        """Count the whole filtered set by status, ignoring pagination."""
        counts = await self._repository.count_by_status(task_filter)
        return TaskCounts(
            total=sum(counts.values()),
            todo=counts[TaskStatus.TODO],
            doing=counts[TaskStatus.DOING],
            done=counts[TaskStatus.DONE],
        )

    async def create_task(
        self,
        *,
        owner_id: int,
        title: str,
        description: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
    ) -> Task:
        """Create a new task belonging to ``owner_id``."""
        task = await self._repository.create(
            owner_id=owner_id,
            title=title,
            description=description,
            status=status,
        )
        await self._session.commit()
        await self._repository.refresh(task)
        logger.info("Task created", extra={"task_id": task.id, "owner_id": owner_id})
        return task

    async def get_task(self, task_id: int, owner_id: int) -> Task:
        """Return the owner's task or raise ``NotFoundError``."""
        return ensure_task_owner(await self._repository.get(task_id), owner_id)

    async def update_task(self, task_id: int, owner_id: int, changes: dict[str, Any]) -> Task:
        """Apply a partial update to the owner's task.

        An empty ``changes`` mapping still refreshes ``updated_at``.
        """
        task = await self.get_task(task_id, owner_id)
        await self._repository.update(task, changes)
        await self._session.commit()
        await self._repository.refresh(task)
        logger.info(
            "Task updated",
            extra={"task_id": task_id, "owner_id": owner_id, "fields": sorted(changes)},
        )
        return task

    async def delete_task(self, task_id: int, owner_id: int) -> None:
        """Permanently delete the owner's task."""
        task = await self.get_task(task_id, owner_id)
        await self._repository.delete(task)
        await self._session.commit()
        logger.info("Task deleted", extra={"task_id": task_id, "owner_id": owner_id})


__all__ = ["TaskCounts", "TaskPage", "TaskService", "ensure_task_owner"]
