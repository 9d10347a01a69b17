"""Repository for interacting with task persistence models."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.pagination import PageRequest
from ..models import Task, TaskStatus, utcnow
from .base import BaseRepository
from .queries import SortOrder, TaskFilter, order_by_created

_UPDATABLE_FIELDS = frozenset({"title", "description", "status"})


class TaskRepository(BaseRepository[Task]):
    """Persistence operations for ``Task`` records.

    Ownership is not checked here; callers pass an owner-scoped
    :class:`TaskFilter` for reads and guard single-task access themselves.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    async def list_page(
        self,
        task_filter: TaskFilter,
        *,
        sort: SortOrder,
        page: PageRequest,
    ) -> tuple[list[Task], int]:
        """Return one page of the filtered set along with the filtered total."""
        query = order_by_created(task_filter.apply(select(Task)), sort)
        query = query.limit(page.per_page).offset(page.offset)
        result = await self.session.execute(query)
        tasks = list(result.scalars().all())

        count_query = task_filter.apply(select(func.count()).select_from(Task))
        total_result = await self.session.execute(count_query)
        total = int(total_result.scalar_one())
        return tasks, total

    async def count_by_status(self, task_filter: TaskFilter) -> dict[TaskStatus, int]:
        """Count the filtered set grouped by status; absent statuses are 0."""
        query = task_filter.apply(
            select(Task.status, func.count()).select_from(Task)
        ).group_by(Task.status)
        result = await self.session.execute(query)
        counts = {status: 0 for status in TaskStatus}
        for status, count in result.all():
            counts[TaskStatus(status)] = int(count)
        return counts

    async def create(
        self,
        *,
        owner_id: int,
        title: str,
        description: str | None,
        status: TaskStatus,
    ) -> Task:
        task = Task(owner_id=owner_id, title=title, description=description, status=status)
        return await self.add(task)

    async def update(self, task: Task, changes: dict[str, Any]) -> Task:
        """Apply ``changes`` to ``task`` and stamp ``updated_at`` unconditionally."""
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported task fields: {', '.join(sorted(unknown))}")
        for field_name, value in changes.items():
            setattr(task, field_name, value)
        task.updated_at = utcnow()
        self.session.add(task)
        await self.session.flush()
        return task
