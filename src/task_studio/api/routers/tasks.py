"""Task CRUD, listing and statistics endpoints scoped to the caller."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from ...deps import CurrentUserDependency, DatabaseSessionDependency, SettingsDependency
from ...repositories import SortOrder, TaskFilter
from ...schemas import (
    TaskCreate,
    TaskListResponse,
    TaskPageMeta,
    TaskRead,
    TaskStats,
    TaskUpdate,
)
from ...services import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])

SearchQuery = Annotated[
    str | None,
    Query(description="Substring matched against title or description."),
]
StatusQuery = Annotated[
    str | None,
    Query(alias="status", description="todo, doing, done or all. Unknown values are ignored."),
]


def _build_filter(owner_id: int, search: str | None, status_value: str | None) -> TaskFilter:
    return TaskFilter.build(owner_id=owner_id, search=search, status=status_value)


@router.get("", response_model=TaskListResponse, summary="List the caller's tasks")
async def list_tasks(
    current_user: CurrentUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    search: SearchQuery = None,
    status_filter: StatusQuery = None,
    sort: SortOrder = SortOrder.NEWEST,
    page: int | None = None,
    per_page: int | None = None,
) -> TaskListResponse:
    task_filter = _build_filter(current_user.id, search, status_filter)
    result = await TaskService(session, settings).list_tasks(
        task_filter,
        sort=sort,
        page=page,
        per_page=per_page,
    )
    return TaskListResponse(
        data=[TaskRead.model_validate(task) for task in result.tasks],
        meta=TaskPageMeta.from_page(result.meta),
    )


@router.get("/stats", response_model=TaskStats, summary="Count the caller's tasks by status")
async def read_task_stats(
    current_user: CurrentUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    search: SearchQuery = None,
    status_filter: StatusQuery = None,
) -> TaskStats:
    """Counts cover the whole filtered set, not a single page."""
    task_filter = _build_filter(current_user.id, search, status_filter)
    counts = await TaskService(session, settings).get_task_stats(task_filter)
    return TaskStats(total=counts.total, todo=counts.todo, doing=counts.doing, done=counts.done)


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    payload: TaskCreate,
    current_user: CurrentUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> TaskRead:
    task = await TaskService(session, settings).create_task(
        owner_id=current_user.id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
    )
    return TaskRead.model_validate(task)


@router.get("/{task_id}", response_model=TaskRead, summary="Fetch a single task")
async def read_task(
    task_id: int,
    current_user: CurrentUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> TaskRead:
    task = await TaskService(session, settings).get_task(task_id, current_user.id)
    return TaskRead.model_validate(task)


@router.patch("/{task_id}", response_model=TaskRead, summary="Partially update a task")
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    current_user: CurrentUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> TaskRead:
    task = await TaskService(session, settings).update_task(
        task_id,
        current_user.id,
        payload.changes(),
    )
    return TaskRead.model_validate(task)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
)
async def delete_task(
    task_id: int,
    current_user: CurrentUserDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> Response:
    await TaskService(session, settings).delete_task(task_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
