"""Domain service layer package."""

from __future__ import annotations

from .auth import AuthService
from .tasks import TaskCounts, TaskPage, TaskService, ensure_task_owner
from .users import UserService

__all__ = ["AuthService", "TaskCounts", "TaskPage", "TaskService", "UserService", "ensure_task_owner"]
