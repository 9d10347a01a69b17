"""Database repositories for encapsulating persistence logic."""

from __future__ import annotations

from .queries import SortOrder, TaskFilter
from .tasks import TaskRepository
from .users import UserRepository

__all__ = ["SortOrder", "TaskFilter", "TaskRepository", "UserRepository"]
