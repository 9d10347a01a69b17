"""Domain models exposed by Task Studio."""

from __future__ import annotations

from .common import TimestampMixin, utcnow
from .task import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, Task, TaskBase, TaskStatus
from .user import User, UserBase

__all__ = [
    "DESCRIPTION_MAX_LENGTH",
    "TITLE_MAX_LENGTH",
    "Task",
    "TaskBase",
    "TaskStatus",
    "TimestampMixin",
    "User",
    "UserBase",
    "utcnow",
]
