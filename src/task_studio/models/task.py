"""Task domain models built with SQLModel."""

from enum import Enum
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlmodel import Field, Relationship, SQLModel

from .common import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .user import User

TITLE_MAX_LENGTH = 120
DESCRIPTION_MAX_LENGTH = 1000


class TaskStatus(str, Enum):
    """Task states. Any state may move to any other."""

    TODO = "todo"
    DOING = "doing"
    DONE = "done"


class TaskBase(SQLModel, table=False):
    """Shared attributes for task models."""

    title: str = Field(
        max_length=TITLE_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=TITLE_MAX_LENGTH), nullable=False),
    )
    description: str | None = Field(
        default=None,
        sa_column=sa.Column(sa.Text(), nullable=True),
    )
    status: TaskStatus = Field(
        default=TaskStatus.TODO,
        sa_column=sa.Column(
            sa.Enum(
                TaskStatus,
                name="task_status",
                native_enum=False,
                length=20,
                validate_strings=True,
                values_callable=lambda members: [member.value for member in members],
            ),
            nullable=False,
            server_default=TaskStatus.TODO.value,
        ),
    )
    owner_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )


class Task(TaskBase, TimestampMixin, table=True):
    """Persistent task model."""

    __tablename__ = "tasks"
    __table_args__ = (
        sa.CheckConstraint("length(title) > 0", name="ck_tasks_title_length"),
        sa.Index("ix_tasks_owner_id", "owner_id"),
        sa.Index("ix_tasks_status_created_at", "status", "created_at"),
    )

    id: int | None = Field(default=None, primary_key=True)
    owner: "User" = Relationship(back_populates="tasks")


__all__ = ["DESCRIPTION_MAX_LENGTH", "TITLE_MAX_LENGTH", "Task", "TaskBase", "TaskStatus"]
