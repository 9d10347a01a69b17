"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.pagination import PageMeta
from ..models import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH, TaskStatus

TASK_READ_EXAMPLE = {
    "id": 1,
    "title": "Write report",
    "description": "Quarterly summary for the team.",
    "status": TaskStatus.TODO.value,
    "owner_id": 42,
    "created_at": "2026-01-01T12:00:00Z",
    "updated_at": "2026-01-02T08:30:00Z",
}


def _blank_to_none(value: str | None) -> str | None:
    return value or None


class TaskCreate(BaseModel):
    """Payload for creating a new task."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "title": "Write report",
                "description": "Quarterly summary for the team.",
                "status": TaskStatus.TODO.value,
            }
        },
    )

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus

    @field_validator("description")
    @classmethod
    def _normalise_description(cls, value: str | None) -> str | None:
        return _blank_to_none(value)


class TaskUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value.

    ``description`` may be set to ``null`` to clear it, ``title`` and
    ``status`` may not.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={"example": {"status": TaskStatus.DONE.value}},
    )

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus | None = Field(default=None)

    @field_validator("description")
    @classmethod
    def _normalise_description(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @field_validator("title", "status", mode="before")
    @classmethod
    def _reject_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("Field cannot be null.")
        return value

    def changes(self) -> dict[str, object]:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class TaskRead(BaseModel):
    """Public representation of a task."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": TASK_READ_EXAMPLE},
    )

    id: int
    title: str
    description: str | None = None
    status: TaskStatus
    owner_id: int
    created_at: datetime
    updated_at: datetime


class TaskPageMeta(BaseModel):
    """Pagination metadata for a task listing."""

    model_config = ConfigDict(populate_by_name=True)

    current_page: int = Field(ge=1)
    last_page: int = Field(ge=1)
    per_page: int = Field(ge=1)
    total: int = Field(ge=0)
    from_: int | None = Field(default=None, alias="from")
    to: int | None = None

    @classmethod
    def from_page(cls, meta: PageMeta) -> "TaskPageMeta":
        return cls(
            current_page=meta.current_page,
            last_page=meta.last_page,
            per_page=meta.per_page,
            total=meta.total,
            from_=meta.from_,
            to=meta.to,
        )


class TaskListResponse(BaseModel):
    """One page of the caller's filtered tasks."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "data": [TASK_READ_EXAMPLE],
                "meta": {
                    "current_page": 1,
                    "last_page": 1,
                    "per_page": 8,
                    "total": 1,
                    "from": 1,
                    "to": 1,
                },
            }
        }
    )

    data: list[TaskRead]
    meta: TaskPageMeta


class TaskStats(BaseModel):
    """Per-status counts over the whole filtered set."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"total": 3, "todo": 1, "doing": 1, "done": 1}}
    )

    total: int = Field(ge=0)
    todo: int = Field(ge=0)
    doing: int = Field(ge=0)
    done: int = Field(ge=0)


__all__ = [
    "TaskCreate",
    "TaskListResponse",
    "TaskPageMeta",
    "TaskRead",
    "TaskStats",
    "TaskUpdate",
]
