"""Query construction for filtered, sorted task listings.

Statements are built here and executed by :class:`TaskRepository`, so the
same predicate drives both the paginated list and the status counts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

import sqlalchemy as sa
from sqlalchemy.sql import Select

from ..models import Task, TaskStatus

StatementType = TypeVar("StatementType", bound=Select[Any])

ALL_STATUSES = "all"
_LIKE_ESCAPE = "\\"


class SortOrder(str, Enum):
    """Creation-time ordering for task listings."""

    NEWEST = "newest"
    OLDEST = "oldest"


def parse_status_filter(raw: str | TaskStatus | None) -> TaskStatus | None:
    """Translate a ``status`` query value into a status predicate.

    ``None``, blank and ``"all"`` mean no predicate. Unrecognised values are
    ignored rather than rejected.
    """

    if raw is None or isinstance(raw, TaskStatus):
        return raw
    normalized = raw.strip().lower()
    if not normalized or normalized == ALL_STATUSES:
        return None
    try:
        return TaskStatus(normalized)
    except ValueError:
        return None


def escape_like(value: str) -> str:
    """Escape ``LIKE`` wildcards so ``value`` matches literally."""

    return (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )


@dataclass(frozen=True, slots=True)
class TaskFilter:
    """Predicate describing an owner's filtered set of tasks."""

    owner_id: int
    search: str = ""
    status: TaskStatus | None = None

    @classmethod
    def build(
        cls,
        *,
        owner_id: int,
        search: str | None = None,
        status: str | TaskStatus | None = None,
    ) -> "TaskFilter":
        return cls(
            owner_id=owner_id,
            search=(search or "").strip(),
            status=parse_status_filter(status),
        )

    def apply(self, statement: StatementType) -> StatementType:
        """Return ``statement`` restricted to rows matching this filter."""

        statement = statement.where(Task.owner_id == self.owner_id)
        if self.search:
            pattern = f"%{escape_like(self.search)}%"
            statement = statement.where(
                sa.or_(
                    Task.title.ilike(pattern, escape=_LIKE_ESCAPE),
                    Task.description.ilike(pattern, escape=_LIKE_ESCAPE),
                )
            )
        if self.status is not None:
            statement = statement.where(Task.status == self.status)
        return statement


def order_by_created(statement: StatementType, sort: SortOrder) -> StatementType:
    """Order by creation time, breaking ties by insertion order."""

    if sort is SortOrder.OLDEST:
        return statement.order_by(Task.created_at.asc(), Task.id.asc())
    return statement.order_by(Task.created_at.desc(), Task.id.desc())


__all__ = [
    "ALL_STATUSES",
    "SortOrder",
    "TaskFilter",
    "escape_like",
    "order_by_created",
    "parse_status_filter",
]
