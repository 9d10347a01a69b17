"""View and per-row editing state held by the board controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..models import TaskStatus
from ..repositories.queries import SortOrder
from ..schemas import TaskRead


class ViewMode(str, Enum):
    LIST = "list"
    BOARD = "board"


@dataclass(slots=True)
class ViewState:
    """Filter, sort and pagination inputs for the next reload."""

    search: str = ""
    status_filter: TaskStatus | None = None
    sort: SortOrder = SortOrder.NEWEST
    page: int = 1
    per_page: int = 8
    view_mode: ViewMode = ViewMode.LIST

    @property
    def is_board(self) -> bool:
        return self.view_mode is ViewMode.BOARD

    def effective_page(self) -> int:
        return 1 if self.is_board else self.page

    def effective_per_page(self, board_page_size: int) -> int:
        return board_page_size if self.is_board else self.per_page


class RowMode(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    SAVING = "saving"


class InvalidRowTransition(RuntimeError):
    """Raised when a row edit action is not allowed in the row's current mode."""


@dataclass(slots=True)
class TaskDraft:
    title: str
    description: str
    status: TaskStatus

    @classmethod
    def from_task(cls, task: TaskRead) -> "TaskDraft":
        return cls(title=task.title, description=task.description or "", status=task.status)


_ALLOWED_TRANSITIONS: dict[RowMode, frozenset[RowMode]] = {
    RowMode.VIEWING: frozenset({RowMode.EDITING}),
    RowMode.EDITING: frozenset({RowMode.VIEWING, RowMode.SAVING}),
    RowMode.SAVING: frozenset({RowMode.VIEWING, RowMode.EDITING}),
}


@dataclass(slots=True)
class RowEditor:
    """Edit buffer for one task row.

    ``viewing -> editing -> saving -> viewing`` on success, ``saving ->
    editing`` on failure with the draft kept. Drafts live here, never in the
    committed task list.
    """

    task_id: int
    mode: RowMode = RowMode.VIEWING
    draft: TaskDraft | None = field(default=None)

    def _transition(self, target: RowMode) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.mode]:
            raise InvalidRowTransition(
                f"Task {self.task_id} cannot move from {self.mode.value} to {target.value}."
            )
        self.mode = target

    def start_edit(self, task: TaskRead) -> TaskDraft:
        # saving -> editing is reserved for save_failed()
        if self.mode is not RowMode.VIEWING:
            raise InvalidRowTransition(f"Task {self.task_id} is already {self.mode.value}.")
        self._transition(RowMode.EDITING)
        self.draft = TaskDraft.from_task(task)
        return self.draft

    def update_draft(
        self,
        *,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | None = None,
    ) -> TaskDraft:
        if self.mode is not RowMode.EDITING or self.draft is None:
            raise InvalidRowTransition(f"Task {self.task_id} is not being edited.")
        if title is not None:
            self.draft.title = title
        if description is not None:
            self.draft.description = description
        if status is not None:
            self.draft.status = status
        return self.draft

    def cancel(self) -> None:
        if self.mode is not RowMode.EDITING:
            raise InvalidRowTransition(f"Task {self.task_id} has no edit to cancel.")
        self._transition(RowMode.VIEWING)
        self.draft = None

    def begin_save(self) -> TaskDraft:
        if self.mode is not RowMode.EDITING or self.draft is None:
            raise InvalidRowTransition(f"Task {self.task_id} is not being edited.")
        self._transition(RowMode.SAVING)
        return self.draft

    def save_succeeded(self) -> None:
        if self.mode is not RowMode.SAVING:
            raise InvalidRowTransition(f"Task {self.task_id} is not saving.")
        self._transition(RowMode.VIEWING)
        self.draft = None

    def save_failed(self) -> None:
        if self.mode is not RowMode.SAVING:
            raise InvalidRowTransition(f"Task {self.task_id} is not saving.")
        self._transition(RowMode.EDITING)


__all__ = [
    "InvalidRowTransition",
    "RowEditor",
    "RowMode",
    "TaskDraft",
    "ViewMode",
    "ViewState",
]
