"""View-state controller driving the task list and board through the API.

The controller owns what a task screen shows: the committed page of tasks,
its pagination metadata and stats, per-row edit buffers, drag state and the
error/notice banners. Every change to the view inputs schedules a debounced
reload; a newer reload cancels the pending one and a generation counter
discards results that arrive after a newer reload started.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterator

from ..models import TaskStatus
from ..repositories.queries import SortOrder, parse_status_filter
from ..schemas import TaskListResponse, TaskPageMeta, TaskRead, TaskStats, UserPublic
from .api import ApiError, TaskStudioClient, UnauthenticatedApiError
from .config import ClientSettings
from .state import InvalidRowTransition, RowEditor, RowMode, TaskDraft, ViewMode, ViewState

logger = logging.getLogger(__name__)

SIGN_IN_REQUIRED_MESSAGE = "Please sign in first."
LOAD_FAILED_MESSAGE = "Could not load tasks. Check that the API is running."
TITLE_REQUIRED_MESSAGE = "Task title is required."
CREDENTIALS_REQUIRED_MESSAGE = "Email and password are required."


class TaskBoardController:
    """Client-side state machine for one signed-in user's task screen."""

    def __init__(self, client: TaskStudioClient, settings: ClientSettings | None = None) -> None:
        self._client = client
        self._settings = settings or ClientSettings()
        self.view = ViewState(per_page=self._settings.default_page_size)
        self.user: UserPublic | None = None
        self.tasks: list[TaskRead] = []
        self.meta: TaskPageMeta | None = None
        self.server_stats: TaskStats | None = None
        self.error: str | None = None
        self.notice: str | None = None
        self.loading = False
        self.submitting = False
        self.rows: dict[int, RowEditor] = {}
        self.status_updating: set[int] = set()
        self.deleting_id: int | None = None
        self.dragging_id: int | None = None
        self.drag_over_status: TaskStatus | None = None
        self._generation = 0
        self._pending: asyncio.Task[None] | None = None
        self._notice_handle: asyncio.TimerHandle | None = None

    # -- derived state -------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_authenticated(self) -> bool:
        return self._client.token is not None and self.user is not None

    @property
    def stats(self) -> TaskStats:
        """Server stats, or counts over the loaded rows when those are unavailable."""
        if self.server_stats is not None:
            return self.server_stats
        counts = {status: 0 for status in TaskStatus}
        for task in self.tasks:
            counts[task.status] += 1
        return TaskStats(
            total=len(self.tasks),
            todo=counts[TaskStatus.TODO],
            doing=counts[TaskStatus.DOING],
            done=counts[TaskStatus.DONE],
        )

    def tasks_by_status(self) -> dict[TaskStatus, list[TaskRead]]:
        grouped: dict[TaskStatus, list[TaskRead]] = {status: [] for status in TaskStatus}
        for task in self.tasks:
            grouped[task.status].append(task)
        return grouped

    def row_mode(self, task_id: int) -> RowMode:
        row = self.rows.get(task_id)
        return row.mode if row is not None else RowMode.VIEWING

    # -- view inputs ---------------------------------------------------

    def set_search(self, search: str) -> None:
        self._begin_action()
        self.view.search = search
        self._reset_page_and_refresh()

    def set_status_filter(self, status: TaskStatus | str | None) -> None:
        self._begin_action()
        self.view.status_filter = parse_status_filter(status)
        self._reset_page_and_refresh()

    def set_sort(self, sort: SortOrder | str) -> None:
        self._begin_action()
        self.view.sort = SortOrder(sort)
        self._reset_page_and_refresh()

    def set_page_size(self, per_page: int) -> None:
        self._begin_action()
        self.view.per_page = per_page
        self._reset_page_and_refresh()

    def set_page(self, page: int) -> None:
        self._begin_action()
        self.view.page = max(1, page)
        self.schedule_refresh()

    def set_view_mode(self, mode: ViewMode | str) -> None:
        self._begin_action()
        self.view.view_mode = ViewMode(mode)
        self.drag_over_status = None
        self.dragging_id = None
        self.schedule_refresh()

    def _reset_page_and_refresh(self) -> None:
        self.view.page = 1
        self.schedule_refresh()

    # -- reloads -------------------------------------------------------

    def schedule_refresh(self) -> asyncio.Task[None] | None:
        """Debounce a reload, superseding any reload still pending or in flight."""
        self._generation += 1
        self._cancel_pending()
        if self._client.token is None:
            return None
        self._pending = asyncio.get_running_loop().create_task(self._debounced_load(self._generation))
        return self._pending

    async def refresh_now(self) -> None:
        """Reload immediately, superseding any scheduled reload."""
        self._generation += 1
        self._cancel_pending()
        if self._client.token is None:
            return
        await self._load(self._generation)

    async def wait_idle(self) -> None:
        """Wait until no reload is pending, including ones scheduled meanwhile."""
        while self._pending is not None and not self._pending.done():
            await asyncio.wait({self._pending})

    def _cancel_pending(self) -> None:
        pending = self._pending
        if pending is not None and not pending.done() and pending is not asyncio.current_task():
            pending.cancel()
        self._pending = None

    async def _debounced_load(self, generation: int) -> None:
        await asyncio.sleep(self._settings.debounce_seconds)
        await self._load(generation)

    async def _load(self, generation: int) -> None:
        view = self.view
        search = view.search.strip() or None
        self.loading = True
        loop = asyncio.get_running_loop()
        list_request = loop.create_task(
            self._client.list_tasks(
                search=search,
                status=view.status_filter,
                sort=view.sort,
                page=view.effective_page(),
                per_page=view.effective_per_page(self._settings.board_page_size),
            )
        )
        stats_request = loop.create_task(self._load_stats(search, view.status_filter))
        try:
            listing = await list_request
            stats = await stats_request
        except UnauthenticatedApiError:
            if generation == self._generation:
                self._expire_session()
            return
        except ApiError as exc:
            if generation == self._generation:
                logger.warning("Task reload failed", extra={"error": exc.message})
                self.error = LOAD_FAILED_MESSAGE
            return
        finally:
            # a failed or cancelled reload must not leave its sibling request running
            list_request.cancel()
            stats_request.cancel()
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug(
                "Discarding superseded reload",
                extra={"generation": generation, "current": self._generation},
            )
            return
        self._apply_listing(listing, stats)

    async def _load_stats(self, search: str | None, status: TaskStatus | None) -> TaskStats | None:
        try:
            return await self._client.task_stats(search=search, status=status)
        except ApiError as exc:
            logger.debug("Stats unavailable, using loaded rows", extra={"error": exc.message})
            return None

    def _apply_listing(self, listing: TaskListResponse, stats: TaskStats | None) -> None:
        self.tasks = list(listing.data)
        self.meta = listing.meta
        self.server_stats = stats
        if not self.view.is_board and self.view.page > listing.meta.last_page:
            self.view.page = listing.meta.last_page
            self.schedule_refresh()

    # -- banners and errors --------------------------------------------

    def _begin_action(self) -> None:
        self.error = None

    def _show_notice(self, message: str) -> None:
        self.notice = message
        if self._notice_handle is not None:
            self._notice_handle.cancel()
        self._notice_handle = asyncio.get_running_loop().call_later(
            self._settings.notice_seconds,
            self._clear_notice,
        )

    def _clear_notice(self) -> None:
        self.notice = None
        self._notice_handle = None

    def _require_session(self) -> bool:
        if self._client.token is None:
            self.error = SIGN_IN_REQUIRED_MESSAGE
            return False
        return True

    @contextlib.contextmanager
    def _api_errors(self) -> Iterator[None]:
        """Turn API failures into controller state instead of exceptions."""
        try:
            yield
        except UnauthenticatedApiError:
            self._expire_session()
        except ApiError as exc:
            logger.warning(
                "Task action failed",
                extra={"status_code": exc.status_code, "error": exc.message},
            )
            self.error = exc.message

    def _clear_session(self) -> None:
        self._generation += 1
        self._cancel_pending()
        self._client.set_token(None)
        self.user = None
        self.tasks = []
        self.meta = None
        self.server_stats = None
        self.rows.clear()
        self.status_updating.clear()
        self.deleting_id = None
        self.dragging_id = None
        self.drag_over_status = None
        self.loading = False

    def _expire_session(self) -> None:
        self._clear_session()
        self.error = SIGN_IN_REQUIRED_MESSAGE

    def _find_task(self, task_id: int) -> TaskRead | None:
        return next((task for task in self.tasks if task.id == task_id), None)

    # -- task actions --------------------------------------------------

    async def create_task(
        self,
        *,
        title: str,
        description: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
    ) -> TaskRead | None:
        self._begin_action()
        if not self._require_session():
            return None
        if not title.strip():
            self.error = TITLE_REQUIRED_MESSAGE
            return None

        created: TaskRead | None = None
        self.submitting = True
        try:
            with self._api_errors():
                created = await self._client.create_task(
                    title=title.strip(),
                    description=(description or "").strip() or None,
                    status=status,
                )
        finally:
            self.submitting = False
        if created is None:
            return None

        if self.view.sort is SortOrder.NEWEST and self.view.page != 1:
            self.view.page = 1
        self.schedule_refresh()
        self._show_notice("Task created.")
        return created

    def start_edit(self, task_id: int) -> TaskDraft:
        task = self._find_task(task_id)
        if task is None:
            raise KeyError(task_id)
        self._begin_action()
        row = self.rows.setdefault(task_id, RowEditor(task_id))
        return row.start_edit(task)

    def edit_draft(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | None = None,
    ) -> TaskDraft:
        return self._row(task_id).update_draft(title=title, description=description, status=status)

    def cancel_edit(self, task_id: int) -> None:
        self._row(task_id).cancel()
        del self.rows[task_id]

    def _row(self, task_id: int) -> RowEditor:
        row = self.rows.get(task_id)
        if row is None:
            raise InvalidRowTransition(f"Task {task_id} is not being edited.")
        return row

    async def save_edit(self, task_id: int) -> TaskRead | None:
        self._begin_action()
        row = self._row(task_id)
        if not self._require_session():
            return None
        if row.draft is None or not row.draft.title.strip():
            self.error = TITLE_REQUIRED_MESSAGE
            return None

        draft = row.begin_save()
        updated: TaskRead | None = None
        try:
            with self._api_errors():
                updated = await self._client.update_task(
                    task_id,
                    title=draft.title.strip(),
                    description=draft.description.strip() or None,
                    status=draft.status,
                )
        finally:
            if updated is None:
                row.save_failed()
        if updated is None:
            return None

        row.save_succeeded()
        self.rows.pop(task_id, None)
        self.schedule_refresh()
        self._show_notice("Task updated.")
        return updated

    async def change_status(self, task_id: int, status: TaskStatus) -> bool:
        """Issue a status-only update. The row moves once the reload lands."""
        self._begin_action()
        if not self._require_session():
            return False
        task = self._find_task(task_id)
        if task is None or task.status == status:
            return False

        updated: TaskRead | None = None
        self.status_updating.add(task_id)
        try:
            with self._api_errors():
                updated = await self._client.update_task(task_id, status=status)
        finally:
            self.status_updating.discard(task_id)
        if updated is None:
            return False

        self._show_notice("Task status updated.")
        self.schedule_refresh()
        return True

    async def delete_task(self, task_id: int) -> bool:
        self._begin_action()
        if not self._require_session():
            return False

        deleted = False
        self.deleting_id = task_id
        try:
            with self._api_errors():
                await self._client.delete_task(task_id)
                deleted = True
        finally:
            self.deleting_id = None
        if not deleted:
            return False

        self.rows.pop(task_id, None)
        if len(self.tasks) == 1 and self.view.page > 1:
            self.view.page -= 1
        self.schedule_refresh()
        self._show_notice("Task deleted.")
        return True

    # -- drag and drop -------------------------------------------------

    def can_drag(self, task_id: int) -> bool:
        return (
            self.view.is_board
            and self._find_task(task_id) is not None
            and self.row_mode(task_id) is RowMode.VIEWING
            and task_id not in self.status_updating
        )

    def start_drag(self, task_id: int) -> bool:
        if not self.can_drag(task_id):
            return False
        self.dragging_id = task_id
        return True

    def drag_over(self, status: TaskStatus) -> None:
        if self.dragging_id is not None:
            self.drag_over_status = status

    def end_drag(self) -> None:
        self.dragging_id = None
        self.drag_over_status = None

    async def drop(self, status: TaskStatus) -> bool:
        task_id = self.dragging_id
        self.end_drag()
        if task_id is None:
            return False
        return await self.change_status(task_id, status)

    # -- session -------------------------------------------------------

    async def login(self, *, email: str, password: str) -> bool:
        self._begin_action()
        if not email.strip() or not password:
            self.error = CREDENTIALS_REQUIRED_MESSAGE
            return False
        try:
            auth = await self._client.login(email=email.strip(), password=password)
        except ApiError as exc:
            self.error = exc.message
            return False
        self.user = auth.user
        self.schedule_refresh()
        self._show_notice("Signed in.")
        return True

    async def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        password_confirmation: str,
    ) -> bool:
        self._begin_action()
        if not email.strip() or not password:
            self.error = CREDENTIALS_REQUIRED_MESSAGE
            return False
        try:
            auth = await self._client.register(
                name=name,
                email=email.strip(),
                password=password,
                password_confirmation=password_confirmation,
            )
        except ApiError as exc:
            self.error = exc.message
            return False
        self.user = auth.user
        self.schedule_refresh()
        self._show_notice("Account created.")
        return True

    async def restore_session(self, token: str) -> bool:
        """Adopt a stored token if the API still accepts it."""
        self._client.set_token(token)
        try:
            self.user = await self._client.me()
        except ApiError as exc:
            logger.info("Stored session rejected", extra={"status_code": exc.status_code})
            self._clear_session()
            return False
        self.schedule_refresh()
        return True

    async def logout(self) -> None:
        if self._client.token is None:
            return
        try:
            await self._client.logout()
        except ApiError as exc:
            logger.warning("Logout request failed", extra={"error": exc.message})
        finally:
            self._clear_session()
        self._show_notice("Signed out.")

    async def aclose(self) -> None:
        """Cancel pending reloads and timers."""
        pending = self._pending
        self._cancel_pending()
        if pending is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await pending
        if self._notice_handle is not None:
            self._notice_handle.cancel()
            self._notice_handle = None


__all__ = [
    "CREDENTIALS_REQUIRED_MESSAGE",
    "LOAD_FAILED_MESSAGE",
    "SIGN_IN_REQUIRED_MESSAGE",
    "TITLE_REQUIRED_MESSAGE",
    "TaskBoardController",
]
