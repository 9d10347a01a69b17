"""Thin asynchronous wrapper around the Task Studio HTTP API."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..models import TaskStatus
from ..repositories.queries import ALL_STATUSES, SortOrder
from ..schemas import (
    AuthResponse,
    ErrorResponse,
    TaskCreate,
    TaskListResponse,
    TaskRead,
    TaskStats,
    TaskUpdate,
    UserPublic,
)
from .config import ClientSettings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiError(Exception):
    """An error response (or no response at all) from the API."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details


class UnauthenticatedApiError(ApiError):
    """The bearer token is missing, invalid, expired or revoked."""


class NotFoundApiError(ApiError):
    """The task does not exist or belongs to another user."""


class ValidationApiError(ApiError):
    """The server rejected the payload or query parameters."""

    @property
    def field_errors(self) -> dict[str, list[str]]:
        """Group error messages by the name of the offending field."""
        grouped: dict[str, list[str]] = {}
        errors = self.details.get("errors", []) if isinstance(self.details, dict) else []
        for error in errors:
            loc = error.get("loc") or ["__root__"]
            grouped.setdefault(str(loc[-1]), []).append(error.get("msg", ""))
        return grouped


class ApiConnectionError(ApiError):
    """The request never produced an HTTP response."""


_ERRORS_BY_STATUS: dict[int, type[ApiError]] = {
    401: UnauthenticatedApiError,
    404: NotFoundApiError,
    422: ValidationApiError,
}


def _error_from_response(response: httpx.Response) -> ApiError:
    error_type = _ERRORS_BY_STATUS.get(response.status_code, ApiError)
    try:
        envelope = ErrorResponse.model_validate(response.json())
    except ValueError:
        return error_type(
            response.text or response.reason_phrase,
            status_code=response.status_code,
        )
    return error_type(
        envelope.message,
        status_code=response.status_code,
        code=envelope.code,
        details=envelope.details,
    )


def _validate_payload(model: type[ModelT], fields: dict[str, Any]) -> ModelT:
    """Check a request body locally, reporting failures like a 422 from the server."""
    try:
        return model.model_validate(fields)
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False)
        raise ValidationApiError(
            errors[0]["msg"] if errors else "The request is invalid.",
            code="validation_error",
            details={"errors": errors},
        ) from exc


def _filter_params(search: str | None, status: TaskStatus | str | None) -> dict[str, str]:
    params: dict[str, str] = {}
    if search and search.strip():
        params["search"] = search.strip()
    if status is not None:
        value = status.value if isinstance(status, TaskStatus) else status
        if value != ALL_STATUSES:
            params["status"] = value
    return params


class TaskStudioClient:
    """Bearer-authenticated client for the task and auth endpoints.

    Either pass a configured ``http_client`` (tests hand in one bound to an
    ``ASGITransport``) or let the client build one from ``settings``.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._token = token
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self._settings.api_base_url,
            timeout=self._settings.timeout_seconds,
        )

    @property
    def token(self) -> str | None:
        return self._token

    def set_token(self, token: str | None) -> None:
        self._token = token

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> "TaskStudioClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if authenticated and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            response = await self._http.request(method, path, params=params, json=json, headers=headers)
        except httpx.TransportError as exc:
            raise ApiConnectionError(f"Could not reach the API: {exc}") from exc
        if response.is_error:
            raise _error_from_response(response)
        return response

    @staticmethod
    def _parse(response: httpx.Response, model: type[ModelT]) -> ModelT:
        try:
            return model.model_validate(response.json())
        except ValueError as exc:
            raise ApiError(
                "Unexpected response from the API.",
                status_code=response.status_code,
            ) from exc

    async def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        password_confirmation: str,
    ) -> AuthResponse:
        response = await self._request(
            "POST",
            "/auth/register",
            json={
                "name": name,
                "email": email,
                "password": password,
                "password_confirmation": password_confirmation,
            },
            authenticated=False,
        )
        auth = self._parse(response, AuthResponse)
        self._token = auth.token
        return auth

    async def login(self, *, email: str, password: str) -> AuthResponse:
        response = await self._request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        auth = self._parse(response, AuthResponse)
        self._token = auth.token
        return auth

    async def me(self) -> UserPublic:
        return self._parse(await self._request("GET", "/auth/me"), UserPublic)

    async def logout(self) -> None:
        """Revoke the current token server side, then forget it locally."""
        try:
            await self._request("POST", "/auth/logout")
        finally:
            self._token = None

    async def list_tasks(
        self,
        *,
        search: str | None = None,
        status: TaskStatus | str | None = None,
        sort: SortOrder = SortOrder.NEWEST,
        page: int = 1,
        per_page: int | None = None,
    ) -> TaskListResponse:
        params: dict[str, Any] = _filter_params(search, status)
        params["sort"] = sort.value
        params["page"] = page
        if per_page is not None:
            params["per_page"] = per_page
        response = await self._request("GET", "/tasks", params=params)
        return self._parse(response, TaskListResponse)

    async def task_stats(
        self,
        *,
        search: str | None = None,
        status: TaskStatus | str | None = None,
    ) -> TaskStats:
        response = await self._request("GET", "/tasks/stats", params=_filter_params(search, status))
        return self._parse(response, TaskStats)

    async def create_task(
        self,
        *,
        title: str,
        description: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
    ) -> TaskRead:
        payload = _validate_payload(
            TaskCreate,
            {"title": title, "description": description, "status": status},
        )
        response = await self._request("POST", "/tasks", json=payload.model_dump(mode="json"))
        return self._parse(response, TaskRead)

    async def get_task(self, task_id: int) -> TaskRead:
        return self._parse(await self._request("GET", f"/tasks/{task_id}"), TaskRead)

    async def update_task(self, task_id: int, **changes: Any) -> TaskRead:
        """Send a partial update containing only ``changes``."""
        payload = _validate_payload(TaskUpdate, changes)
        response = await self._request(
            "PATCH",
            f"/tasks/{task_id}",
            json=payload.model_dump(mode="json", exclude_unset=True),
        )
        return self._parse(response, TaskRead)

    async def delete_task(self, task_id: int) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")
        logger.debug("Task deleted through API", extra={"task_id": task_id})


__all__ = [
    "ApiConnectionError",
    "ApiError",
    "NotFoundApiError",
    "TaskStudioClient",
    "UnauthenticatedApiError",
    "ValidationApiError",
]
