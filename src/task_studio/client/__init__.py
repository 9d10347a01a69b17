"""Asynchronous client and view-state controller for the Task Studio API."""

from __future__ import annotations

from .api import (
    ApiConnectionError,
    ApiError,
    NotFoundApiError,
    TaskStudioClient,
    UnauthenticatedApiError,
    ValidationApiError,
)
from .config import ClientSettings
from .controller import TaskBoardController
from .state import InvalidRowTransition, RowEditor, RowMode, TaskDraft, ViewMode, ViewState

__all__ = [
    "ApiConnectionError",
    "ApiError",
    "ClientSettings",
    "InvalidRowTransition",
    "NotFoundApiError",
    "RowEditor",
    "RowMode",
    "TaskBoardController",
    "TaskDraft",
    "TaskStudioClient",
    "UnauthenticatedApiError",
    "ValidationApiError",
    "ViewMode",
    "ViewState",
]
