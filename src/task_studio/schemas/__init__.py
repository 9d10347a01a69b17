"""Pydantic schemas for public interfaces."""

from __future__ import annotations

from .auth import AuthResponse, LoginRequest, RegisterRequest, TokenPayload
from .system import ErrorResponse, HealthCheckResponse, RootResponse
from .task import TaskCreate, TaskListResponse, TaskPageMeta, TaskRead, TaskStats, TaskUpdate
from .user import UserPublic

__all__ = [
    "AuthResponse",
    "ErrorResponse",
    "HealthCheckResponse",
    "LoginRequest",
    "RegisterRequest",
    "RootResponse",
    "TaskCreate",
    "TaskListResponse",
    "TaskPageMeta",
    "TaskRead",
    "TaskStats",
    "TaskUpdate",
    "TokenPayload",
    "UserPublic",
]
