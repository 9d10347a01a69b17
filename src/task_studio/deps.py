"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings
from .db.session import get_session
from .errors import UnauthenticatedError
from .models import User
from .schemas.auth import TokenPayload
from .services import AuthService

_bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""

    async for session in get_session(request.app.state.session_maker):
        yield session


SettingsDependency = Annotated[Settings, Depends(get_app_settings)]
DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


@dataclass(slots=True)
class AuthContext:
    """The authenticated caller together with the claims of their token."""

    user: User
    token: TokenPayload

    @property
    def user_id(self) -> int:
        if self.user.id is None:  # pragma: no cover - defensive guard
            raise UnauthenticatedError()
        return self.user.id


async def get_auth_context(
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> AuthContext:
    """Resolve the bearer token into the calling user or raise 401."""

    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError("Not authenticated.")
    user, payload = await AuthService(session, settings).resolve_user(credentials.credentials)
    return AuthContext(user=user, token=payload)


AuthContextDependency = Annotated[AuthContext, Depends(get_auth_context)]


async def get_current_user(auth: AuthContextDependency) -> User:
    return auth.user


CurrentUserDependency = Annotated[User, Depends(get_current_user)]


__all__ = [
    "AuthContext",
    "AuthContextDependency",
    "CurrentUserDependency",
    "DatabaseSessionDependency",
    "SettingsDependency",
    "get_app_settings",
    "get_auth_context",
    "get_current_user",
    "get_db_session",
]
