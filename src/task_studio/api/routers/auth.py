"""Routes handling bearer-token authentication."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from ...core.security import GeneratedToken
from ...deps import (
    AuthContextDependency,
    CurrentUserDependency,
    DatabaseSessionDependency,
    SettingsDependency,
)
from ...models import User
from ...schemas import AuthResponse, LoginRequest, RegisterRequest, UserPublic
from ...services import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User, token: GeneratedToken) -> AuthResponse:
    return AuthResponse(
        user=UserPublic.model_validate(user),
        token=token.token,
        expires_at=token.expires_at,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
)
async def register(
    payload: RegisterRequest,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    service = AuthService(session, settings)
    user = await service.register_user(
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return _auth_response(user, service.issue_token(user))


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Authenticate using email and password",
)
async def login(
    payload: LoginRequest,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> AuthResponse:
    service = AuthService(session, settings)
    user = await service.authenticate_user(payload.email, payload.password)
    return _auth_response(user, service.issue_token(user))


@router.get("/me", response_model=UserPublic, summary="Return the authenticated user")
async def read_current_user(current_user: CurrentUserDependency) -> UserPublic:
    return UserPublic.model_validate(current_user)


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke the presented bearer token",
)
async def logout(
    auth: AuthContextDependency,
    session: DatabaseSessionDependency,
    settings: SettingsDependency,
) -> Response:
    AuthService(session, settings).revoke(auth.token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
