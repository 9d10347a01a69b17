"""Authentication service covering registration, login and token revocation."""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import Settings
from ..core.security import (
    ExpiredSignatureError,
    GeneratedToken,
    JWTError,
    blacklist_token,
    create_access_token,
    decode_token,
    is_token_blacklisted,
    verify_password,
)
from ..errors import UnauthenticatedError, ValidationError
from ..models import User
from ..schemas.auth import TokenPayload
from .users import UserService

logger = logging.getLogger(__name__)


class AuthService:
    """Bearer-token authentication workflows."""

    def __init__(self, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._user_service = UserService(session)

    async def register_user(self, *, name: str, email: str, password: str) -> User:
        existing = await self._user_service.get_user_by_email(email)
        if existing is not None:
            raise ValidationError.for_field("email", "Email is already registered.")
        user = await self._user_service.create_user(name=name, email=email, password=password)
        logger.info("User registered", extra={"user_id": user.id})
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        user = await self._user_service.get_user_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise UnauthenticatedError("Incorrect email or password.")
        return user

    def issue_token(self, user: User) -> GeneratedToken:
        if user.id is None:  # pragma: no cover - defensive guard
            raise UnauthenticatedError("User must be persisted before issuing tokens.")
        return create_access_token(subject=user.id, settings=self._settings)

    def decode_access_token(self, token: str) -> TokenPayload:
        """Validate ``token`` and return its claims, rejecting revoked tokens."""
        try:
            claims = decode_token(token=token, settings=self._settings)
        except ExpiredSignatureError as exc:
            raise UnauthenticatedError("Token has expired.") from exc
        except JWTError as exc:
            raise UnauthenticatedError() from exc

        try:
            payload = TokenPayload.model_validate(claims)
        except PydanticValidationError as exc:
            raise UnauthenticatedError() from exc

        if is_token_blacklisted(payload.jti):
            raise UnauthenticatedError("Token has been revoked.")
        return payload

    async def resolve_user(self, token: str) -> tuple[User, TokenPayload]:
        payload = self.decode_access_token(token)
        try:
            user_id = int(payload.sub)
        except ValueError as exc:
            raise UnauthenticatedError() from exc
        user = await self._user_service.get_user(user_id)
        if user is None:
            raise UnauthenticatedError()
        return user, payload

    def revoke(self, payload: TokenPayload) -> None:
        blacklist_token(payload.jti, payload.exp)
        logger.info("Token revoked", extra={"user_id": payload.sub})


__all__ = ["AuthService"]
