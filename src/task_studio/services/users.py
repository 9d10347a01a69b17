"""Service layer orchestrating user-related repository operations."""

from __future__ import annotations

from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.security import get_password_hash
from ..models import User
from ..repositories import UserRepository


class UserService:
    """High-level business operations for ``User`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = UserRepository(session)

    async def create_user(self, *, name: str, email: str, password: str) -> User:
        """Create and persist a new user record.

        Emails are stored lower-cased so lookups and the unique index agree.
        """
        user = User(
            name=name,
            email=email.lower(),
            hashed_password=get_password_hash(password),
        )
        await self._repository.add(user)
        await self._session.commit()
        await self._repository.refresh(user)
        return user

    async def get_user(self, user_id: int) -> User | None:
        """Fetch a user by primary key."""
        return await self._repository.get(user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        """Fetch a user by their unique email address."""
        return await self._repository.get_by_email(email)


__all__ = ["UserService"]
