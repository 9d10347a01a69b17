from __future__ import annotations

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from itertools import count

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from task_studio import models  # noqa: F401
from task_studio.client import ClientSettings, TaskStudioClient
from task_studio.core.config import get_settings
from task_studio.core.security import clear_token_blacklist
from task_studio.deps import get_db_session
from task_studio.main import create_app
from task_studio.models import User
from task_studio.services import AuthService, UserService


@dataclass(slots=True)
class AuthenticatedUser:
    user: User
    email: str
    password: str
    token: str

    @property
    def id(self) -> int:
        if self.user.id is None:  # pragma: no cover - defensive guard
            raise RuntimeError("Persisted user is missing an id.")
        return self.user.id

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


UserFactory = Callable[..., Awaitable[AuthenticatedUser]]


@pytest.fixture(autouse=True)
def _reset_token_blacklist() -> None:
    clear_token_blacklist()


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(session: AsyncSession) -> AsyncIterator[FastAPI]:
    get_settings.cache_clear()
    application = create_app()

    async def _override_db_session() -> AsyncIterator[AsyncSession]:
        yield session

    application.dependency_overrides[get_db_session] = _override_db_session
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http_client:
        yield http_client


@pytest_asyncio.fixture
async def live_app(tmp_path) -> AsyncIterator[FastAPI]:
    """Application backed by a file database with one session per request.

    The client controller issues concurrent requests, which must not share a
    single ``AsyncSession``.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'client.db'}")
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    get_settings.cache_clear()
    application = create_app()

    async def _override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = _override_db_session
    try:
        yield application
    finally:
        application.dependency_overrides.clear()
        await engine.dispose()


@pytest_asyncio.fixture
async def api_client(live_app: FastAPI) -> AsyncIterator[TaskStudioClient]:
    """A ``TaskStudioClient`` talking to the in-process application."""
    http_client = httpx.AsyncClient(
        transport=ASGITransport(app=live_app),
        base_url="http://testserver/api",
    )
    async with http_client:
        yield TaskStudioClient(ClientSettings(), http_client=http_client)


@pytest_asyncio.fixture
async def authenticated_user(session: AsyncSession) -> UserFactory:
    user_service = UserService(session)
    auth_service = AuthService(session, get_settings())
    counter = count()

    async def _factory(
        *,
        email: str | None = None,
        password: str = "StrongPass123!",
        name: str = "Task User",
    ) -> AuthenticatedUser:
        actual_email = email or f"user-{next(counter)}@example.com"
        user = await user_service.create_user(name=name, email=actual_email, password=password)
        token = auth_service.issue_token(user)
        return AuthenticatedUser(user=user, email=actual_email, password=password, token=token.token)

    return _factory
