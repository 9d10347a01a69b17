from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.orm import configure_mappers
from sqlmodel.ext.asyncio.session import AsyncSession

from task_studio.core.config import get_settings
from task_studio.core.security import create_access_token, verify_password
from task_studio.errors import NotFoundError, UnauthenticatedError, ValidationError
from task_studio.models import TaskStatus
from task_studio.repositories import SortOrder, TaskFilter
from task_studio.services import AuthService, TaskService, UserService, ensure_task_owner

pytestmark = pytest.mark.asyncio


async def test_user_service_creates_hashed_user(session: AsyncSession) -> None:
    user_service = UserService(session)

    created = await user_service.create_user(
        name="Alice",
        email="Alice@Example.com",
        password="example-password",
    )

    assert created.id is not None
    assert created.email == "alice@example.com"
    assert created.hashed_password != "example-password"
    assert verify_password("example-password", created.hashed_password)

    by_email = await user_service.get_user_by_email("ALICE@example.com")
    assert by_email is not None
    assert by_email.id == created.id
    assert await user_service.get_user(created.id + 1) is None


async def test_task_and_user_relationships_resolve(session: AsyncSession) -> None:
    configure_mappers()
    owner = await UserService(session).create_user(name="Owner", email="rel@example.com", password="pw-12345678")
    task = await TaskService(session, get_settings()).create_task(
        owner_id=owner.id,
        title="Linked",
        status=TaskStatus.TODO,
    )

    await session.refresh(task, ["owner"])
    await session.refresh(owner, ["tasks"])
    assert task.owner.id == owner.id
    assert [linked.id for linked in owner.tasks] == [task.id]


async def test_task_service_crud_flow(session: AsyncSession) -> None:
    owner = await UserService(session).create_user(name="Owner", email="owner@example.com", password="pw-12345678")
    task_service = TaskService(session, get_settings())

    task = await task_service.create_task(owner_id=owner.id, title="Draft plan", status=TaskStatus.TODO)
    assert task.id is not None
    assert task.status is TaskStatus.TODO
    assert task.description is None

    fetched = await task_service.get_task(task.id, owner.id)
    assert fetched.title == "Draft plan"

    previous_updated_at = task.updated_at
    updated = await task_service.update_task(task.id, owner.id, {"status": TaskStatus.DOING})
    assert updated.status is TaskStatus.DOING
    assert updated.title == "Draft plan"
    assert updated.updated_at >= previous_updated_at

    with pytest.raises(ValueError):
        await task_service.update_task(task.id, owner.id, {"owner_id": 999})

    await task_service.delete_task(task.id, owner.id)
    with pytest.raises(NotFoundError):
        await task_service.get_task(task.id, owner.id)


async def test_task_service_hides_foreign_tasks(session: AsyncSession) -> None:
    user_service = UserService(session)
    owner = await user_service.create_user(name="Owner", email="owner@example.com", password="pw-12345678")
    other = await user_service.create_user(name="Other", email="other@example.com", password="pw-12345678")
    task_service = TaskService(session, get_settings())
    task = await task_service.create_task(owner_id=owner.id, title="Mine", status=TaskStatus.TODO)

    with pytest.raises(NotFoundError) as foreign:
        await task_service.get_task(task.id, other.id)
    with pytest.raises(NotFoundError) as missing:
        await task_service.get_task(task.id + 100, other.id)
    assert foreign.value.message == missing.value.message

    with pytest.raises(NotFoundError):
        await task_service.update_task(task.id, other.id, {"title": "Stolen"})
    with pytest.raises(NotFoundError):
        await task_service.delete_task(task.id, other.id)

    assert (await task_service.get_task(task.id, owner.id)).title == "Mine"


async def test_ensure_task_owner_rejects_missing_task() -> None:
    with pytest.raises(NotFoundError):
        ensure_task_owner(None, 1)


async def test_list_and_stats_share_the_filter(session: AsyncSession) -> None:
    owner = await UserService(session).create_user(name="Owner", email="owner@example.com", password="pw-12345678")
    task_service = TaskService(session, get_settings())
    for index, status in enumerate([TaskStatus.TODO, TaskStatus.DOING, TaskStatus.DONE, TaskStatus.DONE]):
        await task_service.create_task(owner_id=owner.id, title=f"Invoice {index}", status=status)
    await task_service.create_task(owner_id=owner.id, title="Groceries", status=TaskStatus.TODO)

    task_filter = TaskFilter.build(owner_id=owner.id, search=" invoice ")
    page = await task_service.list_tasks(task_filter, sort=SortOrder.OLDEST, page=2, per_page=5)
    assert page.meta.total == 4
    assert page.meta.current_page == 2
    assert page.tasks == []

    first_page = await task_service.list_tasks(task_filter, sort=SortOrder.OLDEST)
    assert [task.title for task in first_page.tasks] == [f"Invoice {index}" for index in range(4)]

    counts = await task_service.get_task_stats(task_filter)
    assert (counts.total, counts.todo, counts.doing, counts.done) == (4, 1, 1, 2)

    done_only = TaskFilter.build(owner_id=owner.id, status="done")
    done_counts = await task_service.get_task_stats(done_only)
    assert (done_counts.total, done_counts.todo, done_counts.doing, done_counts.done) == (2, 0, 0, 2)


async def test_auth_service_register_and_authenticate(session: AsyncSession) -> None:
    auth_service = AuthService(session, get_settings())

    user = await auth_service.register_user(name="Bob", email="bob@example.com", password="pw-12345678")
    with pytest.raises(ValidationError):
        await auth_service.register_user(name="Bob", email="BOB@example.com", password="pw-12345678")

    assert (await auth_service.authenticate_user("bob@example.com", "pw-12345678")).id == user.id
    with pytest.raises(UnauthenticatedError):
        await auth_service.authenticate_user("bob@example.com", "wrong-password")

    issued = auth_service.issue_token(user)
    resolved, payload = await auth_service.resolve_user(issued.token)
    assert resolved.id == user.id
    assert payload.jti == issued.jti

    auth_service.revoke(payload)
    with pytest.raises(UnauthenticatedError) as revoked:
        auth_service.decode_access_token(issued.token)
    assert revoked.value.message == "Token has been revoked."


async def test_auth_service_rejects_expired_tokens(session: AsyncSession) -> None:
    settings = get_settings()
    expired = create_access_token(subject=1, settings=settings, expires_delta=timedelta(seconds=-5))

    with pytest.raises(UnauthenticatedError) as exc_info:
        AuthService(session, settings).decode_access_token(expired.token)
    assert exc_info.value.message == "Token has expired."


async def test_auth_service_rejects_tokens_for_deleted_users(session: AsyncSession) -> None:
    settings = get_settings()
    orphan = create_access_token(subject=4242, settings=settings)

    with pytest.raises(UnauthenticatedError):
        await AuthService(session, settings).resolve_user(orphan.token)
