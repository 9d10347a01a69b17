from __future__ import annotations

import logging

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from task_studio.core.logging import RequestContextFilter
from task_studio.errors import ApplicationError, DatabaseIntegrityError, ValidationError
from task_studio.main import create_app

pytestmark = pytest.mark.asyncio


@pytest.fixture()
def app():
    return create_app()


def _client(app, *, raise_app_exceptions: bool = True) -> AsyncClient:
    transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    return AsyncClient(transport=transport, base_url="http://test")


async def test_application_error_response_schema(app) -> None:
    @app.get("/error/application")
    async def trigger_application_error() -> None:  # pragma: no cover - defined in test
        raise ApplicationError(
            "Example failure",
            code="example_error",
            status_code=status.HTTP_418_IM_A_TEAPOT,
            details={"foo": "bar"},
        )

    async with _client(app) as client:
        response = await client.get("/error/application")

    assert response.status_code == status.HTTP_418_IM_A_TEAPOT
    request_id = response.headers["X-Request-ID"]
    assert response.json() == {
        "code": "example_error",
        "message": "Example failure",
        "details": {"foo": "bar", "request_id": request_id},
    }


async def test_field_validation_error_carries_location(app) -> None:
    @app.get("/error/field")
    async def trigger_field_error() -> None:  # pragma: no cover - defined in test
        raise ValidationError.for_field("email", "Email is already registered.")

    async with _client(app) as client:
        response = await client.get("/error/field")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["details"]["errors"] == [
        {"loc": ["body", "email"], "msg": "Email is already registered.", "type": "value_error"}
    ]


async def test_request_validation_error_response_schema(app) -> None:
    class ExamplePayload(BaseModel):
        name: str

    @app.post("/error/validation")
    async def create_item(_: ExamplePayload) -> None:  # pragma: no cover - defined in test
        return None

    async with _client(app) as client:
        response = await client.post("/error/validation", json={})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["message"] == "Request validation failed."
    assert payload["details"]["errors"]
    assert payload["details"]["request_id"] == response.headers["X-Request-ID"]


async def test_unknown_route_uses_error_envelope(app) -> None:
    async with _client(app) as client:
        response = await client.get("/error/not-found")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    payload = response.json()
    assert payload["code"] == "not_found"
    assert payload["message"]
    assert payload["details"]["request_id"] == response.headers["X-Request-ID"]


async def test_integrity_error_response_schema(app) -> None:
    @app.get("/error/database")
    async def trigger_integrity_error() -> None:  # pragma: no cover - defined in test
        raise IntegrityError("statement", {}, Exception("constraint"))

    async with _client(app) as client:
        response = await client.get("/error/database")

    assert response.status_code == status.HTTP_409_CONFLICT
    payload = response.json()
    assert payload["code"] == "db_integrity_error"
    assert payload["message"] == "Database integrity violation."


async def test_integrity_errors_share_one_envelope(app) -> None:
    @app.get("/error/database/raw")
    async def trigger_raw() -> None:  # pragma: no cover - defined in test
        raise IntegrityError("statement", {}, Exception("constraint"))

    @app.get("/error/database/domain")
    async def trigger_domain() -> None:  # pragma: no cover - defined in test
        raise DatabaseIntegrityError()

    async with _client(app) as client:
        raw = await client.get("/error/database/raw")
        domain = await client.get("/error/database/domain")

    assert raw.status_code == domain.status_code == status.HTTP_409_CONFLICT
    for response in (raw, domain):
        payload = response.json()
        assert (payload["code"], payload["message"]) == ("db_integrity_error", "Database integrity violation.")


async def test_unhandled_error_hides_internal_details(app) -> None:
    @app.get("/error/unhandled")
    async def trigger_unhandled_error() -> None:  # pragma: no cover - defined in test
        raise RuntimeError("Sensitive detail")

    async with _client(app, raise_app_exceptions=False) as client:
        response = await client.get("/error/unhandled")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    payload = response.json()
    assert payload["code"] == "server_error"
    assert payload["message"] == "Internal server error."
    assert "Sensitive" not in response.text


async def test_incoming_request_id_is_echoed(app) -> None:
    async with _client(app) as client:
        response = await client.get("/healthz", headers={"X-Request-ID": "req-from-caller"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "req-from-caller"


class _InMemoryHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.INFO)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


async def test_request_id_attached_to_logs(app) -> None:
    logger = logging.getLogger("tests.error_handling")
    handler = _InMemoryHandler()
    handler.addFilter(RequestContextFilter())
    logger.addHandler(handler)
    original_level = logger.level
    logger.setLevel(logging.INFO)

    @app.get("/log")
    async def emit_log() -> dict[str, str]:  # pragma: no cover - defined in test
        logger.info("Log entry")
        return {"status": "ok"}

    try:
        async with _client(app) as client:
            response = await client.get("/log")
    finally:
        logger.removeHandler(handler)
        logger.setLevel(original_level)
        handler.close()

    request_id = response.headers["X-Request-ID"]
    matching = [record for record in handler.records if record.getMessage() == "Log entry"]
    assert matching
    assert getattr(matching[0], "request_id", None) == request_id


async def test_root_reports_service_metadata(app) -> None:
    async with _client(app) as client:
        response = await client.get("/")

    payload = response.json()
    assert payload["name"] == "Task Studio"
    assert payload["api_prefix"] == "/api"
