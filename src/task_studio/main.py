"""Entry point for the Task Studio FastAPI application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import api_router, health_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.middleware import CorrelationIdMiddleware
from .db import create_engine, create_session_maker, init_db
from .deps import SettingsDependency
from .errors import register_exception_handlers
from .schemas.system import RootResponse

logger = logging.getLogger(__name__)


def _normalise_prefix(raw_prefix: str) -> str:
    prefix = raw_prefix.strip()
    if prefix and not prefix.startswith("/"):
        prefix = f"/{prefix}"
    prefix = prefix.rstrip("/")
    return "" if prefix == "/" else prefix


def create_app(settings: Settings | None = None) -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    router_prefix = _normalise_prefix(settings.api_prefix)
    openapi_url = f"{router_prefix}/openapi.json"

    engine = create_engine(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if settings.auto_create_tables:
            await init_db(engine)
            logger.info("Database tables ensured")
        try:
            yield
        finally:
            await engine.dispose()

    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        summary="Personal task tracking API with filtering, pagination and stats.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=openapi_url,
        lifespan=lifespan,
    )

    application.state.settings = settings
    application.state.engine = engine
    application.state.session_maker = create_session_maker(engine)

    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    application.include_router(api_router, prefix=router_prefix)
    application.include_router(health_router)

    @application.get("/", response_model=RootResponse, summary="Service metadata")
    async def read_root(app_settings: SettingsDependency) -> RootResponse:
        """Expose minimal service metadata at the root endpoint."""
        return RootResponse(
            name=app_settings.project_name,
            environment=app_settings.environment,
            version=app_settings.version,
            api_prefix=router_prefix,
        )

    register_exception_handlers(application)

    return application


app = create_app()


def run() -> None:
    """Convenience entry point for ``task-studio``."""
    settings = get_settings()
    uvicorn.run(
        "task_studio.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.reload,
        log_config=None,
    )
