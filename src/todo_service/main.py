from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import register_exception_handlers
from .logger import setup_logger
from .middleware import install_request_logging
from .repositories import Repository, get_repository
from .routers import health as health_router
from .routers import todos as todos_router
from .service import Clock, TodoService
from .settings import Settings, get_settings
from .sweeper import PastDueSweeper
from .utils import utc_now

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "Todo items with a NOT_DONE / DONE / PAST_DUE lifecycle.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the past-due sweeper for as long as the application is serving."""
    sweeper: Optional[PastDueSweeper] = app.state.sweeper
    if sweeper is not None:
        sweeper.start()
    try:
        yield
    finally:
        if sweeper is not None and sweeper.is_running:
            sweeper.stop()


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[Repository] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; read from the environment when omitted.
        repository: Storage backend; built from settings when omitted.
        clock: Source of "now" for the lifecycle rules.
    """
    settings = settings or get_settings()
    setup_logger(settings.log_level)

    app = FastAPI(
        title="Todo Service",
        description="Todo items with a status lifecycle and automatic past-due tracking.",
        version="1.0.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    repo = repository if repository is not None else get_repository(settings)
    service = TodoService(repo, clock=clock)
    app.state.settings = settings
    app.state.repository = repo
    app.state.todo_service = service
    app.state.sweeper = (
        PastDueSweeper(service, interval_seconds=settings.sweep_interval_seconds)
        if settings.sweep_enabled
        else None
    )

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_request_logging(app)
    register_exception_handlers(app)

    app.include_router(health_router.router)
    app.include_router(todos_router.router)

    logger.info(
        "Todo service configured (backend=%s, sweep=%s)",
        settings.persistence_backend,
        f"every {settings.sweep_interval_seconds}s" if settings.sweep_enabled else "disabled",
    )
    return app


app = create_app()
