"""
FastAPI application entrypoint for the StudySprint API.

This module initializes the FastAPI app with all necessary
configurations, middleware, and route handlers.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import redis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from studysprint.common.config import Settings, get_settings
from studysprint.common.db import create_engine_from_url, create_session_factory
from studysprint.common.logging_conf import setup_logging
from studysprint.modules.auth import SupabaseAuthClient
from studysprint.modules.grading import GraderFactory
from studysprint.modules.repository import PersistenceError, ProblemNotFoundError
from studysprint.modules.sprint_registry import SprintSessionRegistry
from studysprint.modules.sql_repository import SqlRepository
from studysprint.modules.supabase_repository import SupabaseRepository

from .v1.router import api_router

logger = logging.getLogger(__name__)

CATALOG_PATH = "/problems"


def init_app_state(app: FastAPI, settings: Settings) -> None:
    """Build backend clients and the session registry into app state."""
    engine = None
    if settings.persistence_backend == "database":
        engine = create_engine_from_url(settings.db_url, echo=settings.debug)
        repository = SqlRepository(create_session_factory(engine))
    else:
        repository = SupabaseRepository(
            settings.rest_url,
            settings.supabase_secret_key
        )

    redis_client = redis.from_url(
        settings.redis_url,
        decode_responses=True
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.repository = repository
    app.state.redis_client = redis_client
    app.state.auth_client = SupabaseAuthClient(
        settings.auth_url,
        settings.supabase_secret_key
    )
    app.state.registry = SprintSessionRegistry(
        repository,
        grader=GraderFactory.create(settings.grader),
        duration_minutes=settings.sprint_duration_minutes,
        tick_interval=settings.timer_tick_seconds,
        session_ttl_seconds=settings.sprint_session_ttl_seconds
    )
    app.state.catalog = None
    app.state.catalog_lock = asyncio.Lock()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events for the application. State
    that was set up before startup (embedding, tests) is kept.
    """
    # Startup
    logger.info("Starting StudySprint API...")
    if not hasattr(app.state, "repository"):
        settings = get_settings()

        # Initialize logging with Sentry
        setup_logging(settings, service_name=settings.app_name)
        init_app_state(app, settings)

    logger.info("StudySprint API started successfully")

    yield

    # Shutdown
    logger.info("Shutting down StudySprint API...")
    app.state.registry.close_all()
    await app.state.repository.aclose()
    await app.state.auth_client.aclose()
    if app.state.redis_client is not None:
        app.state.redis_client.close()
    if getattr(app.state, "engine", None) is not None:
        app.state.engine.dispose()
    logger.info("StudySprint API shutdown complete")


async def persistence_error_handler(
    request: Request,
    exc: PersistenceError
) -> JSONResponse:
    logger.error(f"Backend call failed on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


async def problem_not_found_handler(
    request: Request,
    exc: ProblemNotFoundError
) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc), "catalog_url": CATALOG_PATH}
    )


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="StudySprint API",
        description="Timed coding-practice sprints",
        version="0.1.0",
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(ProblemNotFoundError, problem_not_found_handler)

    # Include API routes
    app.include_router(api_router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "studysprint.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
