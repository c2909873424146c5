from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.config import get_goal_settings, get_log_level, load_env_files
from app.logging_utils import configure_logging, log_event
from app.schemas.analytics import HealthResponse
from app.services.working_set import get_working_set


def _validate_config() -> None:
    """
    Resolve every configuration source once at startup.

    Raises RuntimeError when the neighborhood targets file is missing or
    malformed, so the operator sees the problem before serving traffic.
    """

    from app.mappers.neighborhood_reconciler import get_neighborhood_targets

    load_env_files()
    try:
        get_neighborhood_targets()
    except (OSError, ValueError) as exc:
        raise RuntimeError(f"Startup validation failed: {exc}") from exc


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Log the active goals on boot; drop the working set on exit."""
    goals = get_goal_settings()
    log_event(
        logging.getLogger(__name__),
        logging.INFO,
        "api_started",
        target_visited=goals.target_visited,
        daily_min=goals.daily_min,
        daily_max=goals.daily_max,
        efficiency_min=goals.efficiency_min,
    )
    try:
        yield
    finally:
        get_working_set().clear()
        logging.getLogger(__name__).info("Working set cleared")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_config()
    configure_logging(get_log_level())

    application = FastAPI(
        title="Field Production Analytics API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import analytics_router, export_router, ingestion_router

    application.include_router(ingestion_router)
    application.include_router(analytics_router)
    application.include_router(export_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        working_set = get_working_set()
        if not working_set.is_loaded:
            return HealthResponse(data_loaded=False)
        current = working_set.current()
        return HealthResponse(
            data_loaded=True,
            source_name=current.source_name,
            rows_loaded=current.rows_loaded,
            loaded_at=current.loaded_at,
        )

    return application


app = create_app()
