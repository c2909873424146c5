"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from pathlib import PurePath

from fastapi import File, HTTPException, Query, UploadFile, status

from app.config import GoalSettings, get_goal_settings
from app.domain.field_visit import FilterState
from app.services.file_ingestion_service import SUPPORTED_EXTENSIONS


def get_spreadsheet_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV or Excel workbook by extension.
    """

    extension = PurePath((file.filename or "").strip().lower()).suffix
    if extension not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only {', '.join(sorted(SUPPORTED_EXTENSIONS))} files are allowed.",
        )
    return file


def get_filter_state(
    supervisor: str | None = Query(default=None, description="Exact supervisor name"),
    agent: str | None = Query(default=None, description="Exact agent name"),
    cycle: str | None = Query(default=None, description="Exact cycle label"),
    month: str | None = Query(default=None, description="Portuguese month name, e.g. Março"),
    year: str | None = Query(default=None, description="Four-digit year"),
) -> FilterState:
    """
    Build the active filter selection from query parameters.
    """

    return FilterState(supervisor=supervisor, agent=agent, cycle=cycle, month=month, year=year)


def get_goals(
    target_visited: float | None = Query(default=None, ge=0, description="Visits per agent per cycle"),
    daily_min: float | None = Query(default=None, ge=0),
    daily_max: float | None = Query(default=None, ge=0),
    efficiency_min: float | None = Query(default=None, ge=0, le=100),
) -> GoalSettings:
    """
    Overlay query-parameter goals on the configured defaults.
    """

    defaults = get_goal_settings()
    return GoalSettings(
        target_visited=defaults.target_visited if target_visited is None else target_visited,
        daily_min=defaults.daily_min if daily_min is None else daily_min,
        daily_max=defaults.daily_max if daily_max is None else daily_max,
        efficiency_min=defaults.efficiency_min if efficiency_min is None else efficiency_min,
    )
