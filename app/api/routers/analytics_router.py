"""
app/api/routers/analytics_router.py

Read-only analytics endpoints over the loaded working set.

GET /analytics            snapshot for the current filters and goals
GET /filters/options      distinct filter values across the whole file
GET /issues               rows with a reported occurrence (filters apply)
GET /agents/{name}        per-agent detail with cycle breakdown

Every endpoint answers 404 while no file has been loaded.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_filter_state, get_goals
from app.config import GoalSettings
from app.domain.field_visit import FieldVisitRecord, FilterState
from app.mappers.neighborhood_reconciler import get_neighborhood_targets
from app.schemas.analytics import (
    AgentDetailResponse,
    AnalyticsSnapshotResponse,
    FilterOptionsResponse,
    IssueResponse,
)
from app.services.agent_detail_service import agent_detail
from app.services.filter_service import apply_filters, filter_options, pending_issues
from app.services.kpi_service import build_snapshot
from app.services.working_set import NoDataLoadedError, WorkingSet, get_working_set

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analytics"])


def _loaded_records(working_set: WorkingSet) -> tuple[FieldVisitRecord, ...]:
    try:
        return working_set.records
    except NoDataLoadedError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/analytics", response_model=AnalyticsSnapshotResponse)
def get_analytics(
    filters: FilterState = Depends(get_filter_state),
    goals: GoalSettings = Depends(get_goals),
    working_set: WorkingSet = Depends(get_working_set),
) -> AnalyticsSnapshotResponse:
    """
    Recompute the snapshot for the filtered subset.
    """

    records = apply_filters(_loaded_records(working_set), filters)
    snapshot = build_snapshot(records, goals, get_neighborhood_targets())
    logger.info(
        "analytics computed records=%d agents=%d visited=%s",
        len(records),
        len(snapshot.agent_ranking),
        snapshot.total_visited,
    )
    return AnalyticsSnapshotResponse.from_snapshot(snapshot)


@router.get("/filters/options", response_model=FilterOptionsResponse)
def get_filter_options(
    working_set: WorkingSet = Depends(get_working_set),
) -> FilterOptionsResponse:
    return FilterOptionsResponse.from_options(filter_options(_loaded_records(working_set)))


@router.get("/issues", response_model=list[IssueResponse])
def get_issues(
    filters: FilterState = Depends(get_filter_state),
    working_set: WorkingSet = Depends(get_working_set),
) -> list[IssueResponse]:
    records = apply_filters(_loaded_records(working_set), filters)
    return [IssueResponse.from_record(record) for record in pending_issues(records)]


@router.get("/agents/{name}", response_model=AgentDetailResponse)
def get_agent_detail(
    name: str,
    filters: FilterState = Depends(get_filter_state),
    working_set: WorkingSet = Depends(get_working_set),
) -> AgentDetailResponse:
    """
    Detail for one agent over the filtered subset.
    """

    records = apply_filters(_loaded_records(working_set), filters)
    detail = agent_detail(records, name)
    if detail is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Agent {name!r} has no rows in the current selection.",
        )
    return AgentDetailResponse.from_detail(detail)
