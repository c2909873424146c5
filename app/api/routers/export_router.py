"""
app/api/routers/export_router.py

Production report export endpoint.

GET /export/report

Query parameters
----------------
format   : "json" | "csv" | "xlsx"   (default: "json")
section  : report section for CSV output (default: "summary")
plus the usual filter and goal parameters.

Responses
---------
JSON → whole report document
CSV  → one section as a file download
XLSX → workbook with one sheet per section
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, Response

from app.api.dependencies import get_filter_state, get_goals
from app.config import GoalSettings
from app.domain.field_visit import FilterState
from app.mappers.neighborhood_reconciler import get_neighborhood_targets
from app.services.filter_service import apply_filters
from app.services.kpi_service import build_snapshot
from app.services.report_export_service import (
    SECTION_NAMES,
    ReportExportService,
    get_report_export_service,
)
from app.services.working_set import NoDataLoadedError, WorkingSet, get_working_set

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])

_VALID_FORMATS = frozenset({"json", "csv", "xlsx"})
_XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("/export/report", summary="Export the production report")
def export_report(
    output_format: str = Query(
        default="json",
        alias="format",
        description='Output format: "json", "csv" (one section) or "xlsx".',
    ),
    section: str = Query(
        default="summary",
        description="Report section for CSV output.",
    ),
    filters: FilterState = Depends(get_filter_state),
    goals: GoalSettings = Depends(get_goals),
    working_set: WorkingSet = Depends(get_working_set),
    service: ReportExportService = Depends(get_report_export_service),
) -> Response:
    if output_format not in _VALID_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid format {output_format!r}. Must be one of: {sorted(_VALID_FORMATS)}.",
        )
    if output_format == "csv" and section not in SECTION_NAMES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid section {section!r}. Must be one of: {list(SECTION_NAMES)}.",
        )

    try:
        records = apply_filters(working_set.records, filters)
    except NoDataLoadedError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    try:
        snapshot = build_snapshot(records, goals, get_neighborhood_targets())
        document = service.build_report(
            snapshot=snapshot,
            records=records,
            filters=filters,
            goals=goals,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("report export failed format=%r", output_format)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Export failed; see server logs for details.",
        ) from exc

    logger.info("report export format=%r section=%r records=%d", output_format, section, len(records))

    if output_format == "csv":
        return Response(
            content=service.to_csv(document, section),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="relatorio_{section}.csv"'},
        )
    if output_format == "xlsx":
        return Response(
            content=service.to_xlsx(document),
            media_type=_XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": 'attachment; filename="relatorio_producao.xlsx"'},
        )
    return JSONResponse(content=service.to_json(document))
