"""
app/services package marker.
"""

from app.services.aggregation_service import AggregationService
from app.services.file_ingestion_service import (
    FileIngestionError,
    FileIngestionService,
    FileTooLargeError,
    UnsupportedFileTypeError,
    get_file_ingestion_service,
)
from app.services.kpi_service import KPIService, build_snapshot
from app.services.report_export_service import ReportExportService, get_report_export_service
from app.services.working_set import NoDataLoadedError, WorkingSet, get_working_set

__all__ = [
    "AggregationService",
    "FileIngestionError",
    "FileIngestionService",
    "FileTooLargeError",
    "KPIService",
    "NoDataLoadedError",
    "ReportExportService",
    "UnsupportedFileTypeError",
    "WorkingSet",
    "build_snapshot",
    "get_file_ingestion_service",
    "get_report_export_service",
    "get_working_set",
]
