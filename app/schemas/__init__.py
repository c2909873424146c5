"""
app/schemas package marker.
"""

from app.schemas.analytics import (
    AgentDetailResponse,
    AnalyticsSnapshotResponse,
    FilterOptionsResponse,
    HealthResponse,
    IngestionSummaryResponse,
    IssueResponse,
)

__all__ = [
    "AgentDetailResponse",
    "AnalyticsSnapshotResponse",
    "FilterOptionsResponse",
    "HealthResponse",
    "IngestionSummaryResponse",
    "IssueResponse",
]
