"""
app/domain package marker.
"""

from app.domain.agent_detail import AgentDetail, CycleBreakdown
from app.domain.field_visit import (
    AgentMetric,
    AnalyticsSnapshot,
    ChartPoint,
    FieldVisitRecord,
    FilterState,
    IngestionResult,
    NeighborhoodMatch,
    NeighborhoodMetric,
    SupervisorMetric,
)

__all__ = [
    "AgentDetail",
    "AgentMetric",
    "AnalyticsSnapshot",
    "ChartPoint",
    "CycleBreakdown",
    "FieldVisitRecord",
    "FilterState",
    "IngestionResult",
    "NeighborhoodMatch",
    "NeighborhoodMetric",
    "SupervisorMetric",
]
