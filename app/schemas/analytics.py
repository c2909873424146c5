"""
app/schemas/analytics.py

Response schemas for ingestion and analytics endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.agent_detail import AgentDetail
from app.domain.field_visit import AnalyticsSnapshot, FieldVisitRecord
from app.services.filter_service import FilterOptions
from app.services.kpi_service import coverage_tier


class IngestionSummaryResponse(BaseModel):
    """
    API response model for one successful file load.
    """

    source_name: str
    rows_loaded: int = Field(..., ge=0)
    loaded_at: datetime


class ChartPointResponse(BaseModel):
    name: str
    value: float


class AgentMetricResponse(BaseModel):
    name: str
    supervisor: str
    visited: float
    closed: float
    refused: float
    rescued: float
    treated: float
    days_worked: int = Field(..., ge=0)
    daily_average: float
    met_goal: bool


class SupervisorMetricResponse(BaseModel):
    name: str
    visited: float
    agent_count: int = Field(..., ge=0)
    average_per_agent: float


class NeighborhoodMetricResponse(BaseModel):
    name: str
    target: int = Field(..., ge=0)
    visited: float
    coverage: float
    tier: str
    properties: dict[str, float]


class AnalyticsSnapshotResponse(BaseModel):
    """
    API response model mirroring :class:`AnalyticsSnapshot`.
    """

    total_visited: float
    total_closed: float
    total_refused: float
    total_rescued: float
    total_treated: float
    total_deposits_eliminated: float
    total_larvicide_grams: float
    deposits: dict[str, float]
    properties: dict[str, float]
    daily_average: float
    efficiency_pct: float
    loss_pct: float
    team_target_visited: float
    meets_daily_minimum: bool
    meets_efficiency_minimum: bool
    agent_ranking: list[AgentMetricResponse] = Field(default_factory=list)
    supervisor_ranking: list[SupervisorMetricResponse] = Field(default_factory=list)
    neighborhoods: list[NeighborhoodMetricResponse] = Field(default_factory=list)
    chart_deposits: list[ChartPointResponse] = Field(default_factory=list)
    chart_properties: list[ChartPointResponse] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: AnalyticsSnapshot) -> "AnalyticsSnapshotResponse":
        return cls(
            total_visited=snapshot.total_visited,
            total_closed=snapshot.total_closed,
            total_refused=snapshot.total_refused,
            total_rescued=snapshot.total_rescued,
            total_treated=snapshot.total_treated,
            total_deposits_eliminated=snapshot.total_deposits_eliminated,
            total_larvicide_grams=snapshot.total_larvicide_grams,
            deposits=dict(snapshot.deposits),
            properties=dict(snapshot.properties),
            daily_average=snapshot.daily_average,
            efficiency_pct=snapshot.efficiency_pct,
            loss_pct=snapshot.loss_pct,
            team_target_visited=snapshot.team_target_visited,
            meets_daily_minimum=snapshot.meets_daily_minimum,
            meets_efficiency_minimum=snapshot.meets_efficiency_minimum,
            agent_ranking=[
                AgentMetricResponse(
                    name=a.name,
                    supervisor=a.supervisor,
                    visited=a.visited,
                    closed=a.closed,
                    refused=a.refused,
                    rescued=a.rescued,
                    treated=a.treated,
                    days_worked=a.days_worked,
                    daily_average=a.daily_average,
                    met_goal=a.met_goal,
                )
                for a in snapshot.agent_ranking
            ],
            supervisor_ranking=[
                SupervisorMetricResponse(
                    name=s.name,
                    visited=s.visited,
                    agent_count=s.agent_count,
                    average_per_agent=s.average_per_agent,
                )
                for s in snapshot.supervisor_ranking
            ],
            neighborhoods=[
                NeighborhoodMetricResponse(
                    name=n.name,
                    target=n.target,
                    visited=n.visited,
                    coverage=n.coverage,
                    tier=coverage_tier(n.coverage).value,
                    properties=dict(n.properties),
                )
                for n in snapshot.neighborhoods
            ],
            chart_deposits=[ChartPointResponse(name=p.name, value=p.value) for p in snapshot.chart_deposits],
            chart_properties=[ChartPointResponse(name=p.name, value=p.value) for p in snapshot.chart_properties],
        )


class FilterOptionsResponse(BaseModel):
    supervisors: list[str]
    agents: list[str]
    cycles: list[str]
    months: list[str]
    years: list[str]

    @classmethod
    def from_options(cls, options: FilterOptions) -> "FilterOptionsResponse":
        return cls(
            supervisors=list(options.supervisors),
            agents=list(options.agents),
            cycles=list(options.cycles),
            months=list(options.months),
            years=list(options.years),
        )


class IssueResponse(BaseModel):
    iso_date: str
    agent: str
    supervisor: str
    neighborhood: str
    issue: str
    note: str

    @classmethod
    def from_record(cls, record: FieldVisitRecord) -> "IssueResponse":
        return cls(
            iso_date=record.iso_date,
            agent=record.agent,
            supervisor=record.supervisor,
            neighborhood=record.neighborhood,
            issue=record.issue_flag,
            note=record.issue_note,
        )


class CycleBreakdownResponse(BaseModel):
    cycle: str
    visited: float
    closed: float
    refused: float
    rescued: float
    larvicide_grams: float
    worked_days: int = Field(..., ge=0)
    daily_average: float


class AgentDetailResponse(BaseModel):
    name: str
    supervisor: str
    visited: float
    closed: float
    refused: float
    rescued: float
    treated: float
    larvicide_grams: float
    worked_days: int = Field(..., ge=0)
    daily_average: float
    efficiency_pct: float
    properties: list[ChartPointResponse] = Field(default_factory=list)
    cycles: list[CycleBreakdownResponse] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: AgentDetail) -> "AgentDetailResponse":
        return cls(
            name=detail.name,
            supervisor=detail.supervisor,
            visited=detail.visited,
            closed=detail.closed,
            refused=detail.refused,
            rescued=detail.rescued,
            treated=detail.treated,
            larvicide_grams=detail.larvicide_grams,
            worked_days=detail.worked_days,
            daily_average=detail.daily_average,
            efficiency_pct=detail.efficiency_pct,
            properties=[ChartPointResponse(name=p.name, value=p.value) for p in detail.properties],
            cycles=[
                CycleBreakdownResponse(
                    cycle=c.cycle,
                    visited=c.visited,
                    closed=c.closed,
                    refused=c.refused,
                    rescued=c.rescued,
                    larvicide_grams=c.larvicide_grams,
                    worked_days=c.worked_days,
                    daily_average=c.daily_average,
                )
                for c in detail.cycles
            ],
        )


class HealthResponse(BaseModel):
    status: str = "ok"
    data_loaded: bool
    source_name: str | None = None
    rows_loaded: int = Field(default=0, ge=0)
    loaded_at: datetime | None = None
