"""
app/domain/field_visit.py

Domain models for field-visit production analytics.

A ``FieldVisitRecord`` is produced once per source row at load time and is
never mutated afterwards. Per-code counters on records and snapshots are
read-only mappings. Everything downstream (metrics, rankings, the
``AnalyticsSnapshot``) is rebuilt from the record list on every filter or
goal change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Final, Mapping

UNSPECIFIED: Final[str] = "N/A"
"""Placeholder for a missing identity dimension (supervisor, agent, ...)."""

UNDEFINED_MONTH: Final[str] = "Indefinido"
"""Month label used when the visit date cannot be resolved."""

NO_ISSUE: Final[str] = "Sem Pendência"
"""Default issue flag for rows without a Pendencias value."""

INDEX_SURVEY_ACTIVITY: Final[str] = "Levantamento de Índice"
"""Activity whose rows are left out of neighborhood coverage."""

ALL: Final[str] = "Todos"
"""Filter value meaning "do not filter on this field"."""

DEPOSIT_TYPES: Final[tuple[str, ...]] = ("A1", "A2", "B", "C", "D1", "D2", "E")
PROPERTY_TYPES: Final[tuple[str, ...]] = ("R", "Comercio", "Tb", "PE", "O")

PROPERTY_TYPE_LABELS: Final[dict[str, str]] = {
    "R": "Residencial",
    "Comercio": "Comércio",
    "Tb": "Terreno Baldio",
    "PE": "Ponto Estratégico",
    "O": "Outros",
}


def frozen_counts(counts: Mapping[str, float]) -> Mapping[str, float]:
    """
    Read-only copy of a per-code counter mapping.
    """

    return MappingProxyType(dict(counts))


@dataclass(frozen=True)
class FieldVisitRecord:
    """
    One normalized production row.

    Every numeric attribute is finite and non-negative.
    """

    supervisor: str = UNSPECIFIED
    agent: str = UNSPECIFIED
    cycle: str = UNSPECIFIED
    neighborhood: str = UNSPECIFIED
    activity: str = UNSPECIFIED
    iso_date: str = ""
    month: str = UNDEFINED_MONTH
    visited: float = 0
    closed: float = 0
    refused: float = 0
    rescued: float = 0
    treated: float = 0
    deposits_eliminated: float = 0
    larvicide_grams: float = 0
    deposits: Mapping[str, float] = field(default_factory=lambda: dict.fromkeys(DEPOSIT_TYPES, 0))
    properties: Mapping[str, float] = field(default_factory=lambda: dict.fromkeys(PROPERTY_TYPES, 0))
    issue_flag: str = NO_ISSUE
    issue_note: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "deposits", frozen_counts(self.deposits))
        object.__setattr__(self, "properties", frozen_counts(self.properties))

    @property
    def year(self) -> str:
        return self.iso_date.split("-")[0] if self.iso_date else ""


@dataclass(frozen=True)
class NeighborhoodMatch:
    """
    Result of reconciling a free-text neighborhood label.
    """

    canonical_name: str
    target: int


@dataclass(frozen=True)
class AgentMetric:
    name: str
    supervisor: str
    visited: float
    closed: float
    refused: float
    rescued: float
    treated: float
    worked_days: frozenset[str]
    daily_average: float
    met_goal: bool

    @property
    def days_worked(self) -> int:
        return len(self.worked_days)


@dataclass(frozen=True)
class SupervisorMetric:
    name: str
    visited: float
    agents: frozenset[str]
    average_per_agent: float

    @property
    def agent_count(self) -> int:
        return len(self.agents)


@dataclass(frozen=True)
class NeighborhoodMetric:
    name: str
    target: int
    visited: float
    coverage: float
    properties: Mapping[str, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", frozen_counts(self.properties))


@dataclass(frozen=True)
class ChartPoint:
    """
    ``[label, value]`` pair ready for a bar or pie chart.
    """

    name: str
    value: float


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """
    Finalized, read-only analytics model for one filter/goal combination.
    """

    total_visited: float
    total_closed: float
    total_refused: float
    total_rescued: float
    total_treated: float
    total_deposits_eliminated: float
    total_larvicide_grams: float
    deposits: Mapping[str, float]
    properties: Mapping[str, float]
    daily_average: float
    efficiency_pct: float
    loss_pct: float
    agent_ranking: tuple[AgentMetric, ...]
    supervisor_ranking: tuple[SupervisorMetric, ...]
    neighborhoods: tuple[NeighborhoodMetric, ...]
    chart_deposits: tuple[ChartPoint, ...]
    chart_properties: tuple[ChartPoint, ...]
    team_target_visited: float
    meets_daily_minimum: bool
    meets_efficiency_minimum: bool

    def __post_init__(self) -> None:
        object.__setattr__(self, "deposits", frozen_counts(self.deposits))
        object.__setattr__(self, "properties", frozen_counts(self.properties))


@dataclass(frozen=True)
class FilterState:
    """
    Active dashboard filter selections.

    ``None`` (or the ``"Todos"`` label used by the dashboard) leaves a
    dimension unfiltered. ``year`` matches the ISO-date prefix.
    """

    supervisor: str | None = None
    agent: str | None = None
    cycle: str | None = None
    month: str | None = None
    year: str | None = None


@dataclass(frozen=True)
class IngestionResult:
    """
    Normalized records plus end-of-run ingestion summary.
    """

    records: tuple[FieldVisitRecord, ...]
    source_name: str
    loaded_at: datetime

    @property
    def rows_loaded(self) -> int:
        return len(self.records)
