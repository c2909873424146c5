"""
app/domain/agent_detail.py

Per-agent drill-down models.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.field_visit import ChartPoint


@dataclass(frozen=True)
class CycleBreakdown:
    """
    One agent's production within a single work cycle.
    """

    cycle: str
    visited: float
    closed: float
    refused: float
    rescued: float
    larvicide_grams: float
    worked_days: int
    daily_average: float


@dataclass(frozen=True)
class AgentDetail:
    """
    Agent totals, property mix and per-cycle history.
    """

    name: str
    supervisor: str
    visited: float
    closed: float
    refused: float
    rescued: float
    treated: float
    larvicide_grams: float
    worked_days: int
    daily_average: float
    efficiency_pct: float
    properties: tuple[ChartPoint, ...]
    cycles: tuple[CycleBreakdown, ...]
