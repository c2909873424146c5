"""
app/services/kpi_service.py

Ranking and derived-metric calculator.

Turns an :class:`~app.services.aggregation_service.AccumulatorState` and the
active goals into a read-only :class:`~app.domain.field_visit.AnalyticsSnapshot`.
No I/O is performed here and the state is never mutated, so finalizing the
same input twice yields identical snapshots.

Ordering
--------
agents        visited, descending
supervisors   rounded average per agent, descending
neighborhoods visited, descending (not coverage)

All sorts are stable: ties keep first-seen order.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping, Sequence

from app.config import GoalSettings
from app.domain.field_visit import (
    AgentMetric,
    AnalyticsSnapshot,
    ChartPoint,
    FieldVisitRecord,
    NeighborhoodMetric,
    SupervisorMetric,
)
from app.services.aggregation_service import (
    AccumulatorState,
    AgentAccumulator,
    AggregationService,
    NeighborhoodAccumulator,
    SupervisorAccumulator,
)
from kpi.field_production import (
    FieldProductionKPIFormula,
    coverage_pct,
    per_unit_average,
    round_half_up,
)

logger = logging.getLogger(__name__)


class CoverageTier(str, Enum):
    """
    Reporting bucket for neighborhood coverage.
    """

    HIGH = "80%+"
    MEDIUM = "60–79.9%"
    LOW = "<60%"


def coverage_tier(coverage: float) -> CoverageTier:
    if coverage >= 80:
        return CoverageTier.HIGH
    if coverage >= 60:
        return CoverageTier.MEDIUM
    return CoverageTier.LOW


class KPIService:
    """
    Stateless, deterministic snapshot builder.

    Usage::

        state = AggregationService().aggregate(records)
        snapshot = KPIService().finalize(state, GoalSettings(target_visited=40))
    """

    def __init__(self, formula: FieldProductionKPIFormula | None = None) -> None:
        self._formula = formula or FieldProductionKPIFormula()

    def finalize(self, state: AccumulatorState, goals: GoalSettings) -> AnalyticsSnapshot:
        """
        Derive percentages, averages and rankings from *state*.
        """

        overall = self._formula.calculate(
            {
                "visited": state.total_visited,
                "closed": state.total_closed,
                "refused": state.total_refused,
                "worked_days": len(state.worked_days),
            }
        )

        agents = tuple(
            sorted(
                (self._agent_metric(agent, goals) for agent in state.agents.values()),
                key=lambda metric: metric.visited,
                reverse=True,
            )
        )
        supervisors = tuple(
            sorted(
                (self._supervisor_metric(sup) for sup in state.supervisors.values()),
                key=lambda metric: metric.average_per_agent,
                reverse=True,
            )
        )
        neighborhoods = tuple(
            sorted(
                (self._neighborhood_metric(n) for n in state.neighborhoods.values()),
                key=lambda metric: metric.visited,
                reverse=True,
            )
        )

        daily_average = overall["daily_average"]
        efficiency = overall["efficiency_pct"]

        snapshot = AnalyticsSnapshot(
            total_visited=state.total_visited,
            total_closed=state.total_closed,
            total_refused=state.total_refused,
            total_rescued=state.total_rescued,
            total_treated=state.total_treated,
            total_deposits_eliminated=state.total_deposits_eliminated,
            total_larvicide_grams=state.total_larvicide_grams,
            deposits=dict(state.deposits),
            properties=dict(state.properties),
            daily_average=daily_average,
            efficiency_pct=efficiency,
            loss_pct=overall["loss_pct"],
            agent_ranking=agents,
            supervisor_ranking=supervisors,
            neighborhoods=neighborhoods,
            chart_deposits=tuple(ChartPoint(name=k, value=v) for k, v in state.deposits.items()),
            chart_properties=tuple(ChartPoint(name=k, value=v) for k, v in state.properties.items()),
            team_target_visited=len(agents) * goals.target_visited,
            meets_daily_minimum=daily_average >= goals.daily_min,
            meets_efficiency_minimum=efficiency >= goals.efficiency_min,
        )
        logger.debug(
            "finalize agents=%d supervisors=%d neighborhoods=%d visited=%s efficiency=%.2f",
            len(agents),
            len(supervisors),
            len(neighborhoods),
            state.total_visited,
            efficiency,
        )
        return snapshot

    # ------------------------------------------------------------------
    # Per-dimension derivations
    # ------------------------------------------------------------------

    @staticmethod
    def _agent_metric(agent: AgentAccumulator, goals: GoalSettings) -> AgentMetric:
        return AgentMetric(
            name=agent.name,
            supervisor=agent.supervisor,
            visited=agent.visited,
            closed=agent.closed,
            refused=agent.refused,
            rescued=agent.rescued,
            treated=agent.treated,
            worked_days=frozenset(agent.worked_days),
            daily_average=round_half_up(per_unit_average(agent.visited, len(agent.worked_days)), 1),
            met_goal=agent.visited >= goals.target_visited,
        )

    @staticmethod
    def _supervisor_metric(supervisor: SupervisorAccumulator) -> SupervisorMetric:
        return SupervisorMetric(
            name=supervisor.name,
            visited=supervisor.visited,
            agents=frozenset(supervisor.agents),
            average_per_agent=round_half_up(
                per_unit_average(supervisor.visited, len(supervisor.agents)), 0
            ),
        )

    @staticmethod
    def _neighborhood_metric(neighborhood: NeighborhoodAccumulator) -> NeighborhoodMetric:
        return NeighborhoodMetric(
            name=neighborhood.name,
            target=neighborhood.target,
            visited=neighborhood.visited,
            coverage=coverage_pct(neighborhood.visited, neighborhood.target),
            properties=dict(neighborhood.properties),
        )


def finalize(state: AccumulatorState, goals: GoalSettings) -> AnalyticsSnapshot:
    """
    Functional form of :meth:`KPIService.finalize`.
    """

    return KPIService().finalize(state, goals)


def build_snapshot(
    records: Sequence[FieldVisitRecord],
    goals: GoalSettings,
    targets: Mapping[str, int] | None = None,
) -> AnalyticsSnapshot:
    """
    Aggregate *records* from scratch and finalize them against *goals*.
    """

    return KPIService().finalize(AggregationService(targets).aggregate(records), goals)
