"""
app/services/aggregation_service.py

Single-pass aggregation of normalized field-visit records.

Translates a ``FieldVisitRecord`` sequence into keyed accumulators that
``KPIService.finalize`` turns into rankings and percentages.

Accumulator rules
-----------------
* Agent, supervisor and ad-hoc neighborhood accumulators are created lazily
  on first sight of their key, seeded to zero, then mutated in place.
* The neighborhood map is pre-seeded with every reference-table entry, so a
  target-bearing neighborhood is reported (at 0 % coverage) even when the
  filtered data never mentions it.
* Rows whose activity is "Levantamento de Índice" are skipped for
  neighborhoods only.
* An agent's supervisor is the one on the last row seen for that agent.

Worked days
-----------
Two different day sets are kept on purpose:

    global   {(iso_date, agent)} for every dated row, even with visited == 0
    agent    {iso_date} for the agent's dated rows with visited > 0

Rows with an unresolved date never add a worked day.

No division, rounding or sorting lives here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from app.domain.field_visit import (
    DEPOSIT_TYPES,
    INDEX_SURVEY_ACTIVITY,
    PROPERTY_TYPES,
    FieldVisitRecord,
)
from app.mappers.neighborhood_reconciler import NeighborhoodReconciler, fold_label

logger = logging.getLogger(__name__)

_INDEX_SURVEY_KEY = fold_label(INDEX_SURVEY_ACTIVITY)


# ---------------------------------------------------------------------------
# Accumulators
# ---------------------------------------------------------------------------


@dataclass
class AgentAccumulator:
    name: str
    supervisor: str
    visited: float = 0
    closed: float = 0
    refused: float = 0
    rescued: float = 0
    treated: float = 0
    worked_days: set[str] = field(default_factory=set)


@dataclass
class SupervisorAccumulator:
    name: str
    visited: float = 0
    agents: set[str] = field(default_factory=set)


@dataclass
class NeighborhoodAccumulator:
    name: str
    target: int
    visited: float = 0
    properties: dict[str, float] = field(default_factory=lambda: dict.fromkeys(PROPERTY_TYPES, 0))


@dataclass
class AccumulatorState:
    """
    Raw state of one aggregation run; owned by that run only.

    Dict insertion order is first-seen order, which ranking relies on for
    stable tie-breaking.
    """

    total_visited: float = 0
    total_closed: float = 0
    total_refused: float = 0
    total_rescued: float = 0
    total_treated: float = 0
    total_deposits_eliminated: float = 0
    total_larvicide_grams: float = 0
    deposits: dict[str, float] = field(default_factory=lambda: dict.fromkeys(DEPOSIT_TYPES, 0))
    properties: dict[str, float] = field(default_factory=lambda: dict.fromkeys(PROPERTY_TYPES, 0))
    worked_days: set[tuple[str, str]] = field(default_factory=set)
    agents: dict[str, AgentAccumulator] = field(default_factory=dict)
    supervisors: dict[str, SupervisorAccumulator] = field(default_factory=dict)
    neighborhoods: dict[str, NeighborhoodAccumulator] = field(default_factory=dict)
    records_seen: int = 0


def is_index_survey(activity: str) -> bool:
    return fold_label(activity) == _INDEX_SURVEY_KEY


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AggregationService:
    """
    Builds an :class:`AccumulatorState` from normalized records.

    Parameters
    ----------
    targets:
        Neighborhood reference table ``{name: property target}``. ``None``
        uses the built-in table.
    """

    def __init__(self, targets: Mapping[str, int] | None = None) -> None:
        self._reconciler = NeighborhoodReconciler(targets)

    def aggregate(self, records: Sequence[FieldVisitRecord]) -> AccumulatorState:
        """
        Accumulate *records* in one forward pass.
        """

        state = AccumulatorState()
        for name, target in self._reconciler.targets.items():
            state.neighborhoods[name] = NeighborhoodAccumulator(name=name, target=target)

        for record in records:
            self._add_totals(state, record)
            self._add_agent(state, record)
            self._add_supervisor(state, record)
            self._add_neighborhood(state, record)
            state.records_seen += 1

        logger.debug(
            "aggregate records=%d agents=%d supervisors=%d neighborhoods=%d worked_days=%d",
            state.records_seen,
            len(state.agents),
            len(state.supervisors),
            len(state.neighborhoods),
            len(state.worked_days),
        )
        return state

    # ------------------------------------------------------------------
    # Per-dimension updates
    # ------------------------------------------------------------------

    @staticmethod
    def _add_totals(state: AccumulatorState, record: FieldVisitRecord) -> None:
        if record.iso_date:
            state.worked_days.add((record.iso_date, record.agent))

        state.total_visited += record.visited
        state.total_closed += record.closed
        state.total_refused += record.refused
        state.total_rescued += record.rescued
        state.total_treated += record.treated
        state.total_deposits_eliminated += record.deposits_eliminated
        state.total_larvicide_grams += record.larvicide_grams

        for code in DEPOSIT_TYPES:
            state.deposits[code] += record.deposits.get(code, 0)
        for code in PROPERTY_TYPES:
            state.properties[code] += record.properties.get(code, 0)

    @staticmethod
    def _add_agent(state: AccumulatorState, record: FieldVisitRecord) -> None:
        agent = state.agents.get(record.agent)
        if agent is None:
            agent = AgentAccumulator(name=record.agent, supervisor=record.supervisor)
            state.agents[record.agent] = agent

        agent.supervisor = record.supervisor
        agent.visited += record.visited
        agent.closed += record.closed
        agent.refused += record.refused
        agent.rescued += record.rescued
        agent.treated += record.treated
        if record.visited > 0 and record.iso_date:
            agent.worked_days.add(record.iso_date)

    @staticmethod
    def _add_supervisor(state: AccumulatorState, record: FieldVisitRecord) -> None:
        supervisor = state.supervisors.get(record.supervisor)
        if supervisor is None:
            supervisor = SupervisorAccumulator(name=record.supervisor)
            state.supervisors[record.supervisor] = supervisor

        supervisor.visited += record.visited
        supervisor.agents.add(record.agent)

    def _add_neighborhood(self, state: AccumulatorState, record: FieldVisitRecord) -> None:
        if is_index_survey(record.activity):
            return

        match = self._reconciler.reconcile(record.neighborhood)
        if match is None:
            return

        neighborhood = state.neighborhoods.get(match.canonical_name)
        if neighborhood is None:
            neighborhood = NeighborhoodAccumulator(name=match.canonical_name, target=match.target)
            state.neighborhoods[match.canonical_name] = neighborhood

        neighborhood.visited += record.visited
        for code in PROPERTY_TYPES:
            neighborhood.properties[code] += record.properties.get(code, 0)


def aggregate(
    records: Sequence[FieldVisitRecord],
    targets: Mapping[str, int] | None = None,
) -> AccumulatorState:
    """
    Functional form of :meth:`AggregationService.aggregate`.
    """

    return AggregationService(targets).aggregate(records)
