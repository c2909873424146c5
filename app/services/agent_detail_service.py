"""
app/services/agent_detail_service.py

Drill-down for a single agent across all cycles of the current selection.

Worked days here only count dated rows with ``visited > 0``, matching the
agent ranking. An agent without any worked day reports a 0 daily average.
The supervisor shown is the one on the agent's first row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from app.domain.agent_detail import AgentDetail, CycleBreakdown
from app.domain.field_visit import PROPERTY_TYPES, UNSPECIFIED, ChartPoint, FieldVisitRecord
from kpi.field_production import efficiency_pct, round_half_up

logger = logging.getLogger(__name__)


@dataclass
class _Totals:
    visited: float = 0
    closed: float = 0
    refused: float = 0
    rescued: float = 0
    treated: float = 0
    larvicide_grams: float = 0
    days: set[str] = field(default_factory=set)

    def add(self, record: FieldVisitRecord) -> None:
        self.visited += record.visited
        self.closed += record.closed
        self.refused += record.refused
        self.rescued += record.rescued
        self.treated += record.treated
        self.larvicide_grams += record.larvicide_grams
        if record.visited > 0 and record.iso_date:
            self.days.add(record.iso_date)

    @property
    def daily_average(self) -> float:
        if not self.days:
            return 0.0
        return round_half_up(self.visited / len(self.days), 1)


def agent_detail(records: Iterable[FieldVisitRecord], agent: str) -> AgentDetail | None:
    """
    Summarize *agent* over *records*; ``None`` when the agent has no rows.
    """

    rows = [record for record in records if record.agent == agent]
    if not rows:
        return None

    overall = _Totals()
    properties = dict.fromkeys(PROPERTY_TYPES, 0)
    by_cycle: dict[str, _Totals] = {}

    for record in rows:
        overall.add(record)
        for code in PROPERTY_TYPES:
            properties[code] += record.properties.get(code, 0)
        by_cycle.setdefault(record.cycle, _Totals()).add(record)

    cycles = tuple(
        CycleBreakdown(
            cycle=cycle,
            visited=totals.visited,
            closed=totals.closed,
            refused=totals.refused,
            rescued=totals.rescued,
            larvicide_grams=totals.larvicide_grams,
            worked_days=len(totals.days),
            daily_average=totals.daily_average,
        )
        for cycle, totals in sorted(by_cycle.items())
    )

    detail = AgentDetail(
        name=agent,
        supervisor=rows[0].supervisor or UNSPECIFIED,
        visited=overall.visited,
        closed=overall.closed,
        refused=overall.refused,
        rescued=overall.rescued,
        treated=overall.treated,
        larvicide_grams=overall.larvicide_grams,
        worked_days=len(overall.days),
        daily_average=overall.daily_average,
        efficiency_pct=round_half_up(
            efficiency_pct(overall.visited, overall.closed, overall.refused), 1
        ),
        properties=tuple(
            ChartPoint(name=code, value=value) for code, value in properties.items() if value > 0
        ),
        cycles=cycles,
    )
    logger.debug("agent_detail agent=%r rows=%d cycles=%d", agent, len(rows), len(cycles))
    return detail
