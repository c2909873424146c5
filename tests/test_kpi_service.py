"""
tests/test_kpi_service.py

Pytest unit tests for KPIService.

All tests are pure Python: no I/O, in-memory records only.
Every assertion is deterministic: given the same inputs, the same
output must be produced every time.

Coverage
--------
- Agent daily average and goal flag
- Efficiency / loss percentages and the zero-attempt edge case
- Supervisor average per agent
- Neighborhood coverage and tiers
- Stable ranking order
- Team target and goal flags
- Idempotence of finalize
"""

from __future__ import annotations

import pytest

from app.config import GoalSettings
from app.domain.field_visit import FieldVisitRecord
from app.services.aggregation_service import AggregationService
from app.services.kpi_service import CoverageTier, KPIService, build_snapshot, coverage_tier


def _record(**fields) -> FieldVisitRecord:
    return FieldVisitRecord(**fields)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def svc() -> KPIService:
    """Fresh KPIService instance for each test."""
    return KPIService()


@pytest.fixture()
def goals() -> GoalSettings:
    return GoalSettings(target_visited=40, daily_min=20, daily_max=25, efficiency_min=80)


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


class TestAgentMetrics:
    def test_two_days_two_rows(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot(
            [
                _record(agent="Ana", iso_date="2024-03-05", visited=30),
                _record(agent="Ana", iso_date="2024-03-06", visited=20),
            ],
            goals,
            {},
        )
        ana = snapshot.agent_ranking[0]
        assert ana.visited == 50
        assert ana.days_worked == 2
        assert ana.daily_average == 25.0
        assert ana.met_goal is True

    def test_goal_not_met(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([_record(agent="Ana", iso_date="2024-03-05", visited=39)], goals, {})
        assert snapshot.agent_ranking[0].met_goal is False

    def test_agent_without_days_divides_by_one(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([_record(agent="Ana", visited=17)], goals, {})
        assert snapshot.agent_ranking[0].daily_average == 17.0

    def test_daily_average_rounds_half_up(self, goals: GoalSettings) -> None:
        rows = [
            _record(agent="Ana", iso_date=f"2024-03-0{day}", visited=visited)
            for day, visited in ((1, 10), (2, 10), (3, 10), (4, 11))
        ]
        # 41 / 4 = 10.25
        assert build_snapshot(rows, goals, {}).agent_ranking[0].daily_average == 10.3


# ---------------------------------------------------------------------------
# Efficiency and loss
# ---------------------------------------------------------------------------


class TestEfficiency:
    def test_efficiency_and_loss(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([_record(agent="Ana", visited=80, closed=15, refused=5)], goals, {})
        assert snapshot.efficiency_pct == pytest.approx(80.0)
        assert snapshot.loss_pct == pytest.approx(20.0)
        assert snapshot.efficiency_pct + snapshot.loss_pct == pytest.approx(100.0)
        assert snapshot.meets_efficiency_minimum is True

    def test_zero_attempts_is_zero_not_error(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([], goals, {})
        assert snapshot.efficiency_pct == 0.0
        assert snapshot.loss_pct == 0.0
        assert snapshot.daily_average == 0.0

    def test_global_daily_average_uses_agent_day_pairs(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot(
            [
                _record(agent="Ana", iso_date="2024-03-05", visited=30),
                _record(agent="Bia", iso_date="2024-03-05", visited=10),
                _record(agent="Bia", iso_date="2024-03-06", visited=0),
            ],
            goals,
            {},
        )
        # 40 visits over three (date, agent) pairs
        assert snapshot.daily_average == 13.3
        assert snapshot.meets_daily_minimum is False


# ---------------------------------------------------------------------------
# Supervisors
# ---------------------------------------------------------------------------


class TestSupervisors:
    def test_average_per_agent_is_rounded_to_unit(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot(
            [
                _record(agent="Ana", supervisor="Carla", visited=10),
                _record(agent="Bia", supervisor="Carla", visited=15),
            ],
            goals,
            {},
        )
        carla = snapshot.supervisor_ranking[0]
        assert carla.agent_count == 2
        assert carla.average_per_agent == 13.0

    def test_sorted_by_average_not_total(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot(
            [
                _record(agent="Ana", supervisor="Carla", visited=30),
                _record(agent="Bia", supervisor="Carla", visited=30),
                _record(agent="Caio", supervisor="Diego", visited=40),
            ],
            goals,
            {},
        )
        assert [s.name for s in snapshot.supervisor_ranking] == ["Diego", "Carla"]


# ---------------------------------------------------------------------------
# Neighborhoods
# ---------------------------------------------------------------------------


class TestNeighborhoods:
    def test_coverage_against_target(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([_record(neighborhood="Centro", visited=65)], goals, {"Centro": 100})
        centro = snapshot.neighborhoods[0]
        assert centro.coverage == pytest.approx(65.0)
        assert coverage_tier(centro.coverage) is CoverageTier.MEDIUM

    def test_unknown_neighborhood_has_zero_coverage(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([_record(neighborhood="Vila Nova", visited=65)], goals, {})
        assert snapshot.neighborhoods[0].coverage == 0.0

    @pytest.mark.parametrize(
        "coverage, tier",
        [
            (100.0, CoverageTier.HIGH),
            (80.0, CoverageTier.HIGH),
            (79.9, CoverageTier.MEDIUM),
            (60.0, CoverageTier.MEDIUM),
            (59.99, CoverageTier.LOW),
            (0.0, CoverageTier.LOW),
        ],
    )
    def test_coverage_tiers(self, coverage: float, tier: CoverageTier) -> None:
        assert coverage_tier(coverage) is tier

    def test_sorted_by_visited(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot(
            [_record(neighborhood="Centro", visited=5), _record(neighborhood="Vila Nova", visited=9)],
            goals,
            {"Centro": 10},
        )
        assert [n.name for n in snapshot.neighborhoods] == ["Vila Nova", "Centro"]


# ---------------------------------------------------------------------------
# Ordering, goals and idempotence
# ---------------------------------------------------------------------------


class TestSnapshotContract:
    def test_ties_keep_first_seen_order(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot(
            [_record(agent=name, visited=10) for name in ("Caio", "Ana", "Bia")],
            goals,
            {},
        )
        assert [a.name for a in snapshot.agent_ranking] == ["Caio", "Ana", "Bia"]

    def test_team_target_scales_with_agents(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([_record(agent="Ana"), _record(agent="Bia")], goals, {})
        assert snapshot.team_target_visited == 80

    def test_chart_points_follow_bucket_order(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([], goals, {})
        assert [p.name for p in snapshot.chart_deposits] == ["A1", "A2", "B", "C", "D1", "D2", "E"]
        assert [p.name for p in snapshot.chart_properties] == ["R", "Comercio", "Tb", "PE", "O"]

    def test_finalize_is_idempotent(self, svc: KPIService, goals: GoalSettings) -> None:
        state = AggregationService({"Centro": 10}).aggregate(
            [
                _record(agent="Ana", supervisor="Carla", neighborhood="Centro", iso_date="2024-03-05", visited=7),
                _record(agent="Bia", supervisor="Carla", iso_date="2024-03-05", visited=3, closed=1),
            ]
        )
        assert svc.finalize(state, goals) == svc.finalize(state, goals)

    def test_snapshot_is_frozen(self, goals: GoalSettings) -> None:
        snapshot = build_snapshot([], goals, {})
        with pytest.raises((AttributeError, TypeError)):
            snapshot.total_visited = 1  # type: ignore[misc]

    def test_snapshot_counters_are_read_only(self, goals: GoalSettings) -> None:
        record = _record(agent="Ana", neighborhood="Centro", iso_date="2024-03-05", visited=10)
        snapshot = build_snapshot([record], goals, {"Centro": 100})

        with pytest.raises(TypeError):
            snapshot.deposits["A1"] = 999  # type: ignore[index]
        with pytest.raises(TypeError):
            snapshot.properties["R"] = 1  # type: ignore[index]
        with pytest.raises(TypeError):
            snapshot.neighborhoods[0].properties["R"] = 1  # type: ignore[index]
        with pytest.raises(TypeError):
            record.deposits["A1"] = 50  # type: ignore[index]

        assert build_snapshot([record], goals, {"Centro": 100}).deposits["A1"] == 0
