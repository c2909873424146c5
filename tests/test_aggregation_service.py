"""
tests/test_aggregation_service.py

Pytest unit tests for the single-pass aggregation step.
"""

from __future__ import annotations

import pytest

from app.domain.field_visit import INDEX_SURVEY_ACTIVITY, FieldVisitRecord
from app.mappers.neighborhood_reconciler import NeighborhoodReconciler
from app.services.aggregation_service import AggregationService, aggregate


def _record(**fields) -> FieldVisitRecord:
    return FieldVisitRecord(**fields)


@pytest.fixture()
def svc() -> AggregationService:
    return AggregationService({"Centro": 100, "São José": 50})


class TestTotals:
    def test_sums_every_counter(self, svc: AggregationService) -> None:
        state = svc.aggregate(
            [
                _record(agent="Ana", iso_date="2024-03-05", visited=30, closed=4, refused=1, larvicide_grams=2.5),
                _record(agent="Bia", iso_date="2024-03-05", visited=20, closed=1, rescued=3, deposits_eliminated=2),
            ]
        )

        assert state.total_visited == 50
        assert state.total_closed == 5
        assert state.total_refused == 1
        assert state.total_rescued == 3
        assert state.total_deposits_eliminated == 2
        assert state.total_larvicide_grams == pytest.approx(2.5)
        assert state.records_seen == 2

    def test_deposit_and_property_buckets(self, svc: AggregationService) -> None:
        row = _record(
            agent="Ana",
            deposits={"A1": 1, "A2": 2, "B": 0, "C": 0, "D1": 0, "D2": 0, "E": 4},
            properties={"R": 10, "Comercio": 2, "Tb": 0, "PE": 1, "O": 0},
        )
        state = svc.aggregate([row, row])

        assert state.deposits["A2"] == 4
        assert state.deposits["E"] == 8
        assert state.properties["R"] == 20
        assert state.properties["PE"] == 2

    def test_empty_input(self, svc: AggregationService) -> None:
        state = svc.aggregate([])
        assert state.total_visited == 0
        assert state.worked_days == set()
        assert state.agents == {}


class TestWorkedDays:
    def test_global_days_count_zero_visit_rows(self, svc: AggregationService) -> None:
        state = svc.aggregate(
            [
                _record(agent="Ana", iso_date="2024-03-05", visited=30),
                _record(agent="Ana", iso_date="2024-03-06", visited=0),
            ]
        )

        assert state.worked_days == {("2024-03-05", "Ana"), ("2024-03-06", "Ana")}
        assert state.agents["Ana"].worked_days == {"2024-03-05"}

    def test_same_day_two_agents_is_two_global_days(self, svc: AggregationService) -> None:
        state = svc.aggregate(
            [
                _record(agent="Ana", iso_date="2024-03-05", visited=10),
                _record(agent="Bia", iso_date="2024-03-05", visited=10),
                _record(agent="Ana", iso_date="2024-03-05", visited=5),
            ]
        )
        assert len(state.worked_days) == 2
        assert state.agents["Ana"].worked_days == {"2024-03-05"}

    def test_undated_rows_never_add_days(self, svc: AggregationService) -> None:
        state = svc.aggregate([_record(agent="Ana", iso_date="", visited=12)])

        assert state.worked_days == set()
        assert state.agents["Ana"].worked_days == set()
        assert state.agents["Ana"].visited == 12


class TestAgentsAndSupervisors:
    def test_last_supervisor_wins(self, svc: AggregationService) -> None:
        state = svc.aggregate(
            [
                _record(agent="Ana", supervisor="Carla"),
                _record(agent="Ana", supervisor="Diego"),
            ]
        )
        assert state.agents["Ana"].supervisor == "Diego"
        assert set(state.supervisors) == {"Carla", "Diego"}

    def test_supervisor_tracks_distinct_agents(self, svc: AggregationService) -> None:
        state = svc.aggregate(
            [
                _record(agent="Ana", supervisor="Carla", visited=10),
                _record(agent="Ana", supervisor="Carla", visited=5),
                _record(agent="Bia", supervisor="Carla", visited=7),
            ]
        )
        carla = state.supervisors["Carla"]
        assert carla.visited == 22
        assert carla.agents == {"Ana", "Bia"}

    def test_first_seen_order_is_kept(self, svc: AggregationService) -> None:
        state = svc.aggregate([_record(agent=name) for name in ("Caio", "Ana", "Bia", "Ana")])
        assert list(state.agents) == ["Caio", "Ana", "Bia"]


class TestNeighborhoods:
    def test_reference_entries_are_pre_seeded(self, svc: AggregationService) -> None:
        state = svc.aggregate([])
        assert set(state.neighborhoods) == {"Centro", "São José"}
        assert state.neighborhoods["Centro"].target == 100
        assert state.neighborhoods["Centro"].visited == 0

    def test_labels_reconcile_case_insensitively(self, svc: AggregationService) -> None:
        state = svc.aggregate(
            [
                _record(neighborhood="  centro ", visited=10, properties={"R": 8, "Comercio": 2, "Tb": 0, "PE": 0, "O": 0}),
                _record(neighborhood="CENTRO", visited=5),
            ]
        )
        assert state.neighborhoods["Centro"].visited == 15
        assert state.neighborhoods["Centro"].properties["R"] == 8

    def test_unknown_label_gets_zero_target(self, svc: AggregationService) -> None:
        state = svc.aggregate([_record(neighborhood="Vila Nova", visited=9)])
        assert state.neighborhoods["Vila Nova"].target == 0
        assert state.neighborhoods["Vila Nova"].visited == 9

    def test_index_survey_rows_skip_neighborhoods_only(self, svc: AggregationService) -> None:
        state = svc.aggregate(
            [_record(agent="Ana", neighborhood="Centro", activity=INDEX_SURVEY_ACTIVITY, visited=40)]
        )
        assert state.neighborhoods["Centro"].visited == 0
        assert state.total_visited == 40
        assert state.agents["Ana"].visited == 40

    def test_unspecified_label_is_not_accumulated(self, svc: AggregationService) -> None:
        state = svc.aggregate([_record(visited=3)])
        assert "N/A" not in state.neighborhoods


def test_functional_form_uses_default_table() -> None:
    state = aggregate([])
    assert set(state.neighborhoods) == set(NeighborhoodReconciler().targets)
