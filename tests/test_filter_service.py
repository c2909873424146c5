from __future__ import annotations

import pytest

from app.domain.field_visit import ALL, FieldVisitRecord, FilterState
from app.services.filter_service import apply_filters, filter_options, has_pending_issue, pending_issues


def _record(**fields) -> FieldVisitRecord:
    return FieldVisitRecord(**fields)


@pytest.fixture()
def records() -> tuple[FieldVisitRecord, ...]:
    return (
        _record(agent="Ana", supervisor="Carla", cycle="1", iso_date="2024-03-05", month="Março"),
        _record(agent="Bia", supervisor="Carla", cycle="2", iso_date="2023-12-01", month="Dezembro"),
        _record(agent="Caio", supervisor="Diego", cycle="1", iso_date="2024-01-15", month="Janeiro"),
        _record(agent="Caio", supervisor="Diego", cycle="1"),
    )


class TestApplyFilters:
    def test_no_selection_keeps_everything(self, records) -> None:
        assert apply_filters(records, FilterState()) == records

    def test_all_label_means_unfiltered(self, records) -> None:
        filters = FilterState(supervisor=ALL, agent=ALL, cycle=ALL, month=ALL, year=ALL)
        assert apply_filters(records, filters) == records

    def test_dimensions_combine_with_and(self, records) -> None:
        result = apply_filters(records, FilterState(supervisor="Diego", month="Janeiro"))
        assert [r.iso_date for r in result] == ["2024-01-15"]

    def test_year_matches_date_prefix(self, records) -> None:
        result = apply_filters(records, FilterState(year="2024"))
        assert {r.agent for r in result} == {"Ana", "Caio"}
        assert all(r.iso_date.startswith("2024") for r in result)

    def test_no_match_is_empty(self, records) -> None:
        assert apply_filters(records, FilterState(agent="Zé")) == ()


class TestFilterOptions:
    def test_sorted_unique_values(self, records) -> None:
        options = filter_options(records)
        assert options.supervisors == ("Carla", "Diego")
        assert options.agents == ("Ana", "Bia", "Caio")
        assert options.cycles == ("1", "2")

    def test_months_in_calendar_order_with_unknown_last(self, records) -> None:
        assert filter_options(records).months == ("Janeiro", "Março", "Dezembro", "Indefinido")

    def test_years_newest_first(self, records) -> None:
        assert filter_options(records).years == ("2024", "2023")


class TestPendingIssues:
    @pytest.mark.parametrize(
        "flag, expected",
        [
            ("Cachorro bravo", True),
            ("Imóvel abandonado", True),
            ("Sem Pendência", False),
            ("sem pendência", False),
            ("Não houve", False),
            ("0", False),
            ("", False),
        ],
    )
    def test_flag_detection(self, flag: str, expected: bool) -> None:
        assert has_pending_issue(_record(issue_flag=flag)) is expected

    def test_pending_issues_keeps_order(self) -> None:
        rows = [
            _record(agent="Ana", issue_flag="Chave"),
            _record(agent="Bia"),
            _record(agent="Caio", issue_flag="Cão"),
        ]
        assert [r.agent for r in pending_issues(rows)] == ["Ana", "Caio"]
