"""
tests/test_report_export_service.py

Pytest unit tests for the production report builder and its serialisers.
"""

from __future__ import annotations

import io

import pytest
from openpyxl import load_workbook

from app.config import GoalSettings
from app.domain.field_visit import FieldVisitRecord, FilterState
from app.services.kpi_service import build_snapshot
from app.services.report_export_service import (
    SECTION_NAMES,
    ReportDocument,
    ReportExportService,
    filters_caption,
)

_TARGETS = {"Centro": 100, "São José": 50}


def _record(**fields) -> FieldVisitRecord:
    return FieldVisitRecord(**fields)


@pytest.fixture()
def records() -> list[FieldVisitRecord]:
    return [
        _record(agent="Ana", supervisor="Carla", cycle="1", neighborhood="Centro", iso_date="2024-03-05", visited=85),
        _record(agent="Bia", supervisor="Carla", cycle="1", neighborhood="Centro", iso_date="2024-03-05", visited=10),
        _record(
            agent="Ana",
            supervisor="Carla",
            cycle="2",
            neighborhood="Vila Nova",
            iso_date="2024-04-02",
            visited=20,
            issue_flag="Cachorro bravo",
            issue_note="voltar",
        ),
    ]


@pytest.fixture()
def document(records: list[FieldVisitRecord]) -> ReportDocument:
    goals = GoalSettings(target_visited=100)
    service = ReportExportService(_TARGETS)
    return service.build_report(
        snapshot=build_snapshot(records, goals, _TARGETS),
        records=records,
        filters=FilterState(cycle="1"),
        goals=goals,
    )


class TestBuildReport:
    def test_every_section_present(self, document: ReportDocument) -> None:
        assert [s.name for s in document.sections] == list(SECTION_NAMES)

    def test_caption_uses_all_label(self) -> None:
        assert filters_caption(FilterState(cycle="1")) == "Ciclo: 1 | Mês: Todos | Sup: Todos | Agente: Todos | Ano: Todos"

    def test_summary_values(self, document: ReportDocument) -> None:
        summary = {row["metric"]: row["value"] for row in document.section("summary").rows}
        assert summary["Trabalhados"] == 115
        assert summary["Eficiência"] == "100.0%"
        assert summary["Meta da Equipe"] == 200

    def test_agent_ranking_rows(self, document: ReportDocument) -> None:
        rows = document.section("agents").rows
        assert [(r["rank"], r["agent"]) for r in rows] == [(1, "Ana"), (2, "Bia")]
        assert rows[0]["met_goal"] is True

    def test_neighborhood_tiers(self, document: ReportDocument) -> None:
        rows = {r["neighborhood"]: r for r in document.section("neighborhoods").rows}
        assert rows["Centro"]["coverage"] == "95.0%"
        assert rows["Centro"]["tier"] == "80%+"
        assert rows["Vila Nova"]["target"] == "-"
        assert rows["São José"]["tier"] == "<60%"

    def test_issue_dates_are_day_first(self, document: ReportDocument) -> None:
        rows = document.section("issues").rows
        assert rows == [
            {
                "date": "02/04/2024",
                "agent": "Ana",
                "supervisor": "Carla",
                "issue": "Cachorro bravo",
                "note": "voltar",
            }
        ]

    def test_cycle_sections_are_rederived(self, document: ReportDocument) -> None:
        agents = document.section("cycle_agents").rows
        assert [(r["cycle"], r["agent"], r["visited"]) for r in agents] == [
            ("1", "Ana", 85),
            ("1", "Bia", 10),
            ("2", "Ana", 20),
        ]

        neighborhoods = document.section("cycle_neighborhoods").rows
        assert [(r["cycle"], r["neighborhood"]) for r in neighborhoods] == [("1", "Centro"), ("2", "Vila Nova")]

    def test_unknown_section(self, document: ReportDocument) -> None:
        with pytest.raises(ValueError):
            document.section("forecasts")


class TestSerialisers:
    def test_json_document(self, document: ReportDocument) -> None:
        payload = ReportExportService.to_json(document)
        assert payload["filters"].startswith("Ciclo: 1")
        assert [s["name"] for s in payload["sections"]] == list(SECTION_NAMES)

    def test_csv_section(self, document: ReportDocument) -> None:
        text = ReportExportService.to_csv(document, "agents")
        lines = text.split("\r\n")
        assert lines[0] == "rank,agent,supervisor,visited,daily_average,closed,refused,rescued,met_goal"
        assert lines[1].startswith("1,Ana,Carla,")

    def test_xlsx_has_one_sheet_per_section(self, document: ReportDocument) -> None:
        workbook = load_workbook(io.BytesIO(ReportExportService.to_xlsx(document)))
        assert workbook.sheetnames == list(SECTION_NAMES)
        assert workbook["agents"]["B2"].value == "Ana"
