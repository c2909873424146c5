"""
app/services/report_export_service.py

Production report export.

The report is a set of flat tabular sections built from one
``AnalyticsSnapshot`` plus the filtered record list it was computed from:

    summary             executive summary (metric, value)
    agents              productivity ranking
    supervisors         team ranking
    neighborhoods       coverage per neighborhood with tier
    issues              rows with a reported occurrence
    cycle_agents        agent ranking re-derived per cycle
    cycle_neighborhoods neighborhood production re-derived per cycle

Per-cycle sections are not requested from the analytics core: the exporter
re-filters the supplied records by cycle value and re-runs aggregation for
each subset. Neighborhoods without visits are left out of the per-cycle
section.

Serialisers: JSON (whole document), CSV (one section), XLSX (one sheet per
section).
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

import pandas as pd

from app.config import GoalSettings
from app.domain.field_visit import ALL, AnalyticsSnapshot, FieldVisitRecord, FilterState
from app.mappers.neighborhood_reconciler import get_neighborhood_targets
from app.services.filter_service import pending_issues
from app.services.kpi_service import build_snapshot, coverage_tier

logger = logging.getLogger(__name__)

SECTION_NAMES: tuple[str, ...] = (
    "summary",
    "agents",
    "supervisors",
    "neighborhoods",
    "issues",
    "cycle_agents",
    "cycle_neighborhoods",
)


# ---------------------------------------------------------------------------
# Report containers
# ---------------------------------------------------------------------------


@dataclass
class ReportSection:
    """
    One flat table of the report.

    Attributes
    ----------
    name:   Stable machine name (see ``SECTION_NAMES``).
    title:  Heading shown to readers.
    fields: Ordered column names.
    rows:   One dict per row keyed by ``fields``.
    """

    name: str
    title: str
    fields: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class ReportDocument:
    generated_at: datetime
    filters_caption: str
    sections: list[ReportSection] = field(default_factory=list)

    def section(self, name: str) -> ReportSection:
        for section in self.sections:
            if section.name == name:
                return section
        raise ValueError(f"Unknown report section {name!r}. Valid: {list(SECTION_NAMES)}")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _display_date(iso_date: str) -> str:
    """``YYYY-MM-DD`` to ``DD/MM/YYYY``; empty stays empty."""
    return "/".join(reversed(iso_date.split("-"))) if iso_date else ""


def _filter_label(value: str | None) -> str:
    return ALL if value in (None, "") else str(value)


def filters_caption(filters: FilterState) -> str:
    return (
        f"Ciclo: {_filter_label(filters.cycle)} | "
        f"Mês: {_filter_label(filters.month)} | "
        f"Sup: {_filter_label(filters.supervisor)} | "
        f"Agente: {_filter_label(filters.agent)} | "
        f"Ano: {_filter_label(filters.year)}"
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ReportExportService:
    """
    Builds and serialises the production report.

    Parameters
    ----------
    targets:
        Neighborhood reference table used when re-deriving per-cycle
        sections. ``None`` uses the built-in table.
    """

    def __init__(self, targets: Mapping[str, int] | None = None) -> None:
        self._targets = targets

    def build_report(
        self,
        *,
        snapshot: AnalyticsSnapshot,
        records: Sequence[FieldVisitRecord],
        filters: FilterState,
        goals: GoalSettings,
    ) -> ReportDocument:
        """
        Assemble every report section for the current selection.
        """

        document = ReportDocument(
            generated_at=datetime.now(tz=timezone.utc),
            filters_caption=filters_caption(filters),
            sections=[
                self._summary_section(snapshot),
                self._agents_section(snapshot),
                self._supervisors_section(snapshot),
                self._neighborhoods_section(snapshot),
                self._issues_section(records),
                *self._cycle_sections(records, goals),
            ],
        )
        logger.info(
            "report built records=%d sections=%s",
            len(records),
            {s.name: len(s.rows) for s in document.sections},
        )
        return document

    # ------------------------------------------------------------------
    # Section builders
    # ------------------------------------------------------------------

    @staticmethod
    def _summary_section(snapshot: AnalyticsSnapshot) -> ReportSection:
        rows = [
            ("Trabalhados", snapshot.total_visited),
            ("Média Diária", f"{snapshot.daily_average:.1f}"),
            ("Imóveis Fechados", snapshot.total_closed),
            ("Recusas", snapshot.total_refused),
            ("Resgates", snapshot.total_rescued),
            ("Eficiência", _pct(snapshot.efficiency_pct)),
            ("Perda", _pct(snapshot.loss_pct)),
            ("Imóveis Tratados", snapshot.total_treated),
            ("Depósitos Eliminados", snapshot.total_deposits_eliminated),
            ("Uso Larvicida (g)", f"{snapshot.total_larvicide_grams:.1f}"),
            ("Meta da Equipe", snapshot.team_target_visited),
        ]
        return ReportSection(
            name="summary",
            title="Resumo Executivo",
            fields=["metric", "value"],
            rows=[{"metric": label, "value": value} for label, value in rows],
        )

    @staticmethod
    def _agents_section(snapshot: AnalyticsSnapshot) -> ReportSection:
        rows = [
            {
                "rank": index,
                "agent": agent.name,
                "supervisor": agent.supervisor,
                "visited": agent.visited,
                "daily_average": agent.daily_average,
                "closed": agent.closed,
                "refused": agent.refused,
                "rescued": agent.rescued,
                "met_goal": agent.met_goal,
            }
            for index, agent in enumerate(snapshot.agent_ranking, start=1)
        ]
        return ReportSection(
            name="agents",
            title="Ranking de Produtividade (Agentes)",
            fields=[
                "rank",
                "agent",
                "supervisor",
                "visited",
                "daily_average",
                "closed",
                "refused",
                "rescued",
                "met_goal",
            ],
            rows=rows,
        )

    @staticmethod
    def _supervisors_section(snapshot: AnalyticsSnapshot) -> ReportSection:
        rows = [
            {
                "supervisor": sup.name,
                "visited": sup.visited,
                "agent_count": sup.agent_count,
                "average_per_agent": sup.average_per_agent,
            }
            for sup in snapshot.supervisor_ranking
        ]
        return ReportSection(
            name="supervisors",
            title="Produtividade por Equipe",
            fields=["supervisor", "visited", "agent_count", "average_per_agent"],
            rows=rows,
        )

    @staticmethod
    def _neighborhoods_section(snapshot: AnalyticsSnapshot) -> ReportSection:
        rows = [
            {
                "neighborhood": n.name,
                "target": n.target if n.target > 0 else "-",
                "visited": n.visited,
                "coverage": _pct(n.coverage) if n.coverage > 0 else "-",
                "tier": coverage_tier(n.coverage).value if n.target > 0 else "-",
                **n.properties,
            }
            for n in snapshot.neighborhoods
        ]
        return ReportSection(
            name="neighborhoods",
            title="Produção por Bairro",
            fields=["neighborhood", "target", "visited", "coverage", "tier", "R", "Tb", "Comercio", "PE", "O"],
            rows=rows,
        )

    @staticmethod
    def _issues_section(records: Sequence[FieldVisitRecord]) -> ReportSection:
        rows = [
            {
                "date": _display_date(record.iso_date),
                "agent": record.agent,
                "supervisor": record.supervisor,
                "issue": record.issue_flag,
                "note": record.issue_note,
            }
            for record in pending_issues(records)
        ]
        return ReportSection(
            name="issues",
            title=f"Relatório de Ocorrências e Pendências ({len(rows)})",
            fields=["date", "agent", "supervisor", "issue", "note"],
            rows=rows,
        )

    def _cycle_sections(
        self,
        records: Sequence[FieldVisitRecord],
        goals: GoalSettings,
    ) -> list[ReportSection]:
        agent_rows: list[dict[str, Any]] = []
        neighborhood_rows: list[dict[str, Any]] = []

        for cycle in sorted({record.cycle for record in records}):
            subset = [record for record in records if record.cycle == cycle]
            snapshot = build_snapshot(subset, goals, self._targets)

            for index, agent in enumerate(snapshot.agent_ranking, start=1):
                agent_rows.append(
                    {
                        "cycle": cycle,
                        "rank": index,
                        "agent": agent.name,
                        "supervisor": agent.supervisor,
                        "visited": agent.visited,
                        "daily_average": agent.daily_average,
                        "met_goal": agent.met_goal,
                    }
                )
            for n in snapshot.neighborhoods:
                if n.visited <= 0:
                    continue
                neighborhood_rows.append(
                    {
                        "cycle": cycle,
                        "neighborhood": n.name,
                        "target": n.target if n.target > 0 else "-",
                        "visited": n.visited,
                        "coverage": _pct(n.coverage) if n.coverage > 0 else "-",
                    }
                )

        return [
            ReportSection(
                name="cycle_agents",
                title="Produtividade por Ciclo (Agentes)",
                fields=["cycle", "rank", "agent", "supervisor", "visited", "daily_average", "met_goal"],
                rows=agent_rows,
            ),
            ReportSection(
                name="cycle_neighborhoods",
                title="Cobertura por Ciclo (Bairros)",
                fields=["cycle", "neighborhood", "target", "visited", "coverage"],
                rows=neighborhood_rows,
            ),
        ]

    # ------------------------------------------------------------------
    # Serialisers
    # ------------------------------------------------------------------

    @staticmethod
    def to_json(document: ReportDocument) -> dict[str, Any]:
        return {
            "generated_at": document.generated_at.isoformat(),
            "filters": document.filters_caption,
            "sections": [
                {
                    "name": section.name,
                    "title": section.title,
                    "fields": section.fields,
                    "rows": section.rows,
                }
                for section in document.sections
            ],
        }

    @staticmethod
    def to_csv(document: ReportDocument, section_name: str) -> str:
        section = document.section(section_name)
        buf = io.StringIO()
        writer = csv.DictWriter(
            buf,
            fieldnames=section.fields,
            extrasaction="ignore",
            restval="",
            lineterminator="\r\n",
        )
        writer.writeheader()
        for row in section.rows:
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})
        return buf.getvalue()

    @staticmethod
    def to_xlsx(document: ReportDocument) -> bytes:
        buf = io.BytesIO()
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            for section in document.sections:
                frame = pd.DataFrame(section.rows, columns=section.fields)
                # Excel caps sheet names at 31 characters.
                frame.to_excel(writer, sheet_name=section.name[:31], index=False)
        return buf.getvalue()


# ---------------------------------------------------------------------------
# Singleton factory
# ---------------------------------------------------------------------------


_service: ReportExportService | None = None


def get_report_export_service() -> ReportExportService:
    global _service
    if _service is None:
        _service = ReportExportService(get_neighborhood_targets())
    return _service
