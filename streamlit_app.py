"""Streamlit dashboard for field visit production."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Optional, Sequence

import pandas as pd
import streamlit as st

from app.config import GoalSettings, get_goal_settings
from app.domain.field_visit import ALL, AnalyticsSnapshot, FieldVisitRecord, FilterState
from app.mappers.neighborhood_reconciler import get_neighborhood_targets
from app.services.agent_detail_service import agent_detail
from app.services.file_ingestion_service import (
    SUPPORTED_EXTENSIONS,
    FileIngestionError,
    get_file_ingestion_service,
)
from app.services.filter_service import apply_filters, filter_options, pending_issues
from app.services.kpi_service import build_snapshot, coverage_tier
from app.services.report_export_service import get_report_export_service

st.set_page_config(page_title="Produção de Campo", page_icon="PC", layout="wide")

_XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _status_colour(value: float, minimum: float, maximum: Optional[float] = None) -> str:
    """Green inside the goal range, orange above it, red below."""
    if value < minimum:
        return "red"
    if maximum is not None and value > maximum:
        return "orange"
    return "green"


def _select(label: str, values: tuple[str, ...], key: str) -> Optional[str]:
    choice = st.selectbox(label, options=[ALL, *values], index=0, key=key)
    return None if choice == ALL else choice


def _ranking_frame(snapshot: AnalyticsSnapshot) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Agente": agent.name,
                "Supervisor": agent.supervisor,
                "Trabalhados": agent.visited,
                "Dias": agent.days_worked,
                "Média Diária": agent.daily_average,
                "Fechados": agent.closed,
                "Recusas": agent.refused,
                "Resgates": agent.rescued,
                "Meta": "Sim" if agent.met_goal else "Não",
            }
            for agent in snapshot.agent_ranking
        ]
    )


def _coverage_frame(snapshot: AnalyticsSnapshot) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Bairro": n.name,
                "Meta": n.target,
                "Trabalhados": n.visited,
                "Cobertura (%)": round(n.coverage, 1),
                "Faixa": coverage_tier(n.coverage).value if n.target > 0 else "-",
            }
            for n in snapshot.neighborhoods
            if n.visited > 0 or n.target > 0
        ]
    )


def _issues_frame(records: Sequence[FieldVisitRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Data": record.iso_date,
                "Agente": record.agent,
                "Supervisor": record.supervisor,
                "Bairro": record.neighborhood,
                "Pendência": record.issue_flag,
                "Observação": record.issue_note,
            }
            for record in pending_issues(records)
        ]
    )


def _render_kpis(snapshot: AnalyticsSnapshot, goals: GoalSettings) -> None:
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Trabalhados", f"{snapshot.total_visited:,.0f}", help=f"Meta da equipe: {snapshot.team_target_visited:,.0f}")
    col2.metric("Média Diária", f"{snapshot.daily_average:.1f}")
    col3.metric("Eficiência", f"{snapshot.efficiency_pct:.1f}%")
    col4.metric("Perda", f"{snapshot.loss_pct:.1f}%")

    col5, col6, col7, col8 = st.columns(4)
    col5.metric("Fechados", f"{snapshot.total_closed:,.0f}")
    col6.metric("Recusas", f"{snapshot.total_refused:,.0f}")
    col7.metric("Tratados", f"{snapshot.total_treated:,.0f}")
    col8.metric("Larvicida (g)", f"{snapshot.total_larvicide_grams:,.1f}")

    daily = _status_colour(snapshot.daily_average, goals.daily_min, goals.daily_max)
    efficiency = _status_colour(snapshot.efficiency_pct, goals.efficiency_min)
    st.markdown(
        f"Média diária: :{daily}[{snapshot.daily_average:.1f}] "
        f"(meta {goals.daily_min:g}–{goals.daily_max:g}) · "
        f"Eficiência: :{efficiency}[{snapshot.efficiency_pct:.1f}%] (mínimo {goals.efficiency_min:g}%)"
    )


if "ingestion_result" not in st.session_state:
    st.session_state.ingestion_result = None
if "uploaded_hash" not in st.session_state:
    st.session_state.uploaded_hash = None
if "ingestion_error" not in st.session_state:
    st.session_state.ingestion_error = None


defaults = get_goal_settings()

with st.sidebar:
    st.header("Arquivo")
    uploaded_file = st.file_uploader(
        "Planilha de produção",
        type=sorted(ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS),
    )
    if uploaded_file is not None:
        uploaded_bytes = uploaded_file.getvalue()
        upload_hash = hashlib.sha256(uploaded_bytes).hexdigest()
        if upload_hash != st.session_state.uploaded_hash:
            try:
                st.session_state.ingestion_result = get_file_ingestion_service().ingest(
                    data=uploaded_bytes,
                    filename=uploaded_file.name,
                )
                st.session_state.ingestion_error = None
            except FileIngestionError as exc:
                st.session_state.ingestion_error = str(exc)
            st.session_state.uploaded_hash = upload_hash

    if st.session_state.ingestion_error:
        st.error(st.session_state.ingestion_error)

    st.header("Metas")
    goals = GoalSettings(
        target_visited=st.number_input("Meta por agente (ciclo)", min_value=0.0, value=float(defaults.target_visited), step=50.0),
        daily_min=st.number_input("Média diária mínima", min_value=0.0, value=float(defaults.daily_min), step=1.0),
        daily_max=st.number_input("Média diária máxima", min_value=0.0, value=float(defaults.daily_max), step=1.0),
        efficiency_min=st.number_input("Eficiência mínima (%)", min_value=0.0, max_value=100.0, value=float(defaults.efficiency_min), step=1.0),
    )


st.title("Produção de Campo")

result = st.session_state.ingestion_result
if result is None:
    st.info("Carregue uma planilha CSV ou Excel para visualizar a produção.")
    st.stop()

st.caption(f"{result.source_name}: {result.rows_loaded} linha(s) carregada(s) em {result.loaded_at:%d/%m/%Y %H:%M}.")

options = filter_options(result.records)
fcol1, fcol2, fcol3, fcol4, fcol5 = st.columns(5)
with fcol1:
    cycle = _select("Ciclo", options.cycles, "filter_cycle")
with fcol2:
    month = _select("Mês", options.months, "filter_month")
with fcol3:
    year = _select("Ano", options.years, "filter_year")
with fcol4:
    supervisor = _select("Supervisor", options.supervisors, "filter_supervisor")
with fcol5:
    agent = _select("Agente", options.agents, "filter_agent")

filters = FilterState(supervisor=supervisor, agent=agent, cycle=cycle, month=month, year=year)
records = apply_filters(result.records, filters)
snapshot = build_snapshot(records, goals, get_neighborhood_targets())

_render_kpis(snapshot, goals)

tab_agents, tab_teams, tab_coverage, tab_types, tab_issues = st.tabs(
    ["Agentes", "Equipes", "Cobertura", "Depósitos e Imóveis", "Pendências"]
)

with tab_agents:
    ranking = _ranking_frame(snapshot)
    if ranking.empty:
        st.info("Nenhum agente na seleção atual.")
    else:
        st.dataframe(ranking, use_container_width=True, hide_index=True)
        chosen = st.selectbox("Detalhar agente", options=list(ranking["Agente"]))
        detail = agent_detail(records, chosen)
        if detail is not None:
            dcol1, dcol2, dcol3 = st.columns(3)
            dcol1.metric("Trabalhados", f"{detail.visited:,.0f}")
            dcol2.metric("Dias trabalhados", detail.worked_days)
            dcol3.metric("Eficiência", f"{detail.efficiency_pct:.1f}%")
            st.dataframe(
                pd.DataFrame(
                    [
                        {
                            "Ciclo": c.cycle,
                            "Trabalhados": c.visited,
                            "Dias": c.worked_days,
                            "Média Diária": c.daily_average,
                            "Fechados": c.closed,
                            "Recusas": c.refused,
                            "Resgates": c.rescued,
                            "Larvicida (g)": c.larvicide_grams,
                        }
                        for c in detail.cycles
                    ]
                ),
                use_container_width=True,
                hide_index=True,
            )

with tab_teams:
    teams = pd.DataFrame(
        [
            {
                "Supervisor": sup.name,
                "Trabalhados": sup.visited,
                "Agentes": sup.agent_count,
                "Média por Agente": sup.average_per_agent,
            }
            for sup in snapshot.supervisor_ranking
        ]
    )
    if teams.empty:
        st.info("Nenhuma equipe na seleção atual.")
    else:
        st.dataframe(teams, use_container_width=True, hide_index=True)
        st.bar_chart(teams.set_index("Supervisor")["Média por Agente"])

with tab_coverage:
    coverage = _coverage_frame(snapshot)
    if coverage.empty:
        st.info("Sem produção por bairro.")
    else:
        st.dataframe(coverage, use_container_width=True, hide_index=True)

with tab_types:
    ccol1, ccol2 = st.columns(2)
    with ccol1:
        st.markdown("**Depósitos**")
        st.bar_chart(pd.DataFrame([{"name": p.name, "value": p.value} for p in snapshot.chart_deposits], columns=["name", "value"]).set_index("name"))
    with ccol2:
        st.markdown("**Tipos de Imóvel**")
        st.bar_chart(pd.DataFrame([{"name": p.name, "value": p.value} for p in snapshot.chart_properties], columns=["name", "value"]).set_index("name"))

with tab_issues:
    issues = _issues_frame(records)
    st.caption(f"{len(issues)} ocorrência(s).")
    if not issues.empty:
        st.dataframe(issues, use_container_width=True, hide_index=True)


st.subheader("Relatório")
export_service = get_report_export_service()
document = export_service.build_report(snapshot=snapshot, records=records, filters=filters, goals=goals)
report_json: dict[str, Any] = export_service.to_json(document)

rcol1, rcol2, rcol3 = st.columns(3)
with rcol1:
    st.download_button(
        label="Baixar JSON",
        data=json.dumps(report_json, indent=2, ensure_ascii=False).encode("utf-8"),
        file_name="relatorio_producao.json",
        mime="application/json",
        use_container_width=True,
    )
with rcol2:
    st.download_button(
        label="Baixar Ranking (CSV)",
        data=export_service.to_csv(document, "agents").encode("utf-8"),
        file_name="relatorio_agents.csv",
        mime="text/csv",
        use_container_width=True,
    )
with rcol3:
    st.download_button(
        label="Baixar Excel",
        data=export_service.to_xlsx(document),
        file_name="relatorio_producao.xlsx",
        mime=_XLSX_MIME,
        use_container_width=True,
    )
