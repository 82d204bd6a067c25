"""Epic Analyzer page.

Upload the main tracker export (plus an optional time-in-status export), run
the analysis, and browse portfolio metrics, sprint rollups, epics, their child
issues, and escalation notices for at-risk epics.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import pandas as pd
import streamlit as st

from epic_app.analytics.escalation import suggest_recipients
from epic_app.analytics.frames import (
    ALL,
    child_status_breakdown,
    children_to_dataframe,
    epics_to_dataframe,
    filter_epics,
    filter_options,
    paginate,
    preview_frame,
)
from epic_app.analytics.metrics import metrics_to_frame
from epic_app.app import register_page
from epic_app.core.config import DEFAULT_TICKET_BASE_URL, SETTINGS
from epic_app.core.csv_loader import read_csv_table
from epic_app.core.errors import AnalysisError, CsvDecodeError
from epic_app.core.models import Epic, RawTable
from epic_app.core.service import AnalysisResult, AnalysisService
from epic_app.pages.sla_settings import get_sla_config
from epic_app.visual.charts import sla_distribution_chart, sprint_points_chart
from epic_app.visual.hierarchy import build_epic_sunburst
from epic_app.visual.progress import ProgressReporter
from epic_app.visual.tables import CHILD_TABLE_COLUMNS, EPIC_TABLE_COLUMNS, render_table

logger = logging.getLogger(__name__)

PAGE_KEY = "analyzer"
ROWS_PER_PAGE_OPTIONS = [10, 25, 50, 100, "all"]


def _show_preview(label: str, table: RawTable) -> None:
    preview, note = preview_frame(table)
    with st.expander(f"{label} preview", expanded=False):
        st.dataframe(preview, hide_index=True, use_container_width=True)
        if note:
            st.caption(note)


def _run_analysis(main_file, time_file) -> None:
    total_mb = (main_file.size + (time_file.size if time_file else 0)) / (1024 * 1024)
    if total_mb > SETTINGS.large_upload_mb:
        st.info(f"Processing {total_mb:.1f}MB of data. This might take a moment...")

    reporter = ProgressReporter("Analyzing epics")
    try:
        main_table = read_csv_table(main_file.getvalue(), file_name=main_file.name)
    except CsvDecodeError as exc:
        reporter.error(str(exc))
        return
    _show_preview(main_file.name, main_table)

    time_table = None
    if time_file is not None:
        try:
            time_table = read_csv_table(time_file.getvalue(), file_name=time_file.name)
            _show_preview(time_file.name, time_table)
        except CsvDecodeError as exc:
            st.warning(f"Time CSV Parse Error: {exc} Continuing without time data.")

    service = AnalysisService(get_sla_config().as_mapping())
    try:
        result = service.analyze(main_table, time_table, progress=reporter.callback)
    except AnalysisError as exc:
        logger.error("Analysis failed: %s", exc)
        reporter.error(f"Analysis Error: {exc}")
        st.session_state.pop("analysis_result", None)
        return
    st.session_state["analysis_service"] = service
    st.session_state["analysis_result"] = result
    reporter.complete(result.summary_message())


def _render_metrics(result: AnalysisResult) -> None:
    overall = result.metrics.overall
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Epics", overall.total_epics)
    c2.metric("Sprint Realization", f"{overall.realization:.1f}%")
    c3.metric("Avg Cycle Time (days)", f"{overall.avg_cycle_time:.1f}")
    c4.metric("Epics At Risk", f"{overall.at_risk_count} ({overall.at_risk_percentage:.1f}%)")

    st.subheader("Sprint Metrics")
    sprint_df = metrics_to_frame(result.metrics)
    left, right = st.columns([3, 2])
    with left:
        st.dataframe(
            sprint_df,
            hide_index=True,
            use_container_width=True,
            column_config={
                "sprint": st.column_config.TextColumn("Sprint"),
                "committed": st.column_config.NumberColumn("Committed Points", format="%.1f"),
                "completed": st.column_config.NumberColumn("Completed Points", format="%.1f"),
                "realization": st.column_config.NumberColumn("Realization %", format="%.1f"),
                "avg_cycle_time": st.column_config.NumberColumn("Avg Cycle Time", format="%.1f"),
                "at_risk_pct": st.column_config.NumberColumn("At Risk %", format="%.1f"),
            },
        )
    with right:
        chart = sprint_points_chart(result.metrics)
        if chart is not None:
            st.altair_chart(chart, use_container_width=True)


def _render_epic_table(epics_df: pd.DataFrame, server: str) -> None:
    options = filter_options(epics_df)
    f1, f2, f3, f4 = st.columns(4)
    status = f1.selectbox("Status", [ALL, *options["status"]], key=f"{PAGE_KEY}_status")
    sprint = f2.selectbox("Sprint", [ALL, *options["sprint"]], key=f"{PAGE_KEY}_sprint")
    sla_class = f3.selectbox("SLA Status", [ALL, *options["sla_class"]], key=f"{PAGE_KEY}_sla")
    rows_per_page = f4.selectbox(
        "Rows per page",
        ROWS_PER_PAGE_OPTIONS,
        index=ROWS_PER_PAGE_OPTIONS.index(SETTINGS.rows_per_page)
        if SETTINGS.rows_per_page in ROWS_PER_PAGE_OPTIONS
        else 0,
        key=f"{PAGE_KEY}_rows",
    )
    filtered = filter_epics(epics_df, status=status, sprint=sprint, sla_class=sla_class)
    if filtered.empty:
        st.info("No epics match the selected filters.")
        return
    per_page = None if rows_per_page == "all" else int(rows_per_page)
    _, total_pages = paginate(filtered, 1, per_page)
    page = 1
    if total_pages > 1:
        page = int(st.number_input("Page", min_value=1, max_value=total_pages, value=1, step=1))
    page_df, total_pages = paginate(filtered, page, per_page)
    st.caption(f"Showing page {page} of {total_pages} ({len(filtered)} epics)")
    render_table(page_df, server, EPIC_TABLE_COLUMNS)


def _render_escalation(epic: Epic, service: AnalysisService | None) -> None:
    if service is None:
        return
    template = service.escalation_for(epic)
    suggestions = suggest_recipients(epic)
    if suggestions:
        st.caption("Suggested recipients")
        for s in suggestions:
            st.write(f"**{s.role}:** {s.name}" + (f" ({s.email})" if s.email else ""))
    default_recipients = ", ".join(s.email for s in suggestions if s.email)
    recipient = st.text_input("To", value=template.recipient or default_recipients, key=f"{PAGE_KEY}_to")
    subject = st.text_input("Subject", value=template.subject, key=f"{PAGE_KEY}_subject")
    body = st.text_area("Body", value=template.body, height=320, key=f"{PAGE_KEY}_body")
    mailto = f"mailto:{quote(recipient)}?subject={quote(subject)}&body={quote(body)}"
    st.link_button("Open in email client", mailto)


def _render_epic_detail(result: AnalysisResult, server: str) -> None:
    keys = [e.key for e in result.epics]
    if not keys:
        return
    selected = st.selectbox("Epic", keys, key=f"{PAGE_KEY}_detail_epic")
    epic = result.epic(selected)
    if epic is None:
        return
    st.markdown(f"### {epic.key}: {epic.name}")
    breakdown = child_status_breakdown(epic)
    d1, d2, d3, d4 = st.columns(4)
    d1.metric("Status", epic.status or "-")
    d2.metric("Time in Status", epic.time_in_status)
    d3.metric("Points (done/total)", f"{epic.completed_story_points:g}/{epic.total_story_points:g}")
    d4.metric("Children Completed", f"{breakdown.completed}/{breakdown.total} ({breakdown.completion_percentage}%)")
    if epic.sla_status is not None:
        st.caption(f"SLA: {epic.sla_status.text} · Cycle time: {epic.cycle_time}")

    if breakdown.total:
        labels = [f"All ({breakdown.total})"] + [f"{s} ({n})" for s, n in breakdown.by_status.items()]
        tabs = st.tabs(labels)
        children_df = children_to_dataframe(epic.children)
        with tabs[0]:
            render_table(children_df, server, CHILD_TABLE_COLUMNS)
        for tab, status in zip(tabs[1:], breakdown.by_status, strict=False):
            with tab:
                render_table(children_df[children_df["status"] == status], server, CHILD_TABLE_COLUMNS)
    else:
        st.info("No child issues are linked to this epic.")

    if epic.sla_class == "at-risk":
        with st.expander("Escalation email", expanded=False):
            _render_escalation(epic, st.session_state.get("analysis_service"))


def _render_results(result: AnalysisResult) -> None:
    for warning in result.warnings:
        st.warning(warning)
    if not result.epics:
        return
    server = st.session_state.get("ticket_base_url", "")
    _render_metrics(result)

    epics_df = epics_to_dataframe(result.epics)
    st.markdown("---")
    tab_epics, tab_detail, tab_hierarchy = st.tabs(["Epics", "Epic Detail", "Hierarchy"])
    with tab_epics:
        _render_epic_table(epics_df, server)
        sla_chart = sla_distribution_chart(epics_df)
        if sla_chart is not None:
            st.altair_chart(sla_chart, use_container_width=True)
    with tab_detail:
        _render_epic_detail(result, server)
    with tab_hierarchy:
        fig = build_epic_sunburst(result.epics)
        if fig is not None:
            st.plotly_chart(fig, use_container_width=True)

    stamp = result.generated_at.strftime("%Y%m%d_%H%M") if result.generated_at else "latest"
    d1, d2 = st.columns(2)
    d1.download_button(
        "Download Epics CSV",
        data=epics_df.to_csv(index=False).encode(SETTINGS.download_encoding),
        file_name=f"epics_{stamp}.csv",
        mime="text/csv",
    )
    d2.download_button(
        "Download Child Issues CSV",
        data=children_to_dataframe(result.child_issues).to_csv(index=False).encode(SETTINGS.download_encoding),
        file_name=f"child_issues_{stamp}.csv",
        mime="text/csv",
    )


@register_page("Epic Analyzer")
def analyzer_page():
    st.title("Epic Analyzer")
    st.caption("Link issues to epics, track SLA risk, and roll up sprint delivery from tracker CSV exports.")

    st.session_state["ticket_base_url"] = st.sidebar.text_input(
        "Tracker base URL",
        value=st.session_state.get("ticket_base_url", DEFAULT_TICKET_BASE_URL),
        help="Used to build ticket links; leave empty to show plain keys.",
    )

    main_file = st.file_uploader("Main issue export (CSV)", type=["csv"], key=f"{PAGE_KEY}_main")
    time_file = st.file_uploader("Time in status export (CSV, optional)", type=["csv"], key=f"{PAGE_KEY}_time")
    c1, c2 = st.columns([1, 5])
    analyze_btn = c1.button("Analyze", type="primary")
    if c2.button("Reset"):
        for key in ("analysis_result", "analysis_service"):
            st.session_state.pop(key, None)

    if analyze_btn:
        if main_file is None:
            st.info("Please upload a main CSV file with epics data before analyzing.")
        else:
            _run_analysis(main_file, time_file)

    result: AnalysisResult | None = st.session_state.get("analysis_result")
    if result is None:
        st.info("Upload an export and press Analyze to see results.")
        return
    _render_results(result)
