"""Streamlit shell for the activity analytics report.

Replaceable UI layer: holds session state and renders. Every number shown
is recomputed by ``build_report`` on each rerun.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import pandas as pd
import streamlit as st

from activity_analytics.config import configure_logging
from activity_analytics.domain.usage_row import COLUMN_TOTAL_ACTIVITIES, MEASURE_COLUMNS, UsageRow
from activity_analytics.schemas.csv_validation import CSVValidationSummaryResponse
from activity_analytics.services.csv_validation_service import get_csv_validation_service
from activity_analytics.services.filter_engine import (
    DateRange,
    EntityFilter,
    EntityFilterMode,
    data_date_span,
    date_presets,
    list_companies,
)
from activity_analytics.services.report_labels import build_export_filename
from activity_analytics.services.report_pipeline import FilterSelection, ReportSnapshot, build_report
from activity_analytics.services.timeline_aggregator import DATE_KEY, Timeline, running_total
from trend.classifier import compute_momentum
from trend.schema import TrendTable
from trend.windows import resolve_as_of

# ── Page config (must be first Streamlit call) ─────────────────────────────
st.set_page_config(page_title="Activity Analytics", page_icon="📈", layout="wide")


@st.cache_resource(show_spinner=False)
def _init_backend():
    configure_logging()
    return get_csv_validation_service()


# ── Session state defaults ─────────────────────────────────────────────────
_STATE_DEFAULTS: dict = {
    "validation": None,
    "file_name": None,
}

for _key, _val in _STATE_DEFAULTS.items():
    if _key not in st.session_state:
        st.session_state[_key] = _val

_ENTITY_MODES = {
    "All Brands and Suppliers": EntityFilterMode.ALL,
    "Brands only": EntityFilterMode.BRANDS,
    "Suppliers only": EntityFilterMode.SUPPLIERS,
    "Specific companies": EntityFilterMode.SPECIFIC,
}


# ── Helper renderers ───────────────────────────────────────────────────────
def _timeline_frame(timeline: Timeline) -> pd.DataFrame:
    frame = pd.DataFrame(timeline.to_records())
    if frame.empty:
        return frame
    frame[DATE_KEY] = pd.to_datetime(frame[DATE_KEY], format="%d/%m/%Y", errors="coerce")
    return frame.set_index(DATE_KEY)


def _trend_table_frame(table: TrendTable) -> pd.DataFrame:
    records = []
    for row in table.rows:
        record: dict = {"": row.label}
        for figures in row.windows:
            record[f"{figures.window_days}d Avg"] = round(figures.average, 2)
            record[f"{figures.window_days}d Actual"] = figures.actual
            record[f"{figures.window_days}d Trend"] = figures.trend.value if figures.trend else ""
        records.append(record)
    return pd.DataFrame(records)


def _render_validation(summary: CSVValidationSummaryResponse) -> None:
    cols = st.columns(4)
    cols[0].metric("Successful rows", f"{summary.successful_rows:,}")
    cols[1].metric("Unsuccessful rows", f"{summary.unsuccessful_rows:,}")
    cols[2].metric("Errors", summary.total_errors)
    cols[3].metric("Warnings", summary.total_warnings)

    if summary.parse_failed:
        st.error(summary.errors[0] if summary.errors else "CSV could not be parsed.")
        return
    if summary.errors:
        with st.expander(f"Errors ({len(summary.errors)})"):
            for message in summary.errors:
                st.markdown(f"- {message}")
    if summary.warnings:
        with st.expander(f"Warnings ({len(summary.warnings)})"):
            for message in summary.warnings:
                st.markdown(f"- {message}")


def _render_preview(rows: tuple[UsageRow, ...]) -> None:
    with st.expander("Data Table Preview", expanded=False):
        if not rows:
            st.info("No rows match the current selection.")
            return
        st.dataframe(pd.DataFrame([row.to_preview_record() for row in rows]), use_container_width=True)


def _render_timeline(snapshot: ReportSnapshot, series: str, show_running_total: bool, show_all_series: bool) -> None:
    timeline = snapshot.activity_timeline if show_all_series and snapshot.activity_timeline else snapshot.timeline
    frame = _timeline_frame(timeline)
    if frame.empty:
        st.info("No valid rows to chart for this selection.")
        return

    if show_running_total:
        totals = pd.DataFrame(running_total(snapshot.timeline))
        totals[DATE_KEY] = pd.to_datetime(totals[DATE_KEY], format="%d/%m/%Y", errors="coerce")
        frame = frame.join(totals.set_index(DATE_KEY))

    st.caption(
        f"Showing: {snapshot.filter_description} | "
        f"Series: {'All Data Series' if show_all_series else series}"
        f"{' + Running Total' if show_running_total else ''}"
    )
    st.line_chart(frame)

    file_name = build_export_filename(
        entity_filter=st.session_state.selection.entity_filter,
        timeline=snapshot.timeline,
        series=series,
        show_running_total=show_running_total,
        show_all_series=show_all_series,
    )
    st.download_button(
        "Download chart data",
        data=frame.reset_index().to_csv(index=False).encode("utf-8"),
        file_name=file_name.replace(".png", ".csv"),
        mime="text/csv",
    )


# ── Sidebar ────────────────────────────────────────────────────────────────
service = _init_backend()

with st.sidebar:
    st.title("Activity Analytics")
    st.caption("Platform usage reporting")
    st.divider()

    uploaded_file = st.file_uploader("Upload usage export (CSV)", type=["csv"])
    if uploaded_file and uploaded_file.name != st.session_state.file_name:
        st.session_state.validation = service.validate(uploaded_file.getvalue())
        st.session_state.file_name = uploaded_file.name

validation = st.session_state.validation
if validation is None:
    st.info("Upload a CSV file in the sidebar to begin.")
    st.stop()

rows = validation.rows
span = data_date_span(rows)

with st.sidebar:
    mode_label = st.radio("Entities", list(_ENTITY_MODES))
    mode = _ENTITY_MODES[mode_label]
    companies: list[str] = []
    if mode is EntityFilterMode.SPECIFIC:
        companies = st.multiselect("Companies", list_companies(rows))

    date_range = DateRange()
    if span is not None:
        presets = date_presets(span)
        preset_label = st.selectbox("Date preset", ["Custom", *presets])
        default: DateRange = presets.get(preset_label, span)
        picked = st.date_input(
            "Date range",
            value=(default.start, default.end),
            min_value=span.start,
            max_value=span.end,
            format="DD/MM/YYYY",
        )
        if isinstance(picked, (tuple, list)) and len(picked) == 2:
            date_range = DateRange(picked[0], picked[1])

    series = st.selectbox("Series", list(MEASURE_COLUMNS), index=MEASURE_COLUMNS.index(COLUMN_TOTAL_ACTIVITIES))
    show_running_total = st.checkbox("Show running total")
    show_all_series = st.checkbox("Show all data series (single company)")
    as_of: Optional[date] = st.date_input("Trend tables as of", value=resolve_as_of(rows))

st.session_state.selection = FilterSelection(
    entity_filter=EntityFilter(mode, frozenset(companies)),
    date_range=date_range,
)
snapshot = build_report(rows, st.session_state.selection, measure_column=series, as_of=as_of)

# ── Main content area ──────────────────────────────────────────────────────
tab_data, tab_timeline, tab_trends = st.tabs(["Validation", "Activity Timeline", "Trend Tables"])

with tab_data:
    _render_validation(CSVValidationSummaryResponse.from_result(validation, snapshot.rows))
    _render_preview(snapshot.rows)

with tab_timeline:
    _render_timeline(snapshot, series, show_running_total, show_all_series)

with tab_trends:
    momentum = compute_momentum(snapshot.rows, series, 7, as_of or resolve_as_of(snapshot.rows))
    st.metric(
        f"{series}, last 7 days vs prior 7 days",
        f"{momentum.current_average:,.2f}/day",
        delta=f"{momentum.change_pct:+.2f}% ({momentum.tag.value})" if momentum.change_pct is not None else momentum.tag.value,
    )
    st.subheader(f"{series} by entity")
    st.dataframe(_trend_table_frame(snapshot.entity_summary_table), use_container_width=True)
    if snapshot.company_trend_table is not None:
        st.subheader(f"{snapshot.company_trend_table.company} by activity type")
        st.dataframe(_trend_table_frame(snapshot.company_trend_table), use_container_width=True)
