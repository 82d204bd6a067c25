"""SLA settings page: edit, persist and apply per-status thresholds."""

from __future__ import annotations

import logging

import streamlit as st

from epic_app.app import register_page
from epic_app.core.config import MAX_SLA_THRESHOLD_DAYS, SLA_SETTINGS_FIELDS
from epic_app.core.errors import AnalysisError
from epic_app.core.sla_config import SLAConfig

logger = logging.getLogger(__name__)

SESSION_KEY = "sla_config"


def get_sla_config() -> SLAConfig:
    """Session-scoped SLAConfig, loaded from the settings cache on first use."""
    config = st.session_state.get(SESSION_KEY)
    if config is None:
        config = SLAConfig.load()
        st.session_state[SESSION_KEY] = config
    return config


def _reanalyze(config: SLAConfig) -> None:
    service = st.session_state.get("analysis_service")
    if service is None or service.main_table is None:
        return
    try:
        result = service.reanalyze(config.as_mapping())
    except AnalysisError as exc:
        st.error(f"Reanalysis Error: {exc}")
        return
    st.session_state["analysis_result"] = result
    st.info("Data reanalyzed with updated SLA settings.")


def _persist(config: SLAConfig, message: str) -> None:
    try:
        config.save()
    except OSError as exc:
        logger.error("Could not save SLA settings: %s", exc)
        st.warning(f"Settings apply to this session only; saving failed: {exc}")
    else:
        st.success(message)
    _reanalyze(config)


@register_page("SLA Settings")
def sla_settings_page():
    st.title("SLA Settings")
    st.caption("Days an epic may stay in a status before it is flagged as at risk.")
    config = get_sla_config()
    current = config.ui_values()

    with st.form("sla_settings_form"):
        cols = st.columns(3)
        values: dict[str, int] = {}
        for idx, (field_id, label, _keys) in enumerate(SLA_SETTINGS_FIELDS):
            with cols[idx % 3]:
                values[field_id] = st.number_input(
                    f"{label} (days)",
                    min_value=1,
                    max_value=MAX_SLA_THRESHOLD_DAYS,
                    value=min(int(current[field_id]), MAX_SLA_THRESHOLD_DAYS),
                    step=1,
                    key=f"sla_{field_id}",
                )
        save = st.form_submit_button("Save Settings", type="primary")

    if save:
        config.apply_ui_values(values)
        _persist(config, "SLA settings saved successfully!")

    if st.button("Reset to Defaults"):
        config.reset()
        for field_id, _label, _keys in SLA_SETTINGS_FIELDS:
            st.session_state.pop(f"sla_{field_id}", None)
        _persist(config, "SLA settings reset to defaults!")

    st.markdown("---")
    st.subheader("Current Thresholds")
    st.table(
        {
            "Status": [label for _fid, label, _keys in SLA_SETTINGS_FIELDS],
            "Days": [config.ui_values()[fid] for fid, _label, _keys in SLA_SETTINGS_FIELDS],
        }
    )
