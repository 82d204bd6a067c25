"""Reusable table helpers for Streamlit rendering."""

from __future__ import annotations

import pandas as pd
import streamlit as st

# Mapping of frame columns to (label, help text, format key)
# format key: "int" -> integer, "float1" -> 1 decimal float, None -> text
COLUMN_METADATA: dict[str, tuple[str, str, str | None]] = {
    "name": ("Title", "Epic or issue summary.", None),
    "status": ("Status", "Current workflow status.", None),
    "sprint": ("Sprint", "Sprint the item is planned in.", None),
    "story_points": ("Own Points", "Story points set on the item itself.", "float1"),
    "total_story_points": ("Total Points", "Own points plus all linked child points.", "float1"),
    "completed_story_points": ("Done Points", "Points of completed work under the epic.", "float1"),
    "child_count": ("Children", "Number of child issues linked to the epic.", "int"),
    "time_in_status": ("Time in Status", "Time spent in the current status.", None),
    "cycle_time": ("Cycle Time (days)", "Days in In Progress plus Code Review.", None),
    "sla_text": ("SLA", "SLA classification against the configured thresholds.", None),
    "assignee": ("Assignee", "Current owner of the epic.", None),
    "issue_type": ("Type", "Issue type.", None),
    "parent_epic_key": ("Epic", "Epic the issue is attributed to.", None),
    "match_method": ("Linked By", "How the issue was attributed to its epic.", None),
}

EPIC_TABLE_COLUMNS = [
    "Ticket",
    "name",
    "status",
    "sprint",
    "total_story_points",
    "completed_story_points",
    "child_count",
    "time_in_status",
    "cycle_time",
    "sla_text",
    "assignee",
]

CHILD_TABLE_COLUMNS = ["Ticket", "name", "issue_type", "status", "story_points", "sprint", "match_method"]


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    base = (server or "").rstrip("/")
    if base:
        out[label] = out[key_col].astype(str).apply(lambda k: f"{base}/browse/{k}" if k else "")
        cfg = {
            label: st.column_config.LinkColumn(
                label,
                display_text=r"browse/(.*)$",
                help="Open in the issue tracker",
                width="small",
            )
        }
    else:
        out[label] = out[key_col]
        cfg = {label: st.column_config.TextColumn(label, width="small")}
    return out, cfg


def apply_column_metadata(columns: list[str], base: dict[str, object] | None = None) -> dict[str, object]:
    cfg: dict[str, object] = dict(base or {})
    for col in columns:
        if col in cfg or col not in COLUMN_METADATA:
            continue
        label, help_text, fmt = COLUMN_METADATA[col]
        if fmt == "int":
            cfg[col] = st.column_config.NumberColumn(label, help=help_text, format="%d")
        elif fmt == "float1":
            cfg[col] = st.column_config.NumberColumn(label, help=help_text, format="%.1f")
        else:
            cfg[col] = st.column_config.TextColumn(label, help=help_text)
    return cfg


def render_table(df: pd.DataFrame, server: str, columns: list[str]) -> None:
    linked, cfg = add_ticket_link(df, server)
    display_cols = [c for c in columns if c in linked.columns]
    st.dataframe(
        linked[display_cols],
        hide_index=True,
        column_config=apply_column_metadata(display_cols, cfg),
        use_container_width=True,
    )
