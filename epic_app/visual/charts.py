"""Chart builders (Altair) for sprint delivery and SLA health."""

from __future__ import annotations

import altair as alt
import pandas as pd

from epic_app.core.models import Metrics

SLA_COLORS = {
    "at-risk": "#d62728",
    "on-track": "#27ae60",
    "closed": "#95a5a6",
}

SLA_LABELS = {
    "at-risk": "At Risk",
    "on-track": "On Track",
    "closed": "Closed",
}


def sprint_points_chart(metrics: Metrics):
    """Grouped bars of committed vs completed points per sprint."""
    if not metrics.sprint_data:
        return None
    rows = []
    for sprint in metrics.sprint_data:
        realization = round(sprint.realization, 1)
        for kind, points in (("Committed", sprint.committed), ("Completed", sprint.completed)):
            rows.append({"sprint": sprint.name, "kind": kind, "points": points, "realization": realization})
    data = pd.DataFrame(rows)
    return (
        alt.Chart(data)
        .mark_bar()
        .encode(
            x=alt.X("sprint:N", title="Sprint", sort=None),
            xOffset=alt.XOffset("kind:N"),
            y=alt.Y("points:Q", title="Story Points"),
            color=alt.Color(
                "kind:N",
                title="",
                scale=alt.Scale(domain=["Committed", "Completed"], range=["#4472C4", "#27ae60"]),
            ),
            tooltip=[
                alt.Tooltip("sprint:N", title="Sprint"),
                alt.Tooltip("kind:N", title="Points"),
                alt.Tooltip("points:Q", title="Value", format=".1f"),
                alt.Tooltip("realization:Q", title="Realization %", format=".1f"),
            ],
        )
        .properties(height=320)
    )


def sla_distribution_chart(epics_df: pd.DataFrame):
    """Horizontal bar of epic counts per SLA class."""
    if epics_df.empty or "sla_class" not in epics_df.columns:
        return None
    counts = epics_df["sla_class"].replace("", pd.NA).dropna().value_counts().reset_index()
    if counts.empty:
        return None
    counts.columns = ["sla_class", "count"]
    counts["label"] = counts["sla_class"].map(SLA_LABELS).fillna(counts["sla_class"])
    domain = [c for c in SLA_COLORS if c in set(counts["sla_class"])]
    return (
        alt.Chart(counts)
        .mark_bar()
        .encode(
            y=alt.Y("label:N", title="", sort="-x"),
            x=alt.X("count:Q", title="Epics"),
            color=alt.Color(
                "sla_class:N",
                legend=None,
                scale=alt.Scale(domain=domain, range=[SLA_COLORS[c] for c in domain]),
            ),
            tooltip=[alt.Tooltip("label:N", title="SLA"), alt.Tooltip("count:Q", title="Epics")],
        )
        .properties(height=max(80, 30 * len(counts)))
    )
