"""Plotly sunburst of the project -> epic -> child status hierarchy."""

from __future__ import annotations

from collections.abc import Sequence

import plotly.graph_objects as go

from epic_app.core.hierarchy import project_key
from epic_app.core.models import Epic


def build_epic_sunburst(epics: Sequence[Epic], *, max_epics: int = 60) -> go.Figure | None:
    """Build a sunburst sized by child count (an epic with no children counts 1).

    Returns None when there are no epics to draw.
    """
    if not epics:
        return None
    ids: list[str] = []
    labels: list[str] = []
    parents: list[str] = []
    values: list[int] = []
    hover: list[str] = []

    projects: dict[str, int] = {}
    shown = sorted(epics, key=lambda e: (-e.child_count, e.key))[:max_epics]
    for epic in shown:
        project = epic.project or (project_key(epic.key) or "Other").rstrip("-")
        project_id = f"p:{project}"
        epic_id = f"e:{epic.key}"
        epic_value = max(epic.child_count, 1)
        projects[project] = projects.get(project, 0) + epic_value

        by_status: dict[str, int] = {}
        for child in epic.children:
            by_status[child.status] = by_status.get(child.status, 0) + 1

        ids.append(epic_id)
        labels.append(epic.key)
        parents.append(project_id)
        values.append(epic_value)
        hover.append(
            f"<b>{epic.key}</b><br>{epic.name}<br>Status: {epic.status}<br>"
            f"Children: {epic.child_count}<br>Points: {epic.completed_story_points:g}/{epic.total_story_points:g}"
        )
        for status, count in by_status.items():
            ids.append(f"{epic_id}/{status}")
            labels.append(status)
            parents.append(epic_id)
            values.append(count)
            hover.append(f"{epic.key} - {status}: {count} issue(s)")

    for project, total in projects.items():
        ids.append(f"p:{project}")
        labels.append(project)
        parents.append("")
        values.append(total)
        hover.append(f"<b>{project}</b><br>{total} issue(s)")

    fig = go.Figure(
        go.Sunburst(
            ids=ids,
            labels=labels,
            parents=parents,
            values=values,
            branchvalues="total",
            hovertext=hover,
            hoverinfo="text",
        )
    )
    fig.update_layout(margin={"t": 10, "b": 10, "l": 10, "r": 10}, height=500, hoverlabel={"align": "left"})
    return fig
