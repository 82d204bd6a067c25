"""DataFrame views over analysed epics for tables, filters and downloads."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd

from epic_app.core.models import ChildIssue, Epic, RawTable

ALL = "all"

EPIC_COLUMNS = [
    "key",
    "name",
    "status",
    "sprint",
    "story_points",
    "total_story_points",
    "completed_story_points",
    "child_count",
    "time_in_status",
    "cycle_time",
    "sla_class",
    "sla_text",
    "assignee",
    "creator",
    "component",
    "project",
]

CHILD_COLUMNS = [
    "key",
    "name",
    "issue_type",
    "status",
    "sprint",
    "story_points",
    "parent_epic_key",
    "is_completed",
    "match_method",
]


def epics_to_dataframe(epics: Iterable[Epic]) -> pd.DataFrame:
    rows = []
    for e in epics:
        rows.append(
            {
                "key": e.key,
                "name": e.name,
                "status": e.status,
                "sprint": e.sprint,
                "story_points": e.story_points,
                "total_story_points": e.total_story_points,
                "completed_story_points": e.completed_story_points,
                "child_count": e.child_count,
                "time_in_status": e.time_in_status,
                "cycle_time": e.cycle_time,
                "sla_class": e.sla_class,
                "sla_text": e.sla_status.text if e.sla_status else "",
                "assignee": e.assignee,
                "creator": e.creator,
                "component": e.component,
                "project": e.project,
            }
        )
    return pd.DataFrame(rows, columns=EPIC_COLUMNS)


def children_to_dataframe(children: Iterable[ChildIssue]) -> pd.DataFrame:
    rows = [
        {
            "key": c.key,
            "name": c.name,
            "issue_type": c.issue_type,
            "status": c.status,
            "sprint": c.sprint,
            "story_points": c.story_points,
            "parent_epic_key": c.parent_epic_key,
            "is_completed": c.is_completed,
            "match_method": c.match_method,
        }
        for c in children
    ]
    return pd.DataFrame(rows, columns=CHILD_COLUMNS)


def preview_frame(table: RawTable, max_rows: int = 5) -> tuple[pd.DataFrame, str]:
    """First rows of an uploaded table plus a "Showing N of M rows" note.

    The note is empty when every row fits in the preview.
    """
    rows = [{h: r.get(h, "") for h in table.headers} for r in table.records[:max_rows]]
    note = f"Showing {max_rows} of {len(table.records)} rows" if len(table.records) > max_rows else ""
    return pd.DataFrame(rows, columns=table.headers), note


def filter_options(df: pd.DataFrame) -> dict[str, list[str]]:
    """Distinct non-empty statuses, sprints and SLA classes for filter widgets."""
    options: dict[str, list[str]] = {}
    for col in ("status", "sprint", "sla_class"):
        if df.empty or col not in df.columns:
            options[col] = []
            continue
        values = df[col].dropna().astype(str)
        options[col] = sorted({v for v in values if v})
    return options


def filter_epics(
    df: pd.DataFrame,
    *,
    status: str = ALL,
    sprint: str = ALL,
    sla_class: str = ALL,
) -> pd.DataFrame:
    """Keep rows matching every selected value; ``"all"`` disables a filter."""
    if df.empty:
        return df
    mask = pd.Series(True, index=df.index)
    if status and status != ALL:
        mask &= df["status"] == status
    if sprint and sprint != ALL:
        mask &= df["sprint"] == sprint
    if sla_class and sla_class != ALL:
        mask &= df["sla_class"] == sla_class
    return df[mask]


def paginate(df: pd.DataFrame, page: int, rows_per_page: int | None) -> tuple[pd.DataFrame, int]:
    """Return the rows for a 1-based page and the total page count.

    ``rows_per_page`` of None (or <= 0) shows everything on a single page.
    """
    if df.empty:
        return df, 1
    if not rows_per_page or rows_per_page <= 0:
        return df, 1
    total_pages = max(1, -(-len(df) // rows_per_page))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * rows_per_page
    return df.iloc[start : start + rows_per_page], total_pages


@dataclass(slots=True)
class ChildBreakdown:
    total: int
    completed: int
    completion_percentage: int
    by_status: dict[str, int]


def child_status_breakdown(epic: Epic) -> ChildBreakdown:
    """Child counts per status plus the share of completed children."""
    children = epic.children or []
    by_status: dict[str, int] = {}
    completed = 0
    for child in children:
        status = child.status or "No Status"
        by_status[status] = by_status.get(status, 0) + 1
        if child.is_completed:
            completed += 1
    total = len(children)
    pct = round(completed / total * 100) if total else 0
    return ChildBreakdown(total=total, completed=completed, completion_percentage=pct, by_status=by_status)
