"""Mapping raw CSV rows into typed IssueRecord instances."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

from .models import IssueRecord, RawTable, ResolvedColumns

_LEADING_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)")


def parse_story_points(value: Any) -> float:
    """Parse a story point cell leniently; anything unusable counts as 0.

    A leading number is honoured even with trailing text ("3 pts" -> 3.0) and
    negative values are clamped to 0 so points can only ever add up.
    """
    if value is None:
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    else:
        match = _LEADING_NUMBER_RE.match(str(value))
        if not match:
            return 0.0
        number = float(match.group(0))
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def _cell(row: Mapping[str, Any], column: str | None) -> str:
    if not column:
        return ""
    value = row.get(column)
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def map_record(row: Mapping[str, Any], columns: ResolvedColumns) -> IssueRecord:
    return IssueRecord(
        key=_cell(row, columns.key),
        issue_id=_cell(row, columns.id),
        issue_type=_cell(row, columns.issue_type).lower(),
        status=_cell(row, columns.status),
        summary=_cell(row, columns.summary),
        sprint=_cell(row, columns.sprint),
        story_points=parse_story_points(row.get(columns.story_points) if columns.story_points else None),
        epic_link=_cell(row, columns.epic_link),
        epic_key=_cell(row, columns.epic_key),
        parent=_cell(row, columns.parent),
        custom_parent=_cell(row, columns.custom_parent),
        assignee=_cell(row, columns.assignee),
        creator=_cell(row, columns.creator),
        component=_cell(row, columns.component),
        project=_cell(row, columns.project),
        created=_cell(row, columns.created),
    )


def records_from_rows(rows: Iterable[Mapping[str, Any]], columns: ResolvedColumns) -> list[IssueRecord]:
    return [map_record(row, columns) for row in rows]


def records_from_table(table: RawTable, columns: ResolvedColumns) -> list[IssueRecord]:
    return records_from_rows(table.records, columns)
