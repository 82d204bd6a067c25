"""Time-in-status parsing, cycle time, and SLA risk classification (pure functions)."""

from __future__ import annotations

import logging
import re
from collections.abc import Collection, Iterable, Mapping
from dataclasses import replace
from typing import Any

from epic_app.core.column_config import get_time_key_candidates
from epic_app.core.columns import resolve_column
from epic_app.core.config import (
    COMPLETED_STATUSES,
    CYCLE_TIME_STATUSES,
    DEFAULT_SLA_THRESHOLDS,
    NO_TIME_VALUE,
)
from epic_app.core.models import SLA_AT_RISK, SLA_CLOSED, SLA_ON_TRACK, SLA_UNKNOWN, Epic, RawTable, SLAStatus
from epic_app.core.status import is_completed_status, normalize_status_label

logger = logging.getLogger(__name__)

TimeMap = dict[str, dict[str, str]]

_WEEKS_RE = re.compile(r"(\d+)w", re.IGNORECASE)
_DAYS_RE = re.compile(r"(\d+)d", re.IGNORECASE)
_HOURS_RE = re.compile(r"(\d+)h", re.IGNORECASE)

_EMPTY_DURATIONS = {"", NO_TIME_VALUE, "no data"}


def _component(pattern: re.Pattern[str], text: str) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


def parse_duration(text: Any) -> float:
    """Convert a duration like ``"2w 3d 5h"`` into days.

    Weeks, days and hours may appear in any order and any subset. Empty,
    placeholder or unparseable input yields 0; this function never raises.

    Examples
    --------
    >>> parse_duration("1w 2d")
    9.0
    >>> parse_duration("12h")
    0.5
    >>> parse_duration(None)
    0.0
    """
    try:
        if text is None:
            return 0.0
        value = str(text).strip()
        if value.lower() in _EMPTY_DURATIONS:
            return 0.0
        weeks = _component(_WEEKS_RE, value)
        days = _component(_DAYS_RE, value)
        hours = _component(_HOURS_RE, value)
        return float(weeks * 7 + days + hours / 24)
    except Exception as exc:  # pragma: no cover - str() of exotic objects
        logger.warning("Error parsing time string %r: %s", text, exc)
        return 0.0


def threshold_for(status: str | None, thresholds: Mapping[str, int] | None = None) -> int:
    """Look up the SLA threshold (days) for a status, falling back to ``default``."""
    table = thresholds if thresholds is not None else DEFAULT_SLA_THRESHOLDS
    lookup = (status or "").strip().lower()
    if lookup in table:
        return int(table[lookup])
    if "default" in table:
        return int(table["default"])
    return int(DEFAULT_SLA_THRESHOLDS["default"])


def calculate_sla_status(
    status: str | None,
    time_in_status: str | None,
    thresholds: Mapping[str, int] | None = None,
    completed_statuses: Collection[str] = COMPLETED_STATUSES,
) -> SLAStatus:
    """Classify an epic as closed, at risk or on track.

    Completed statuses are always closed. Otherwise the epic is at risk once
    the time in its status reaches the threshold (``>=``).
    """
    if is_completed_status(status, completed_statuses):
        return SLA_CLOSED
    days = parse_duration(time_in_status)
    if days >= threshold_for(status, thresholds):
        return SLA_AT_RISK
    return SLA_ON_TRACK


def process_time_csv(table: RawTable | None, key_candidates: Iterable[str] | None = None) -> TimeMap:
    """Build the time map: issue key -> {status column: duration text}.

    Missing or malformed tables produce an empty map rather than an error.
    """
    if table is None or not table.headers or table.records is None:
        logger.warning("Time CSV data is empty or missing headers/records")
        return {}
    key_col = resolve_column(table.headers, key_candidates or get_time_key_candidates())
    if not key_col:
        logger.warning("No key column found in time CSV")
        return {}
    time_map: TimeMap = {}
    for record in table.records:
        issue_key = str(record.get(key_col) or "").strip()
        if not issue_key:
            continue
        time_map[issue_key] = {
            header: str(record.get(header) or "") for header in table.headers if header != key_col
        }
    logger.info("Created time map with %d entries from %d records", len(time_map), len(table.records))
    return time_map


def _lookup_status_time(time_data: Mapping[str, str], status: str | None) -> str | None:
    target = normalize_status_label(status)
    for label, value in time_data.items():
        if label and normalize_status_label(label) == target:
            return value
    return None


def cycle_time_days(time_data: Mapping[str, str]) -> float:
    return sum(parse_duration(_lookup_status_time(time_data, label)) for label in CYCLE_TIME_STATUSES)


def merge_epic(
    epic: Epic,
    time_data: Mapping[str, str],
    thresholds: Mapping[str, int] | None = None,
    completed_statuses: Collection[str] = COMPLETED_STATUSES,
) -> Epic:
    time_in_status = NO_TIME_VALUE
    if time_data:
        matched = _lookup_status_time(time_data, epic.status)
        if matched:
            time_in_status = matched
    cycle = cycle_time_days(time_data)
    return replace(
        epic,
        time_in_status=time_in_status,
        cycle_time=f"{cycle:.1f}" if cycle > 0 else NO_TIME_VALUE,
        sla_status=calculate_sla_status(epic.status, time_in_status, thresholds, completed_statuses),
    )


def merge_epic_data(
    epics: Iterable[Epic],
    time_map: Mapping[str, Mapping[str, str]] | None,
    thresholds: Mapping[str, int] | None = None,
    completed_statuses: Collection[str] = COMPLETED_STATUSES,
) -> list[Epic]:
    """Attach time in status, cycle time and SLA status to each epic.

    Returns new Epic objects; the inputs are left untouched. A failure on one
    epic is logged and that epic receives placeholder values instead.
    """
    if time_map is None:
        logger.warning("No time data provided, continuing without time information")
        time_map = {}
    merged: list[Epic] = []
    for epic in epics:
        try:
            merged.append(merge_epic(epic, time_map.get(epic.key) or {}, thresholds, completed_statuses))
        except Exception:
            logger.exception("Error merging time data for epic %s", getattr(epic, "key", "?"))
            merged.append(
                replace(
                    epic,
                    time_in_status=NO_TIME_VALUE,
                    cycle_time=NO_TIME_VALUE,
                    sla_status=SLA_UNKNOWN,
                )
            )
    return merged
