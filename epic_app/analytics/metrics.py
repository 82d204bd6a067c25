"""Sprint-level and portfolio-level rollups of merged epics."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

import pandas as pd

from epic_app.core.config import NO_SPRINT_LABEL, NO_TIME_VALUE
from epic_app.core.errors import MetricsError
from epic_app.core.models import Epic, Metrics, MetricsRollup

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Accumulator:
    name: str
    total_epics: int = 0
    committed: float = 0.0
    completed: float = 0.0
    cycle_sum: float = 0.0
    cycle_count: int = 0
    at_risk: int = 0
    epic_keys: list[str] = field(default_factory=list)

    def add(self, epic: Epic, cycle: float | None) -> None:
        self.total_epics += 1
        self.epic_keys.append(epic.key)
        self.committed += epic.total_story_points or 0.0
        self.completed += epic.completed_story_points or 0.0
        if cycle is not None:
            self.cycle_sum += cycle
            self.cycle_count += 1
        if epic.sla_class == "at-risk":
            self.at_risk += 1

    def rollup(self) -> MetricsRollup:
        return MetricsRollup(
            name=self.name,
            total_epics=self.total_epics,
            committed=self.committed,
            completed=self.completed,
            realization=(self.completed / self.committed * 100) if self.committed else 0.0,
            avg_cycle_time=(self.cycle_sum / self.cycle_count) if self.cycle_count else 0.0,
            at_risk_count=self.at_risk,
            at_risk_percentage=(self.at_risk / self.total_epics * 100) if self.total_epics else 0.0,
            epic_keys=list(self.epic_keys),
        )


def _numeric_cycle_time(value: str | None) -> float | None:
    if not value or value == NO_TIME_VALUE:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def calculate_metrics(epics: Iterable[Epic] | None) -> Metrics:
    """Roll merged epics up per sprint and for the whole portfolio.

    Empty sprints are grouped under "No Sprint". Sprint rollups keep the order
    in which sprints are first seen.

    Raises
    ------
    MetricsError
        If an epic cannot be aggregated.
    """
    try:
        overall = _Accumulator("Overall")
        sprints: dict[str, _Accumulator] = {}
        for epic in epics or []:
            sprint = epic.sprint or NO_SPRINT_LABEL
            bucket = sprints.setdefault(sprint, _Accumulator(sprint))
            cycle = _numeric_cycle_time(epic.cycle_time)
            bucket.add(epic, cycle)
            overall.add(epic, cycle)
        metrics = Metrics(
            overall=overall.rollup(),
            sprint_data=[acc.rollup() for acc in sprints.values()],
        )
        logger.info(
            "Metrics: %d epics over %d sprints, realization %.1f%%",
            metrics.overall.total_epics,
            len(metrics.sprint_data),
            metrics.overall.realization,
        )
        return metrics
    except Exception as exc:
        logger.exception("Error calculating metrics")
        raise MetricsError(f"Failed to calculate metrics: {exc}") from exc


def metrics_to_frame(metrics: Metrics) -> pd.DataFrame:
    """Sprint rollups as a table for display and download."""
    rows = [
        {
            "sprint": r.name,
            "epics": r.total_epics,
            "committed": r.committed,
            "completed": r.completed,
            "realization": round(r.realization, 1),
            "avg_cycle_time": round(r.avg_cycle_time, 1),
            "at_risk": r.at_risk_count,
            "at_risk_pct": round(r.at_risk_percentage, 1),
        }
        for r in metrics.sprint_data
    ]
    columns = [
        "sprint",
        "epics",
        "committed",
        "completed",
        "realization",
        "avg_cycle_time",
        "at_risk",
        "at_risk_pct",
    ]
    return pd.DataFrame(rows, columns=columns)
