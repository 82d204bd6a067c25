"""AnalysisService: orchestrates validation, hierarchy, time merge and metrics."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

import pytz

from epic_app.analytics.escalation import EscalationTemplate, build_escalation_template
from epic_app.analytics.metrics import calculate_metrics
from epic_app.analytics.time_sla import merge_epic_data, process_time_csv

from .config import BALANCED_DISTRIBUTION_THRESHOLD, COMPLETED_STATUSES, DEFAULT_SLA_THRESHOLDS, TIMEZONE
from .errors import AnalysisError
from .hierarchy import build_hierarchy
from .models import ChildIssue, Epic, HierarchyResult, Metrics, RawTable
from .validation import ensure_valid_main_table, validate_time_table

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]

_STEPS = 5


@dataclass(slots=True)
class AnalysisResult:
    epics: list[Epic]
    child_issues: list[ChildIssue]
    metrics: Metrics
    hierarchy: HierarchyResult
    warnings: list[str] = field(default_factory=list)
    has_time_data: bool = False
    generated_at: datetime | None = None

    def epic(self, key: str) -> Epic | None:
        for epic in self.epics:
            if epic.key == key:
                return epic
        return None

    def summary_message(self) -> str:
        suffix = " with time tracking data" if self.has_time_data else ""
        return (
            f"Successfully analyzed {len(self.epics)} epics and "
            f"{len(self.child_issues)} child issues{suffix}."
        )


class AnalysisService:
    """Runs the batch analysis and keeps the inputs for re-analysis.

    Every run rebuilds the epic graph from the stored tables, so changing
    thresholds and calling :meth:`reanalyze` gives the same result as a fresh
    :meth:`analyze` with those thresholds.
    """

    def __init__(
        self,
        thresholds: Mapping[str, int] | None = None,
        *,
        candidates: Mapping[str, Sequence[str]] | None = None,
        distribution_threshold: float = BALANCED_DISTRIBUTION_THRESHOLD,
        completed_statuses: Collection[str] = COMPLETED_STATUSES,
        require_epics: bool = False,
    ):
        self.thresholds: dict[str, int] = dict(thresholds or DEFAULT_SLA_THRESHOLDS)
        self.candidates = candidates
        self.distribution_threshold = distribution_threshold
        self.completed_statuses = frozenset(s.strip().lower() for s in completed_statuses)
        self.require_epics = require_epics
        self._tz = pytz.timezone(TIMEZONE)
        self.main_table: RawTable | None = None
        self.time_table: RawTable | None = None
        self.last_result: AnalysisResult | None = None

    # ------------------ Public API ------------------
    def analyze(
        self,
        main: RawTable,
        time: RawTable | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        self.main_table = main
        self.time_table = time
        result = self._run(main, time, progress=progress)
        self.last_result = result
        return result

    def reanalyze(
        self,
        thresholds: Mapping[str, int] | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult | None:
        if thresholds is not None:
            self.thresholds = dict(thresholds)
        if self.main_table is None:
            return None
        result = self._run(self.main_table, self.time_table, progress=progress)
        self.last_result = result
        return result

    def escalation_for(self, epic: Epic) -> EscalationTemplate:
        return build_escalation_template(epic, self.thresholds)

    # ------------------ Pipeline ------------------
    def _run(
        self,
        main: RawTable,
        time: RawTable | None,
        *,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        def report(message: str, step: int) -> None:
            if progress:
                progress(message, step, _STEPS)

        report("Validating main CSV", 0)
        validation = ensure_valid_main_table(main, self.candidates)
        warnings = list(validation.warnings)

        report("Linking child issues to epics", 1)
        hierarchy = build_hierarchy(
            main,
            candidates=self.candidates,
            completed_statuses=self.completed_statuses,
            distribution_threshold=self.distribution_threshold,
        )
        if hierarchy.used_balanced_distribution:
            warnings.append(
                f"Few issues carried explicit epic links; {hierarchy.distributed_count} issues were "
                "attributed by balanced distribution across same-project epics."
            )
        if not hierarchy.epics:
            message = (
                'No epics found in the uploaded CSV file. Please check that your CSV contains records with "Epic" '
                "issue type."
            )
            if self.require_epics:
                raise AnalysisError(message)
            if message not in warnings:
                warnings.append(message)

        report("Reading time-in-status data", 2)
        time_map: dict[str, dict[str, str]] = {}
        if time is not None:
            try:
                time_map = process_time_csv(time)
            except Exception as exc:
                logger.warning("Time CSV unusable: %s", exc)
                warnings.append(f"Error processing time data: {exc}. Continuing without time information.")
                time_map = {}
            if hierarchy.epics:
                warnings.extend(validate_time_table(time, hierarchy.epics).warnings)

        report("Evaluating SLA status", 3)
        epics = merge_epic_data(hierarchy.epics, time_map, self.thresholds, self.completed_statuses)

        report("Calculating metrics", 4)
        metrics = calculate_metrics(epics)

        report("Analysis complete", _STEPS)
        result = AnalysisResult(
            epics=epics,
            child_issues=[child for epic in epics for child in epic.children],
            metrics=metrics,
            hierarchy=hierarchy,
            warnings=warnings,
            has_time_data=bool(time_map),
            generated_at=datetime.now(self._tz),
        )
        logger.info("%s", result.summary_message())
        return result


def analyze(
    main: RawTable,
    time: RawTable | None = None,
    thresholds: Mapping[str, int] | None = None,
    **kwargs,
) -> AnalysisResult:
    """One-shot convenience wrapper around :class:`AnalysisService`."""
    return AnalysisService(thresholds, **kwargs).analyze(main, time)
