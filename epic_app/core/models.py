"""Domain data models for tracker exports, epics, child issues, and metrics."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

from .config import NO_TIME_VALUE


@dataclass(slots=True)
class RawTable:
    """Tokenized CSV: header row plus one header -> cell mapping per row."""

    headers: list[str]
    records: list[dict[str, str]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ResolvedColumns:
    """Physical header backing each logical field of the main export."""

    key: str | None = None
    id: str | None = None
    issue_type: str | None = None
    status: str | None = None
    summary: str | None = None
    sprint: str | None = None
    story_points: str | None = None
    epic_link: str | None = None
    epic_key: str | None = None
    parent: str | None = None
    custom_parent: str | None = None
    assignee: str | None = None
    creator: str | None = None
    component: str | None = None
    project: str | None = None
    created: str | None = None

    def get(self, name: str) -> str | None:
        return getattr(self, name, None)

    def as_dict(self) -> dict[str, str | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True, slots=True)
class IssueRecord:
    key: str
    issue_id: str
    issue_type: str
    status: str
    summary: str
    sprint: str
    story_points: float
    epic_link: str = ""
    epic_key: str = ""
    parent: str = ""
    custom_parent: str = ""
    assignee: str = ""
    creator: str = ""
    component: str = ""
    project: str = ""
    created: str = ""

    @property
    def is_epic(self) -> bool:
        return self.issue_type == "epic"


@dataclass(frozen=True, slots=True)
class SLAStatus:
    css_class: str
    text: str


SLA_CLOSED = SLAStatus("closed", "Closed")
SLA_AT_RISK = SLAStatus("at-risk", "At Risk")
SLA_ON_TRACK = SLAStatus("on-track", "On Track")
SLA_UNKNOWN = SLAStatus("on-track", "Unknown")


@dataclass(frozen=True, slots=True)
class ChildIssue:
    key: str
    name: str
    issue_type: str
    status: str
    sprint: str
    story_points: float
    parent_epic_key: str
    is_completed: bool
    match_method: str


@dataclass(slots=True)
class Epic:
    key: str
    name: str
    status: str
    sprint: str = ""
    story_points: float = 0.0
    issue_id: str = ""
    assignee: str = ""
    creator: str = ""
    component: str = ""
    project: str = ""
    created: str = ""
    total_story_points: float = 0.0
    completed_story_points: float = 0.0
    children: list[ChildIssue] = field(default_factory=list)

    # Populated by the time/SLA merge step
    time_in_status: str = NO_TIME_VALUE
    cycle_time: str = NO_TIME_VALUE
    sla_status: SLAStatus | None = None

    def attach(self, child: ChildIssue) -> None:
        """Append a child and roll its points into the epic totals."""
        self.children.append(child)
        self.total_story_points += child.story_points
        if child.is_completed:
            self.completed_story_points += child.story_points

    @property
    def child_count(self) -> int:
        return len(self.children)

    @property
    def sla_class(self) -> str:
        return self.sla_status.css_class if self.sla_status else ""


@dataclass(slots=True)
class HierarchyResult:
    epics: list[Epic]
    child_issues: list[ChildIssue]
    total_records: int = 0
    linked_count: int = 0
    distributed_count: int = 0
    unattributed_count: int = 0
    link_counts: dict[str, int] = field(default_factory=dict)
    columns: ResolvedColumns = field(default_factory=ResolvedColumns)

    @property
    def used_balanced_distribution(self) -> bool:
        return self.distributed_count > 0


@dataclass(slots=True)
class MetricsRollup:
    name: str
    total_epics: int = 0
    committed: float = 0.0
    completed: float = 0.0
    realization: float = 0.0
    avg_cycle_time: float = 0.0
    at_risk_count: int = 0
    at_risk_percentage: float = 0.0
    epic_keys: list[str] = field(default_factory=list)

    def formatted(self) -> dict[str, object]:
        """Display view: percentages and averages as one-decimal strings."""
        return {
            "name": self.name,
            "totalEpics": self.total_epics,
            "committed": self.committed,
            "completed": self.completed,
            "realization": f"{self.realization:.1f}",
            "avgCycleTime": f"{self.avg_cycle_time:.1f}",
            "atRiskCount": self.at_risk_count,
            "atRiskPercentage": f"{self.at_risk_percentage:.1f}",
        }


@dataclass(slots=True)
class Metrics:
    overall: MetricsRollup
    sprint_data: list[MetricsRollup] = field(default_factory=list)
