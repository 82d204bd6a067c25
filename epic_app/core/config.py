"""Central configuration, constants, tuning knobs, and column candidate lists."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

# =============================================================================
# General Settings
# =============================================================================
TIMEZONE = "UTC"
DEFAULT_TICKET_BASE_URL = "https://your-domain.atlassian.net"
DEFAULT_EMAIL_DOMAIN = "company.com"

# Local settings cache for user-configured SLA thresholds
DEFAULT_SETTINGS_PATH = Path.home() / ".epic_app" / "sla_thresholds.yaml"

# =============================================================================
# Workflow Status Configuration
# =============================================================================
# Statuses that count as finished work (lowercase, case-insensitive matching)
COMPLETED_STATUSES: frozenset[str] = frozenset(
    {
        "done",
        "completed",
        "closed",
        "released",
        "deployed to production",
        "signed off",
    }
)

# Statuses whose time is summed into the cycle time of an epic
CYCLE_TIME_STATUSES: Sequence[str] = ("In Progress", "Code Review")

NO_SPRINT_LABEL = "No Sprint"
NO_TIME_VALUE = "-"

# =============================================================================
# SLA Thresholds (days a status may persist before an epic is at risk)
# =============================================================================
DEFAULT_SLA_THRESHOLDS: dict[str, int] = {
    "to do": 15,
    "todo": 15,
    "researching": 7,
    "ready for story refinement": 10,
    "refinement": 10,
    "refinement ready": 10,
    "ready to develop": 7,
    "in progress": 20,
    "in development": 20,
    "released": 10,
    "enabled": 5,
    "paused": 20,
    "default": 30,
}

# Upper bound accepted for a stored or edited threshold
MAX_SLA_THRESHOLD_DAYS = 365

# Editable settings: (field id, label, threshold keys written by the field).
# The first key is the canonical one shown in the UI; the rest are aliases.
SLA_SETTINGS_FIELDS: Sequence[tuple[str, str, tuple[str, ...]]] = (
    ("todo", "To Do", ("to do", "todo")),
    ("researching", "Researching", ("researching",)),
    (
        "refinement",
        "Ready for Story Refinement",
        ("ready for story refinement", "refinement", "refinement ready"),
    ),
    ("ready_develop", "Ready to Develop", ("ready to develop",)),
    ("in_progress", "In Progress", ("in progress", "in development")),
    ("released", "Released", ("released",)),
    ("enabled", "Enabled", ("enabled",)),
    ("paused", "Paused", ("paused",)),
    ("default", "Any Other Status", ("default",)),
)

# =============================================================================
# Hierarchy Linkage
# =============================================================================
# Balanced distribution runs when fewer than this share of all records could be
# linked to an epic through explicit link columns.
BALANCED_DISTRIBUTION_THRESHOLD: float = 0.10

# Regex for the project prefix of an issue key ("ABC-123" -> "ABC-")
PROJECT_KEY_PATTERN = r"^([A-Z]+-)"

# =============================================================================
# Column Candidates (logical field -> header names, in priority order)
# =============================================================================
MAIN_COLUMN_CANDIDATES: dict[str, Sequence[str]] = {
    "key": ("Key", "Issue key", "ID"),
    "id": ("ID", "Issue id"),
    "issue_type": ("Issue Type", "IssueType", "Type"),
    "status": ("Status", "State", "Current Status"),
    "summary": ("Summary", "Title", "Name"),
    "sprint": ("Sprint",),
    "story_points": ("Custom field (Story Points)", "Story Points"),
    "epic_link": ("Epic Link", "Custom field (Epic Link)", "Parent Epic"),
    "epic_key": ("Epic", "Epic Key"),
    "parent": ("Parent", "Parent Link", "Parent Issue"),
    "custom_parent": ("Custom field (Parent Link)", "Custom field (Epic)"),
    "assignee": ("Assignee",),
    "creator": ("Creator", "Created by"),
    "component": ("Component/s", "Components"),
    "project": ("Project", "Project key"),
    "created": ("Created",),
}

TIME_KEY_CANDIDATES: Sequence[str] = ("Key", "Issue key", "ID")

# Required main-CSV columns (display label -> logical field). They are resolved
# with the same candidate lists the hierarchy builder uses.
REQUIRED_MAIN_COLUMNS: dict[str, str] = {
    "Key": "key",
    "Issue Type": "issue_type",
    "Status": "status",
    "Summary": "summary",
}

# Columns whose absence means explicit child linkage cannot happen
LINK_COLUMN_FIELDS: Sequence[str] = ("epic_link", "epic_key", "parent", "custom_parent")

# Time data coverage under which a warning is raised (percent of epics)
TIME_MATCH_WARN_PERCENT: float = 50.0


@dataclass(slots=True)
class AppSettings:
    rows_per_page: int = 25
    download_encoding: str = "utf-8"
    large_upload_mb: float = 5.0


SETTINGS = AppSettings()
