"""Two-pass epic/child hierarchy builder.

Pass 1 indexes every record by key and by ID and materializes the epics.
Pass 2 attributes each non-epic record to an epic through a fixed chain of
link columns (Epic Link, Epic Key, Parent ID, custom parent field). When
explicit links cover too small a share of the export, a balanced distribution
spreads the remaining same-project issues over that project's epics.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Collection, Mapping, Sequence

from .column_config import get_main_candidates
from .columns import resolve_columns
from .config import BALANCED_DISTRIBUTION_THRESHOLD, COMPLETED_STATUSES, PROJECT_KEY_PATTERN
from .errors import HierarchyError
from .mappers import records_from_table
from .models import ChildIssue, Epic, HierarchyResult, IssueRecord, RawTable, ResolvedColumns
from .status import is_completed_status

logger = logging.getLogger(__name__)

_PROJECT_KEY_RE = re.compile(PROJECT_KEY_PATTERN)

LINK_EPIC_LINK = "epic-link"
LINK_EPIC_KEY = "epic-key"
LINK_PARENT = "parent"
LINK_CUSTOM_PARENT = "custom-parent"
LINK_BALANCED = "balanced-distribution"

LINK_METHODS: Sequence[str] = (LINK_EPIC_LINK, LINK_EPIC_KEY, LINK_PARENT, LINK_CUSTOM_PARENT)

# How many balanced-distribution assignments are traced at debug level
_TRACE_LIMIT = 5


def project_key(issue_key: str | None) -> str | None:
    """Return the leading project prefix of an issue key, hyphen included.

    >>> project_key("ABC-12")
    'ABC-'
    >>> project_key("abc-12") is None
    True
    """
    if not issue_key:
        return None
    match = _PROJECT_KEY_RE.match(issue_key)
    return match.group(1) if match else None


def _make_epic(record: IssueRecord, completed: Collection[str]) -> Epic:
    own = record.story_points
    return Epic(
        key=record.key,
        name=record.summary,
        status=record.status,
        sprint=record.sprint,
        story_points=own,
        issue_id=record.issue_id,
        assignee=record.assignee,
        creator=record.creator,
        component=record.component,
        project=record.project,
        created=record.created,
        total_story_points=own,
        completed_story_points=own if is_completed_status(record.status, completed) else 0.0,
    )


def _make_child(record: IssueRecord, epic_key: str, method: str, completed: Collection[str]) -> ChildIssue:
    return ChildIssue(
        key=record.key,
        name=record.summary or "Unnamed Issue",
        issue_type=record.issue_type or "unknown",
        status=record.status or "Unknown",
        sprint=record.sprint,
        story_points=record.story_points,
        parent_epic_key=epic_key,
        is_completed=is_completed_status(record.status, completed),
        match_method=method,
    )


def _find_parent_epic(
    record: IssueRecord,
    columns: ResolvedColumns,
    epics_by_key: Mapping[str, Epic],
    records_by_id: Mapping[str, IssueRecord],
) -> tuple[str, str] | None:
    """Apply the link strategies in priority order; first match wins."""
    if columns.epic_link and record.epic_link in epics_by_key:
        return record.epic_link, LINK_EPIC_LINK
    if columns.epic_key and record.epic_key in epics_by_key:
        return record.epic_key, LINK_EPIC_KEY
    if columns.parent and record.parent:
        # The parent column carries an issue ID, not a key
        parent_record = records_by_id.get(record.parent)
        if parent_record is not None and parent_record.is_epic and parent_record.key in epics_by_key:
            return parent_record.key, LINK_PARENT
    if columns.custom_parent and record.custom_parent in epics_by_key:
        return record.custom_parent, LINK_CUSTOM_PARENT
    return None


def _distribute(
    epics: Sequence[Epic],
    unlinked: Sequence[IssueRecord],
    completed: Collection[str],
) -> tuple[int, int]:
    """Attach unlinked records to the least-loaded epic of their project.

    Returns ``(distributed, unattributed)`` counts. Records whose key prefix
    matches no epic's prefix stay out of the rollup.
    """
    by_project: dict[str, list[Epic]] = {}
    for epic in epics:
        prefix = project_key(epic.key)
        if prefix:
            by_project.setdefault(prefix, []).append(epic)
    for group in by_project.values():
        group.sort(key=lambda e: e.key)

    distributed = 0
    unattributed = 0
    for record in unlinked:
        group = by_project.get(project_key(record.key) or "")
        if not group:
            unattributed += 1
            continue
        target = group[0]
        for epic in group[1:]:
            if epic.child_count < target.child_count:
                target = epic
        target.attach(_make_child(record, target.key, LINK_BALANCED, completed))
        distributed += 1
        if distributed <= _TRACE_LIMIT:
            logger.debug("Linked %s to epic %s using balanced distribution", record.key, target.key)
    return distributed, unattributed


def build_hierarchy(
    table: RawTable,
    *,
    candidates: Mapping[str, Sequence[str]] | None = None,
    completed_statuses: Collection[str] = COMPLETED_STATUSES,
    distribution_threshold: float = BALANCED_DISTRIBUTION_THRESHOLD,
) -> HierarchyResult:
    """Build epics and their child issues from the main tracker export.

    Parameters
    ----------
    table : RawTable
        Tokenized main export.
    candidates : mapping, optional
        Logical field -> header candidates; defaults to the configured lists.
    completed_statuses : Collection[str]
        Lowercase statuses counting as completed work.
    distribution_threshold : float
        Share of total records that must link explicitly before the balanced
        distribution is skipped. ``0`` disables the fallback, ``1.01`` forces it.

    Returns
    -------
    HierarchyResult
        Epics sorted by key plus the flattened child list.

    Raises
    ------
    HierarchyError
        When the key or issue type column is missing, or processing fails.
    """
    try:
        columns = resolve_columns(table.headers, candidates or get_main_candidates())
        if not columns.key or not columns.issue_type:
            missing = [name for name in ("key", "issue_type") if not columns.get(name)]
            raise HierarchyError(
                f"Failed to process main CSV data: missing required column(s) {', '.join(missing)}"
            )

        records = records_from_table(table, columns)
        total_records = len(records)
        logger.info("Processing %d records from main export", total_records)

        # Pass 1: lookup indices and epics. Duplicate keys/IDs: last write wins.
        records_by_id: dict[str, IssueRecord] = {}
        epics_by_key: dict[str, Epic] = {}
        type_counts: dict[str, int] = {}
        for record in records:
            if record.issue_id:
                records_by_id[record.issue_id] = record
            if record.issue_type:
                type_counts[record.issue_type] = type_counts.get(record.issue_type, 0) + 1
            if record.is_epic and record.key:
                epics_by_key[record.key] = _make_epic(record, completed_statuses)
        logger.info("Found %d epics; issue types: %s", len(epics_by_key), type_counts)

        # Pass 2: explicit links
        link_counts = {method: 0 for method in LINK_METHODS}
        unlinked: list[IssueRecord] = []
        linked = 0
        skipped_without_key = 0
        for record in records:
            if record.is_epic:
                continue
            if not record.key:
                skipped_without_key += 1
                continue
            match = _find_parent_epic(record, columns, epics_by_key, records_by_id)
            if match is None:
                if record.issue_type:
                    unlinked.append(record)
                continue
            epic_key, method = match
            epics_by_key[epic_key].attach(_make_child(record, epic_key, method, completed_statuses))
            link_counts[method] += 1
            linked += 1
        if skipped_without_key:
            logger.warning("Skipped %d non-epic rows without an issue key", skipped_without_key)
        logger.info("Linked %d child issues via link columns: %s", linked, link_counts)

        epics = sorted(epics_by_key.values(), key=lambda e: e.key)

        distributed = 0
        unattributed = 0
        if linked < total_records * distribution_threshold:
            logger.info(
                "Only %d of %d records linked; applying balanced distribution to %d issues",
                linked,
                total_records,
                len(unlinked),
            )
            distributed, unattributed = _distribute(epics, unlinked, completed_statuses)
            logger.info(
                "Distributed %d child issues; %d without a matching project epic",
                distributed,
                unattributed,
            )

        child_issues = [child for epic in epics for child in epic.children]
        return HierarchyResult(
            epics=epics,
            child_issues=child_issues,
            total_records=total_records,
            linked_count=linked,
            distributed_count=distributed,
            unattributed_count=unattributed,
            link_counts=link_counts,
            columns=columns,
        )
    except HierarchyError:
        raise
    except Exception as exc:
        logger.exception("Error processing main CSV")
        raise HierarchyError(f"Failed to process main CSV data: {exc}") from exc
