"""Structural checks on the uploaded exports before analysis."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from .column_config import get_main_candidates, get_time_key_candidates
from .columns import resolve_column, resolve_columns
from .config import LINK_COLUMN_FIELDS, REQUIRED_MAIN_COLUMNS, TIME_MATCH_WARN_PERCENT
from .errors import ValidationError
from .models import Epic, RawTable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ValidationResult:
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def fail(self, message: str) -> None:
        self.is_valid = False
        self.errors.append(message)


def missing_required_columns(
    headers: Sequence[str],
    candidates: Mapping[str, Sequence[str]] | None = None,
) -> list[str]:
    """Labels of required columns that the hierarchy builder could not resolve."""
    candidates = candidates or get_main_candidates()
    return [
        label
        for label, field_name in REQUIRED_MAIN_COLUMNS.items()
        if not resolve_column(headers, candidates.get(field_name, ()))
    ]


def validate_main_table(
    table: RawTable | None,
    candidates: Mapping[str, Sequence[str]] | None = None,
) -> ValidationResult:
    """Check the main export for headers, required columns and usable rows."""
    result = ValidationResult()
    if table is None or table.headers is None or table.records is None:
        result.fail("Invalid CSV data structure")
        return result
    if not table.headers:
        result.fail("CSV file has no headers")
        return result

    candidates = candidates or get_main_candidates()
    missing = missing_required_columns(table.headers, candidates)
    if missing:
        result.fail(f"CSV is missing required columns: {', '.join(missing)}")
    if not table.records:
        result.fail("CSV file contains headers but no data rows")
        return result

    columns = resolve_columns(table.headers, candidates)
    if columns.key:
        missing_keys = sum(1 for r in table.records if not str(r.get(columns.key) or "").strip())
        if missing_keys:
            result.warnings.append(f"Found {missing_keys} rows with missing issue keys")
    if columns.issue_type:
        epic_count = sum(
            1 for r in table.records if str(r.get(columns.issue_type) or "").strip().lower() == "epic"
        )
        if epic_count == 0:
            result.warnings.append(
                'No epics found in the CSV file. Please check that your CSV contains records with "Epic" issue type.'
            )
    if not any(columns.get(name) for name in LINK_COLUMN_FIELDS):
        result.warnings.append(
            "No Epic Link or Parent Link column found. Child issues can only be attributed by "
            "balanced distribution."
        )
    return result


def ensure_valid_main_table(
    table: RawTable | None,
    candidates: Mapping[str, Sequence[str]] | None = None,
) -> ValidationResult:
    """Validate and raise ValidationError on any fatal problem."""
    result = validate_main_table(table, candidates)
    if not result.is_valid:
        logger.warning("Main CSV rejected: %s", result.errors)
        raise ValidationError(result.errors)
    return result


def validate_time_table(time_table: RawTable | None, epics: Iterable[Epic]) -> ValidationResult:
    """Report how well the time export covers the analysed epics."""
    result = ValidationResult()
    if time_table is None or not time_table.records:
        result.warnings.append("No time data records found")
        return result
    key_col = resolve_column(time_table.headers, get_time_key_candidates())
    if not key_col:
        result.is_valid = False
        result.warnings.append("Time data CSV is missing a key/ID column")
        return result

    time_keys = {str(r.get(key_col) or "").strip() for r in time_table.records}
    epic_keys = {e.key for e in epics}
    matched = len(epic_keys & time_keys)
    pct = (matched / len(epic_keys) * 100) if epic_keys else 0.0
    if pct < TIME_MATCH_WARN_PERCENT:
        result.warnings.append(f"Only {pct:.1f}% of epics have matching time data")
    if matched == 0:
        result.is_valid = False
        result.warnings.append("No matching epic keys found in time data")
    return result
