"""Fuzzy resolution of logical fields to physical CSV headers."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence

from .models import ResolvedColumns

logger = logging.getLogger(__name__)

_STRIP_RE = re.compile(r"[\s_]")


def normalize_header(value: str | None) -> str:
    """Lower-case a header and drop whitespace and underscores."""
    if not value:
        return ""
    return _STRIP_RE.sub("", str(value).lower())


def resolve_column(headers: Sequence[str] | None, candidates: Iterable[str]) -> str | None:
    """Return the header backing the first matching candidate, or None.

    Candidates are tried in priority order. For each one an exact normalized
    match over all headers wins; otherwise the first header whose normalized
    form contains the candidate is taken.

    Examples
    --------
    >>> resolve_column(["Issue key", "Summary"], ["Key"])
    'Issue key'
    >>> resolve_column(["Custom field (Story Points)"], ["Story_Points"])
    'Custom field (Story Points)'
    """
    if not headers:
        return None
    normalized = [normalize_header(h) for h in headers]
    for candidate in candidates:
        target = normalize_header(candidate)
        if not target:
            continue
        for idx, header in enumerate(normalized):
            if header == target:
                return headers[idx]
        for idx, header in enumerate(normalized):
            if target in header:
                return headers[idx]
    return None


def resolve_columns(
    headers: Sequence[str],
    candidate_sets: Mapping[str, Sequence[str]],
) -> ResolvedColumns:
    """Resolve every logical field known to ResolvedColumns."""
    found = {}
    for name, candidates in candidate_sets.items():
        if name not in ResolvedColumns.__dataclass_fields__:
            logger.debug("Ignoring unknown logical column %r", name)
            continue
        found[name] = resolve_column(headers, candidates)
    columns = ResolvedColumns(**found)
    logger.debug("Resolved columns: %s", columns.as_dict())
    return columns
