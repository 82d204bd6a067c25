"""Status normalization and completion checks.

Centralizes the status handling shared by the hierarchy builder, the
time/SLA engine and the presentation helpers, using COMPLETED_STATUSES from
config.py.
"""

from __future__ import annotations

import re
from collections.abc import Collection

from .config import COMPLETED_STATUSES

_LABEL_STRIP_RE = re.compile(r"[\s_-]+")


def is_completed_status(value: str | None, completed: Collection[str] = COMPLETED_STATUSES) -> bool:
    """Check whether a raw status counts as finished work (case-insensitive).

    Parameters
    ----------
    value : str | None
        Raw status string from the export.
    completed : Collection[str]
        Lowercase completed-status set.

    Returns
    -------
    bool
        True for statuses such as "Done" or "Deployed to Production".

    Examples
    --------
    >>> is_completed_status("Signed Off")
    True
    >>> is_completed_status("In Progress")
    False
    """
    if not value:
        return False
    return str(value).strip().lower() in completed


def normalize_status_label(value: str | None) -> str:
    """Fold a status or time-column label for loose comparison.

    "In Progress", "in-progress" and "IN_PROGRESS" all become "inprogress".
    """
    if not value:
        return ""
    return _LABEL_STRIP_RE.sub("", str(value).lower())
