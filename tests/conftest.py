"""Shared fixtures; also puts the project root on sys.path.

If users invoke `pytest` outside the project's virtualenv, the root is still
importable so `import epic_app` works without an editable install.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from epic_app.core.models import RawTable  # noqa: E402

MAIN_HEADERS = ["Issue key", "Issue id", "Issue Type", "Status", "Summary", "Sprint", "Story Points", "Epic Link"]


def make_table(headers, rows) -> RawTable:
    """RawTable from positional rows; short rows are padded with blanks."""
    records = []
    for row in rows:
        cells = list(row) + [""] * (len(headers) - len(row))
        records.append(dict(zip(headers, cells, strict=False)))
    return RawTable(headers=list(headers), records=records)


@pytest.fixture
def main_table() -> RawTable:
    return make_table(
        MAIN_HEADERS,
        [
            ["EPIC-1", "100", "Epic", "In Progress", "Checkout revamp", "Sprint 1", "5", ""],
            ["TASK-1", "101", "Task", "Done", "Payment form", "Sprint 1", "3", "EPIC-1"],
        ],
    )


@pytest.fixture
def time_table() -> RawTable:
    return make_table(["Key", "In Progress", "Code Review", "Done"], [["EPIC-1", "10d", "", ""]])
