"""Decode uploaded CSV exports into RawTable objects (pandas-backed)."""

from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import IO

import pandas as pd

from .errors import CsvDecodeError
from .models import RawTable

logger = logging.getLogger(__name__)

CsvSource = str | Path | bytes | IO

_ROW_RE = re.compile(r"(?:row|line) (\d+)", re.IGNORECASE)


def format_csv_error(error: Exception, file_name: str | None = None) -> str:
    """Turn a parser error into a message a user can act on."""
    label = file_name or "CSV file"
    msg = str(error) or "Unknown error"
    row_match = _ROW_RE.search(msg)
    if row_match:
        return (
            f"Error in {label} at row {row_match.group(1)}. Please check this row for problems "
            "such as missing commas, unmatched quotes, or incorrect delimiters."
        )
    if "expected" in msg.lower() and "fields" in msg.lower():
        return (
            f"The {label} contains rows with an incorrect number of columns. "
            "Please verify your data format."
        )
    return f"Could not process {label}: {msg}. Please ensure the file is a valid CSV."


def dataframe_to_table(df: pd.DataFrame) -> RawTable:
    headers = [str(c).strip() for c in df.columns]
    df = df.copy()
    df.columns = headers
    df = df.fillna("")
    records = [{h: str(v) for h, v in row.items()} for row in df.to_dict(orient="records")]
    return RawTable(headers=headers, records=records)


def read_csv_table(source: CsvSource, *, file_name: str | None = None) -> RawTable:
    """Read a CSV export into headers and string-valued row mappings.

    Every cell is kept as text; blank cells become empty strings.

    Raises
    ------
    CsvDecodeError
        If the content cannot be parsed as CSV.
    """
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    name = file_name or (str(source) if isinstance(source, str | Path) else getattr(source, "name", None))
    try:
        df = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise CsvDecodeError(f"{name or 'CSV file'} is empty.") from exc
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as exc:
        raise CsvDecodeError(format_csv_error(exc, name)) from exc
    table = dataframe_to_table(df)
    logger.info("Parsed %s: %d columns, %d rows", name or "CSV", len(table.headers), len(table.records))
    return table
