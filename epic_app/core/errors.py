"""Exception types raised by the analysis pipeline."""

from __future__ import annotations


class AnalysisError(RuntimeError):
    """Fatal error that stops an analysis run and is shown to the user."""


class ValidationError(AnalysisError):
    """The main CSV lacks the structure or columns required for analysis."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid CSV data structure")


class CsvDecodeError(AnalysisError):
    """A CSV file could not be decoded into headers and rows."""


class HierarchyError(AnalysisError):
    """Building the epic/child hierarchy from the main CSV failed."""


class MetricsError(AnalysisError):
    """Rolling epics up into sprint and portfolio metrics failed."""
