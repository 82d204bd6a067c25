"""User-configurable SLA thresholds with a local YAML settings cache."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .config import DEFAULT_SETTINGS_PATH, DEFAULT_SLA_THRESHOLDS, MAX_SLA_THRESHOLD_DAYS, SLA_SETTINGS_FIELDS

logger = logging.getLogger(__name__)


def _positive_int(value: Any) -> int | None:
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    if number <= 0:
        return None
    return min(number, MAX_SLA_THRESHOLD_DAYS)


@dataclass(slots=True)
class SLAConfig:
    """Holds the status -> days thresholds consumed by the SLA engine.

    The analysis code only ever receives ``thresholds`` as a plain mapping;
    this class just manages editing and persisting it.
    """

    thresholds: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_SLA_THRESHOLDS))
    path: Path = DEFAULT_SETTINGS_PATH

    @classmethod
    def load(cls, path: str | Path | None = None) -> SLAConfig:
        """Load thresholds from disk, falling back to defaults on any problem."""
        target = Path(path) if path else DEFAULT_SETTINGS_PATH
        config = cls(path=target)
        if not target.exists():
            return config
        try:
            data = yaml.safe_load(target.read_text()) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Error loading SLA settings from %s: %s", target, exc)
            return config
        stored = data.get("thresholds", data) if isinstance(data, dict) else None
        if not isinstance(stored, dict):
            logger.error("Ignoring malformed SLA settings in %s", target)
            return config
        thresholds = dict(DEFAULT_SLA_THRESHOLDS)
        for status, days in stored.items():
            parsed = _positive_int(days)
            if parsed is not None:
                thresholds[str(status).strip().lower()] = parsed
        config.thresholds = thresholds
        return config

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(yaml.safe_dump({"thresholds": dict(self.thresholds)}, sort_keys=True))
        logger.info("Saved SLA thresholds to %s", self.path)

    def reset(self) -> None:
        self.thresholds = dict(DEFAULT_SLA_THRESHOLDS)

    def ui_values(self) -> dict[str, int]:
        """Current value of each editable field, keyed by field id."""
        return {
            field_id: self.thresholds.get(keys[0], DEFAULT_SLA_THRESHOLDS[keys[0]])
            for field_id, _label, keys in SLA_SETTINGS_FIELDS
        }

    def apply_ui_values(self, values: Mapping[str, Any]) -> None:
        """Write field values into every threshold key (and alias) they drive.

        Missing, non-numeric or non-positive values fall back to the default;
        values above MAX_SLA_THRESHOLD_DAYS are capped.
        """
        thresholds = dict(self.thresholds)
        for field_id, _label, keys in SLA_SETTINGS_FIELDS:
            days = _positive_int(values.get(field_id))
            if days is None:
                days = DEFAULT_SLA_THRESHOLDS[keys[0]]
            for key in keys:
                thresholds[key] = days
        self.thresholds = thresholds

    def as_mapping(self) -> dict[str, int]:
        return dict(self.thresholds)
