"""Load and expose column candidate lists from YAML (with fallbacks)."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .config import MAIN_COLUMN_CANDIDATES, TIME_KEY_CANDIDATES

logger = logging.getLogger(__name__)

_CACHE: dict[str, dict[str, list[str]]] | None = None


def _defaults() -> dict[str, dict[str, list[str]]]:
    return {
        "main": {name: list(cands) for name, cands in MAIN_COLUMN_CANDIDATES.items()},
        "time": {"key": list(TIME_KEY_CANDIDATES)},
    }


def _merge(base: dict[str, list[str]], override) -> dict[str, list[str]]:
    if not isinstance(override, dict):
        return base
    out = dict(base)
    for name, cands in override.items():
        if isinstance(cands, str):
            cands = [cands]
        if isinstance(cands, list) and cands:
            out[str(name)] = [str(c) for c in cands]
    return out


def load_candidate_sets(base_path: str | Path | None = None, *, reload: bool = False):
    """Return ``{"main": {...}, "time": {...}}`` candidate lists.

    ``columns.yaml`` in the ``epic_app`` directory may override individual logical
    fields; anything it omits keeps the built-in candidates.
    """
    global _CACHE
    if _CACHE is not None and not reload and base_path is None:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent)
    yaml_path = base / "columns.yaml"
    sets = _defaults()
    if yaml_path.exists():
        try:
            data = yaml.safe_load(yaml_path.read_text()) or {}
            candidates = data.get("candidates", {}) if isinstance(data, dict) else {}
            sets["main"] = _merge(sets["main"], candidates.get("main"))
            sets["time"] = _merge(sets["time"], candidates.get("time"))
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable %s: %s", yaml_path, exc)
            sets = _defaults()
    if base_path is None:
        _CACHE = sets
    return sets


def get_main_candidates() -> dict[str, list[str]]:
    return load_candidate_sets()["main"]


def get_time_key_candidates() -> list[str]:
    return load_candidate_sets()["time"].get("key", list(TIME_KEY_CANDIDATES))
