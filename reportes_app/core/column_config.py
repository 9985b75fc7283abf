"""Load and expose column configuration from YAML (with fallbacks)."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .config import DISPLAY_ORDER_TICKET_LIST, EXPORT_COLUMNS

_CACHE: dict[str, list[str]] | None = None

logger = logging.getLogger(__name__)


def _defaults() -> dict[str, list[str]]:
    return {
        "export": list(EXPORT_COLUMNS),
        "ticket_list": list(DISPLAY_ORDER_TICKET_LIST),
    }


def load_column_sets(base_path: str | Path | None = None, *, reload: bool = False):
    global _CACHE
    if _CACHE is not None and not reload:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent)
    yaml_path = base / "columns.yaml"
    defaults = _defaults()
    if not yaml_path.exists():
        _CACHE = defaults
        return _CACHE
    try:
        data = yaml.safe_load(yaml_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        logger.warning("Ignoring unreadable %s: %s", yaml_path, exc)
        _CACHE = defaults
        return _CACHE
    sets = data.get("sets", {}) or {}
    _CACHE = {name: list(sets.get(name) or fallback) for name, fallback in defaults.items()}
    # Export headers are a published schema; a YAML override may reorder but not rename them.
    unknown = [c for c in _CACHE["export"] if c not in EXPORT_COLUMNS]
    if unknown:
        logger.warning("Unknown export columns %s in %s; using defaults", unknown, yaml_path)
        _CACHE["export"] = list(EXPORT_COLUMNS)
    return _CACHE


def get_columns(set_name: str) -> list[str]:
    sets = load_column_sets()
    return list(sets.get(set_name, []))
