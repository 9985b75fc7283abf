"""Priority and status coercion utilities.

Externally supplied values (remote payloads, imported files, inline edits) are
never rejected for an unknown priority or status; they fall back to the lowest
severity / initial lifecycle value from config.py.
"""

from __future__ import annotations

from .config import DEFAULT_PRIORITY, DEFAULT_STATUS, PRIORITIES, STATUSES, TERMINAL_STATUS

PRIORITY_RANK: dict[str, int] = {name: rank for rank, name in enumerate(PRIORITIES)}


def coerce_priority(value) -> str:
    """Map a raw priority to one of ``PRIORITIES``.

    Matching is exact after trimming whitespace; anything else becomes
    ``DEFAULT_PRIORITY``.

    Examples
    --------
    >>> coerce_priority(" Alta ")
    'Alta'
    >>> coerce_priority("Urgent")
    'Baja'
    """
    if value is None:
        return DEFAULT_PRIORITY
    text = str(value).strip()
    if text in PRIORITY_RANK:
        return text
    return DEFAULT_PRIORITY


def coerce_status(value) -> str:
    """Map a raw status to one of ``STATUSES``, defaulting to ``DEFAULT_STATUS``.

    Examples
    --------
    >>> coerce_status("En Proceso")
    'En Proceso'
    >>> coerce_status("Cancelado")
    'Pendiente'
    """
    if value is None:
        return DEFAULT_STATUS
    text = str(value).strip()
    if text in STATUSES:
        return text
    return DEFAULT_STATUS


def priority_rank(value: str | None) -> int:
    """Severity rank (Baja=0 .. Crítica=3); unknown values rank as the default."""
    return PRIORITY_RANK[coerce_priority(value)]


def is_terminal_status(value: str | None) -> bool:
    return coerce_status(value) == TERMINAL_STATUS
