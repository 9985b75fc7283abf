"""Diff-based patch computation between a server baseline and an edit draft."""

from __future__ import annotations

from typing import Any

from reportes_app.core.mappers import normalize_departments
from reportes_app.core.models import Report

# Stable field order for patches and logs.
PATCH_FIELDS: tuple[str, ...] = (
    "departments",
    "description",
    "problem_type",
    "reported_by",
    "priority",
    "status",
    "assignee",
)


def values_equal(attr: str, left: Any, right: Any) -> bool:
    """Field equality; department lists compare as sets, order-insensitive."""
    if attr == "departments":
        return set(normalize_departments(left)) == set(normalize_departments(right))
    if attr == "assignee":
        return (left or None) == (right or None)
    return left == right


def compute_patch(baseline: Report, draft: Report) -> dict[str, Any]:
    """Fields of ``draft`` that differ from ``baseline``.

    Examples
    --------
    Drafts that only reorder departments produce an empty patch, so no network
    call is made for them.
    """
    patch: dict[str, Any] = {}
    for attr in PATCH_FIELDS:
        new_value = getattr(draft, attr)
        if not values_equal(attr, getattr(baseline, attr), new_value):
            patch[attr] = list(new_value) if attr == "departments" else new_value
    return patch
