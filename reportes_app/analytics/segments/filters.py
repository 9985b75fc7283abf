"""Report filter predicates, ordering, and pagination over store DataFrames."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace

import pandas as pd

from reportes_app.analytics.metrics.buckets import canonical_bucket, in_range_mask, resolve_bucket
from reportes_app.core.config import ALL, SEARCH_FIELDS

CATEGORICAL_COLUMNS: dict[str, str] = {
    "priority": "priority",
    "problem_type": "problem_type",
    "reported_by": "reported_by",
    "assignee": "assignee",
}


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Independent predicates combined with logical AND.

    Each categorical field is either ``"all"`` (disabled) or an exact,
    case-sensitive value. ``search`` is disabled when blank.
    """

    date_bucket: str = ALL
    priority: str = ALL
    problem_type: str = ALL
    department: str = ALL
    reported_by: str = ALL
    assignee: str = ALL
    search: str = ""

    def with_changes(self, **changes) -> FilterSpec:
        if "date_bucket" in changes:
            changes["date_bucket"] = canonical_bucket(changes["date_bucket"])
        return replace(self, **changes)

    def active_predicates(self) -> list[str]:
        active = []
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "search":
                if value.strip():
                    active.append(f.name)
            elif f.name == "date_bucket":
                if canonical_bucket(value) != ALL:
                    active.append(f.name)
            elif value != ALL:
                active.append(f.name)
        return active

    def is_disabled(self) -> bool:
        return not self.active_predicates()


def _all_rows(df: pd.DataFrame) -> pd.Series:
    return pd.Series(True, index=df.index, dtype=bool)


def department_mask(df: pd.DataFrame, department: str) -> pd.Series:
    if department == ALL:
        return _all_rows(df)
    return df["departments"].apply(lambda deps: isinstance(deps, list) and department in deps).astype(bool)


def categorical_mask(df: pd.DataFrame, column: str, value: str) -> pd.Series:
    if value == ALL:
        return _all_rows(df)
    return (df[column] == value).fillna(False).astype(bool)


def search_mask(df: pd.DataFrame, text: str) -> pd.Series:
    """Case-insensitive substring match against ``SEARCH_FIELDS`` (any field matches)."""
    needle = (text or "").strip().lower()
    if not needle:
        return _all_rows(df)
    mask = pd.Series(False, index=df.index, dtype=bool)
    for column in SEARCH_FIELDS:
        if column not in df.columns:
            continue
        haystack = df[column].fillna("").astype(str).str.lower()
        mask |= haystack.str.contains(needle, regex=False)
    return mask


def filter_reports(df: pd.DataFrame, spec: FilterSpec, now=None, tz=None) -> pd.DataFrame:
    """Rows of ``df`` satisfying every active predicate of ``spec``.

    The result is a subset of the input in input order; an all-disabled spec
    returns the full frame.
    """
    if df.empty or spec.is_disabled():
        return df.copy()
    date_range = resolve_bucket(spec.date_bucket, now=now, tz=tz)
    mask = in_range_mask(df["timestamp"], date_range)
    for attr, column in CATEGORICAL_COLUMNS.items():
        mask &= categorical_mask(df, column, getattr(spec, attr))
    mask &= department_mask(df, spec.department)
    mask &= search_mask(df, spec.search)
    return df[mask].copy()


def most_recent_first(df: pd.DataFrame) -> pd.DataFrame:
    """Stable sort by ``timestamp`` descending (the dashboard and KPI order)."""
    if df.empty:
        return df.copy()
    return df.sort_values("timestamp", ascending=False, kind="mergesort")


@dataclass(slots=True)
class Page:
    rows: pd.DataFrame
    page: int
    page_size: int
    total: int
    total_pages: int


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, total: int, page_size: int) -> int:
    """Clamp ``page`` into ``[1, ceil(total / page_size)]`` (at least 1)."""
    return min(max(int(page), 1), total_pages(total, page_size))


def paginate(df: pd.DataFrame, page: int, page_size: int) -> Page:
    total = len(df)
    current = clamp_page(page, total, page_size)
    start = (current - 1) * page_size
    return Page(
        rows=df.iloc[start : start + page_size].copy(),
        page=current,
        page_size=page_size,
        total=total,
        total_pages=total_pages(total, page_size),
    )


@dataclass(slots=True)
class FilterOptions:
    departments: list[str]
    people: list[str]
    problem_types: list[str]


def filter_options(df: pd.DataFrame) -> FilterOptions:
    """Sorted unique values feeding the filter dropdowns."""
    if df.empty:
        return FilterOptions([], [], [])
    departments = sorted({d for deps in df["departments"] for d in deps})
    people = {p for p in df["reported_by"] if p} | {a for a in df["assignee"] if isinstance(a, str) and a}
    problem_types = sorted({p for p in df["problem_type"] if p})
    return FilterOptions(departments, sorted(people), problem_types)
