"""KPI counters and top-N groupings over a filtered report view.

Every function tolerates an empty frame and returns a zero-filled, correctly
shaped result so charts and KPI cards keep a stable layout with no data.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

import pandas as pd

from reportes_app.core.config import DEFAULT_TOP_N, PRIORITIES, STATUSES

GROUP_COLUMNS = ["name", "count"]


@dataclass(slots=True)
class KpiSummary:
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    resolved: int = 0
    unique_reporters: int = 0
    unique_problem_types: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def _empty_groups() -> pd.DataFrame:
    return pd.DataFrame({"name": pd.Series(dtype=object), "count": pd.Series(dtype="int64")})


def _top_counts(values: pd.Series, limit: int) -> pd.DataFrame:
    values = values.dropna()
    values = values[values.astype(str).str.len() > 0]
    if values.empty:
        return _empty_groups()
    counts = values.value_counts().rename_axis("name").reset_index(name="count")
    # Descending by count; ties resolved alphabetically for a stable order.
    counts = counts.sort_values(by=["count", "name"], ascending=[False, True], kind="mergesort")
    counts["count"] = counts["count"].astype("int64")
    return counts.head(limit).reset_index(drop=True)


def _count_distinct(values: pd.Series) -> int:
    values = values.dropna()
    return int(values[values.astype(str).str.strip().str.len() > 0].nunique())


def compute_kpis(df: pd.DataFrame) -> KpiSummary:
    if df.empty:
        return KpiSummary()
    status = df["status"]
    return KpiSummary(
        total=int(len(df)),
        pending=int((status == "Pendiente").sum()),
        in_progress=int((status == "En Proceso").sum()),
        resolved=int((status == "Resuelto").sum()),
        unique_reporters=_count_distinct(df["reported_by"]),
        unique_problem_types=_count_distinct(df["problem_type"]),
    )


def top_departments(df: pd.DataFrame, limit: int = DEFAULT_TOP_N) -> pd.DataFrame:
    """Reports per department; a report counts once for each of its departments."""
    if df.empty:
        return _empty_groups()
    return _top_counts(df["departments"].explode(), limit)


def top_problem_types(df: pd.DataFrame, limit: int = DEFAULT_TOP_N) -> pd.DataFrame:
    if df.empty:
        return _empty_groups()
    return _top_counts(df["problem_type"], limit)


def top_reporters(df: pd.DataFrame, limit: int = DEFAULT_TOP_N) -> pd.DataFrame:
    if df.empty:
        return _empty_groups()
    return _top_counts(df["reported_by"], limit)


def priority_distribution(df: pd.DataFrame) -> pd.DataFrame:
    """Counts per priority in severity order, non-zero buckets only."""
    if df.empty:
        return _empty_groups()
    counts = df["priority"].value_counts()
    rows = [{"name": p, "count": int(counts.get(p, 0))} for p in PRIORITIES if counts.get(p, 0) > 0]
    if not rows:
        return _empty_groups()
    return pd.DataFrame(rows, columns=GROUP_COLUMNS)


def status_distribution(df: pd.DataFrame) -> pd.DataFrame:
    """Counts for every status, zeros included."""
    counts = df["status"].value_counts() if not df.empty else pd.Series(dtype="int64")
    rows = [{"name": s, "count": int(counts.get(s, 0))} for s in STATUSES]
    out = pd.DataFrame(rows, columns=GROUP_COLUMNS)
    out["count"] = out["count"].astype("int64")
    return out
