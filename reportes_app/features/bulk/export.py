"""Export the filtered report view as CSV (flat) or JSON (entity shape)."""

from __future__ import annotations

import json
from datetime import date

import pandas as pd
import pytz

from reportes_app.core.column_config import get_columns
from reportes_app.core.config import (
    EXPORT_DATE_FORMAT,
    EXPORT_FILENAME_PREFIX,
    NO_ASSIGNEE_LABEL,
    TABULAR_FIELDS,
    TIMEZONE,
    WIRE_FIELDS,
)
from reportes_app.core.mappers import normalize_departments

EXPORT_KINDS = ("csv", "json")


def _local_timestamps(series: pd.Series, tz) -> pd.Series:
    ts = pd.to_datetime(series, utc=True, errors="coerce")
    return ts.dt.tz_convert(tz)


def to_export_frame(df: pd.DataFrame, tz=None) -> pd.DataFrame:
    """Flat tabular export of ``df`` with the published Spanish headers.

    Departments are joined with ``", "``, a missing assignee renders as ``N/A``
    and timestamps use the local display format. Row order is preserved.
    """
    tz = tz or pytz.timezone(TIMEZONE)
    columns = get_columns("export")
    if df.empty:
        return pd.DataFrame(columns=columns)
    local_ts = _local_timestamps(df["timestamp"], tz)
    values = {
        "id": df["id"].astype(str),
        "departments": df["departments"].map(lambda v: ", ".join(normalize_departments(v))),
        "description": df["description"],
        "problem_type": df["problem_type"],
        "reported_by": df["reported_by"],
        "priority": df["priority"],
        "status": df["status"],
        "assignee": df["assignee"].map(lambda v: v if isinstance(v, str) and v else NO_ASSIGNEE_LABEL),
        "timestamp": local_ts.dt.strftime(EXPORT_DATE_FORMAT).fillna(""),
    }
    out = pd.DataFrame({header: values[TABULAR_FIELDS[header]] for header in columns})
    return out.reset_index(drop=True)


def export_csv(df: pd.DataFrame, tz=None) -> str:
    return to_export_frame(df, tz=tz).to_csv(index=False)


def export_records(df: pd.DataFrame, tz=None) -> list[dict]:
    """Entity-shaped dicts keyed by wire names, with ISO-8601 timestamps."""
    tz = tz or pytz.timezone(TIMEZONE)
    if df.empty:
        return []
    local_ts = _local_timestamps(df["timestamp"], tz)
    records: list[dict] = []
    for (_, row), ts in zip(df.iterrows(), local_ts):
        attachments = row.get("attachments")
        records.append(
            {
                WIRE_FIELDS["id"]: str(row["id"]),
                WIRE_FIELDS["departments"]: normalize_departments(row["departments"]),
                WIRE_FIELDS["description"]: row["description"],
                WIRE_FIELDS["problem_type"]: row["problem_type"],
                WIRE_FIELDS["reported_by"]: row["reported_by"],
                WIRE_FIELDS["priority"]: row["priority"],
                WIRE_FIELDS["status"]: row["status"],
                WIRE_FIELDS["assignee"]: row["assignee"] if isinstance(row["assignee"], str) else None,
                WIRE_FIELDS["timestamp"]: ts.isoformat() if not pd.isna(ts) else None,
                WIRE_FIELDS["attachments"]: list(attachments) if isinstance(attachments, list) else [],
            }
        )
    return records


def export_json(df: pd.DataFrame, tz=None, *, indent: int | None = 2) -> str:
    return json.dumps(export_records(df, tz=tz), ensure_ascii=False, indent=indent)


def export_filename(kind: str, today: date | None = None) -> str:
    """``reportes_sistemas_YYYY-MM-DD.<kind>``"""
    if kind not in EXPORT_KINDS:
        raise ValueError(f"Unsupported export format: {kind}")
    today = today or date.today()
    return f"{EXPORT_FILENAME_PREFIX}_{today.isoformat()}.{kind}"
