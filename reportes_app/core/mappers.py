"""Mapping raw report payloads into Report instances and DataFrames.

Every ingress boundary (refetch, import, inline edit) goes through the helpers in
this module so the ambiguous shapes the remote collection accepts (comma-joined
department strings, missing assignees, free-form enum values) never leak further
into the engine.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

import pandas as pd
import pytz

from .config import EXPORT_DATE_FORMAT, REPORT_CORE_COLUMNS, TIMEZONE, WIRE_FIELDS
from .models import Report
from .status import coerce_priority, coerce_status, priority_rank

_WIRE_TO_ATTR: dict[str, str] = {wire: attr for attr, wire in WIRE_FIELDS.items()}

# Local display formats accepted on import, most specific first.
DAYFIRST_FORMATS: tuple[str, ...] = (
    EXPORT_DATE_FORMAT,
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y, %H:%M:%S",
    "%d/%m/%Y, %H:%M",
    "%d/%m/%Y",
)


def normalize_departments(value: Any) -> list[str]:
    """Return a de-duplicated, trimmed department list.

    Accepts a comma-joined string, any iterable of strings, or ``None``. Order of
    first appearance is preserved and empty entries are dropped.

    Examples
    --------
    >>> normalize_departments(" Catastro, Tesorería ,Catastro")
    ['Catastro', 'Tesorería']
    >>> normalize_departments(None)
    []
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts: Iterable[Any] = value.split(",")
    elif isinstance(value, Iterable):
        parts = value
    else:
        # NaN from a blank CSV cell counts as missing
        text = clean_text(value)
        return [text] if text else []
    seen: set[str] = set()
    out: list[str] = []
    for part in parts:
        if part is None:
            continue
        text = str(part).strip()
        if not text or text in seen:
            continue
        seen.add(text)
        out.append(text)
    return out


def clean_text(value: Any) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        # Non-scalar values are stringified as-is
        pass
    return str(value).strip()


def clean_assignee(value: Any) -> str | None:
    text = clean_text(value)
    return text or None


def parse_timestamp(value: Any, tz=None) -> datetime | None:
    """Parse a timestamp-like value into an aware datetime in ``tz``.

    Naive inputs are interpreted as local time in ``tz``. Slash-separated dates
    are read day-first (``DAYFIRST_FORMATS``, then pandas with ``dayfirst``), so
    exported files and hand-typed local dates round-trip.
    Returns None when the input cannot be parsed.
    """
    tz = tz or pytz.timezone(TIMEZONE)
    if value is None or value == "":
        return None
    dayfirst = False
    if isinstance(value, str):
        text = value.strip()
        for fmt in DAYFIRST_FORMATS:
            try:
                return tz.localize(datetime.strptime(text, fmt))
            except ValueError:
                continue
        # Slash dates are always local day/month/year, never US order.
        dayfirst = "/" in text
    ts = pd.to_datetime(value, errors="coerce", dayfirst=dayfirst)
    if ts is None or pd.isna(ts):
        return None
    try:
        if getattr(ts, "tzinfo", None) is None:
            ts = ts.tz_localize(tz)
        else:
            ts = ts.tz_convert(tz)
    except (TypeError, ValueError):
        return None
    return ts.to_pydatetime()


def resolve_field(name: str) -> str:
    """Map a wire key (``prioridad``) or attribute name (``priority``) to the attribute name."""
    if name in WIRE_FIELDS:
        return name
    if name in _WIRE_TO_ATTR:
        return _WIRE_TO_ATTR[name]
    raise KeyError(name)


def normalize_field_value(attr: str, value: Any) -> Any:
    """Normalize a single edited value for ``attr``."""
    if attr == "departments":
        return normalize_departments(value)
    if attr == "priority":
        return coerce_priority(value)
    if attr == "status":
        return coerce_status(value)
    if attr == "assignee":
        return clean_assignee(value)
    if attr in ("description", "problem_type", "reported_by"):
        return clean_text(value)
    return value


def map_report(raw: dict[str, Any], tz=None, now: datetime | None = None) -> Report | None:
    """Map a raw remote payload to a Report, or None when it carries no id."""
    report_id = clean_text(raw.get("_id") or raw.get("id"))
    if not report_id:
        return None
    tz = tz or pytz.timezone(TIMEZONE)
    timestamp = parse_timestamp(raw.get("timestamp"), tz)
    if timestamp is None:
        timestamp = now or datetime.now(tz)
    attachments = raw.get("imagenes") or []
    return Report(
        id=report_id,
        departments=normalize_departments(raw.get("departamento")),
        description=clean_text(raw.get("descripcion")),
        problem_type=clean_text(raw.get("tipoProblema")),
        reported_by=clean_text(raw.get("quienReporta")),
        priority=coerce_priority(raw.get("prioridad")),
        status=coerce_status(raw.get("status")),
        assignee=clean_assignee(raw.get("asignadoA")),
        timestamp=timestamp,
        attachments=[str(a) for a in attachments] if isinstance(attachments, list) else [],
    )


def map_reports(raw_items: Iterable[dict[str, Any]], tz=None, now: datetime | None = None) -> list[Report]:
    out: list[Report] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        report = map_report(raw, tz=tz, now=now)
        if report is not None:
            out.append(report)
    return out


def fields_to_payload(fields: dict[str, Any]) -> dict[str, Any]:
    """Translate attribute-keyed fields into a wire payload (JSON-safe)."""
    payload: dict[str, Any] = {}
    for attr, value in fields.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, list):
            value = list(value)
        payload[WIRE_FIELDS[attr]] = value
    return payload


def report_to_payload(report: Report) -> dict[str, Any]:
    """Entity shape with wire keys; also the hierarchical export shape."""
    return fields_to_payload(
        {
            "id": report.id,
            "departments": report.departments,
            "description": report.description,
            "problem_type": report.problem_type,
            "reported_by": report.reported_by,
            "priority": report.priority,
            "status": report.status,
            "assignee": report.assignee,
            "timestamp": report.timestamp,
            "attachments": report.attachments,
        }
    )


def reports_to_dataframe(reports: Iterable[Report], tz=None) -> pd.DataFrame:
    tz = tz or pytz.timezone(TIMEZONE)
    rows = []
    for r in reports:
        rows.append(
            {
                "id": r.id,
                "departments": list(r.departments),
                "departments_text": ", ".join(r.departments),
                "description": r.description,
                "problem_type": r.problem_type,
                "reported_by": r.reported_by,
                "priority": r.priority,
                "priority_value": priority_rank(r.priority),
                "status": r.status,
                "assignee": r.assignee,
                "timestamp": r.timestamp,
                "attachments": list(r.attachments),
            }
        )
    df = pd.DataFrame(rows, columns=[*REPORT_CORE_COLUMNS, "attachments"])
    # Keep a tz-aware dtype even for an empty frame so downstream .dt access works.
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True).dt.tz_convert(tz)
    df["priority_value"] = df["priority_value"].astype("int64")
    return df
