"""Fixed-shape time series: monthly trend (12 buckets) and weekday load (5 buckets)."""

from __future__ import annotations

import pandas as pd
import pytz

from reportes_app.core.config import MONTH_LABELS, TERMINAL_STATUS, TIMEZONE, WEEKDAY_LABELS


def _local_timestamps(df: pd.DataFrame, tz) -> pd.Series:
    tz = tz or pytz.timezone(TIMEZONE)
    return pd.to_datetime(df["timestamp"], utc=True).dt.tz_convert(tz)


def monthly_trend(df: pd.DataFrame, tz=None) -> pd.DataFrame:
    """Reports created and created-and-now-resolved per calendar month.

    Always 12 rows (Jan..Dec). Months are taken from the local timestamp and
    are not filtered by year; a date-bucket filter applied upstream is the only
    year constraint.
    """
    out = pd.DataFrame({"month": range(1, 13), "label": list(MONTH_LABELS)})
    if df.empty:
        out["reports"] = 0
        out["resolved"] = 0
        return out
    months = _local_timestamps(df, tz).dt.month
    created = months.value_counts()
    resolved = months[df["status"] == TERMINAL_STATUS].value_counts()
    out["reports"] = out["month"].map(created).fillna(0).astype("int64")
    out["resolved"] = out["month"].map(resolved).fillna(0).astype("int64")
    return out


def weekday_load(df: pd.DataFrame, tz=None) -> pd.DataFrame:
    """Reports per weekday, Monday..Friday only; weekend reports are excluded."""
    out = pd.DataFrame({"weekday": range(5), "label": list(WEEKDAY_LABELS)})
    if df.empty:
        out["reports"] = 0
        return out
    weekdays = _local_timestamps(df, tz).dt.weekday
    counts = weekdays[weekdays < 5].value_counts()
    out["reports"] = out["weekday"].map(counts).fillna(0).astype("int64")
    return out
