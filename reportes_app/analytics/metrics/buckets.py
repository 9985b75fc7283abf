"""Named date buckets resolved into concrete inclusive instant ranges.

All bucket math runs on local calendar days in the configured timezone. A
range starts at local midnight of its first day and ends one nanosecond before
local midnight following its last day, so the whole end day is included.
Weeks start on Monday; quarters group months Jan-Mar, Apr-Jun, Jul-Sep, Oct-Dec.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

import pandas as pd
import pytz

from reportes_app.core.config import ALL, BUCKET_ALIASES, TIMEZONE
from reportes_app.core.errors import ValidationError

BUCKET_NAMES: tuple[str, ...] = (
    "today",
    "yesterday",
    "this_week",
    "last_week",
    "last_7_days",
    "last_30_days",
    "this_month",
    "last_month",
    "this_quarter",
    "last_quarter",
    "this_year",
    "last_year",
)

_YEAR_RE = re.compile(r"^\d{4}$")
_ONE_NS = pd.Timedelta(1, "ns")


@dataclass(frozen=True, slots=True)
class DateRange:
    start: pd.Timestamp
    end: pd.Timestamp


def canonical_bucket(name: str | None) -> str:
    """Map UI aliases (``hoy``, ``mesPasado``...) onto canonical bucket names.

    Raises ValidationError for names that are neither a known bucket nor a
    four-digit year.
    """
    if name is None:
        return ALL
    text = str(name).strip()
    if not text or text == ALL:
        return ALL
    text = BUCKET_ALIASES.get(text, text)
    if text == ALL or text in BUCKET_NAMES or _YEAR_RE.match(text):
        return text
    raise ValidationError(f"Unknown date bucket: {name!r}")


def local_now(now=None, tz=None) -> pd.Timestamp:
    tz = tz or pytz.timezone(TIMEZONE)
    if now is None:
        return pd.Timestamp.now(tz)
    ts = pd.Timestamp(now)
    if ts.tzinfo is None:
        return ts.tz_localize(tz)
    return ts.tz_convert(tz)


def _day_start(day: date, tz) -> pd.Timestamp:
    return pd.Timestamp(datetime.combine(day, time.min)).tz_localize(tz)


def _days(first: date, last: date, tz) -> DateRange:
    return DateRange(_day_start(first, tz), _day_start(last + timedelta(days=1), tz) - _ONE_NS)


def _month_range(year: int, month: int, tz) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return _days(date(year, month, 1), date(year, month, last_day), tz)


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _quarter_range(year: int, quarter_start_month: int, tz) -> DateRange:
    end_year, end_month = _shift_month(year, quarter_start_month, 2)
    last_day = calendar.monthrange(end_year, end_month)[1]
    return _days(date(year, quarter_start_month, 1), date(end_year, end_month, last_day), tz)


def resolve_bucket(name: str | None, now=None, tz=None) -> DateRange | None:
    """Resolve a bucket name into an inclusive ``DateRange``.

    Parameters
    ----------
    name : str or None
        Canonical bucket, UI alias, a four-digit year, or ``"all"``.
    now : datetime-like, optional
        Reference instant; defaults to the current time in ``tz``.
    tz : tzinfo, optional
        Local timezone for calendar math (config ``TIMEZONE`` by default).

    Returns
    -------
    DateRange or None
        None when the bucket is ``"all"`` (predicate disabled).
    """
    tz = tz or pytz.timezone(TIMEZONE)
    bucket = canonical_bucket(name)
    if bucket == ALL:
        return None
    if _YEAR_RE.match(bucket):
        year = int(bucket)
        return _days(date(year, 1, 1), date(year, 12, 31), tz)

    today = local_now(now, tz).date()
    if bucket == "today":
        return _days(today, today, tz)
    if bucket == "yesterday":
        day = today - timedelta(days=1)
        return _days(day, day, tz)
    monday = today - timedelta(days=today.weekday())
    if bucket == "this_week":
        return _days(monday, monday + timedelta(days=6), tz)
    if bucket == "last_week":
        return _days(monday - timedelta(days=7), monday - timedelta(days=1), tz)
    if bucket == "last_7_days":
        return _days(today - timedelta(days=6), today, tz)
    if bucket == "last_30_days":
        return _days(today - timedelta(days=29), today, tz)
    if bucket == "this_month":
        return _month_range(today.year, today.month, tz)
    if bucket == "last_month":
        return _month_range(*_shift_month(today.year, today.month, -1), tz)
    quarter_start = 3 * ((today.month - 1) // 3) + 1
    if bucket == "this_quarter":
        return _quarter_range(today.year, quarter_start, tz)
    if bucket == "last_quarter":
        return _quarter_range(*_shift_month(today.year, quarter_start, -3), tz)
    if bucket == "this_year":
        return _days(date(today.year, 1, 1), date(today.year, 12, 31), tz)
    # last_year
    return _days(date(today.year - 1, 1, 1), date(today.year - 1, 12, 31), tz)


def in_range_mask(timestamps: pd.Series, date_range: DateRange | None) -> pd.Series:
    """Boolean mask of ``timestamps`` inside ``date_range`` (all True when None)."""
    if date_range is None:
        return pd.Series(True, index=timestamps.index)
    ts = pd.to_datetime(timestamps, utc=True)
    return (ts >= date_range.start) & (ts <= date_range.end)
