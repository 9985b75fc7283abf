from datetime import datetime

import pandas as pd
import pytest
import pytz

from reportes_app.analytics.metrics.buckets import (
    BUCKET_NAMES,
    canonical_bucket,
    in_range_mask,
    resolve_bucket,
)
from reportes_app.core.errors import ValidationError

TZ = pytz.timezone("America/Monterrey")
NOW = TZ.localize(datetime(2025, 6, 10, 15, 45))  # a Tuesday in Q2


def _local(*args):
    return pd.Timestamp(datetime(*args)).tz_localize(TZ)


def test_today_and_yesterday_bounds():
    today = resolve_bucket("today", now=NOW, tz=TZ)
    assert today.start == _local(2025, 6, 10)
    assert today.end == _local(2025, 6, 11) - pd.Timedelta(1, "ns")
    yesterday = resolve_bucket("ayer", now=NOW, tz=TZ)
    assert yesterday.start == _local(2025, 6, 9)


def test_week_month_quarter_year():
    assert resolve_bucket("this_week", now=NOW, tz=TZ).start == _local(2025, 6, 9)
    last_week = resolve_bucket("last_week", now=NOW, tz=TZ)
    assert last_week.start == _local(2025, 6, 2)
    assert last_week.end == _local(2025, 6, 9) - pd.Timedelta(1, "ns")
    assert resolve_bucket("last_7_days", now=NOW, tz=TZ).start == _local(2025, 6, 4)
    assert resolve_bucket("last_30_days", now=NOW, tz=TZ).start == _local(2025, 5, 12)
    assert resolve_bucket("last_month", now=NOW, tz=TZ).start == _local(2025, 5, 1)
    quarter = resolve_bucket("this_quarter", now=NOW, tz=TZ)
    assert quarter.start == _local(2025, 4, 1)
    assert quarter.end == _local(2025, 7, 1) - pd.Timedelta(1, "ns")
    assert resolve_bucket("last_quarter", now=NOW, tz=TZ).start == _local(2025, 1, 1)
    assert resolve_bucket("añoPasado", now=NOW, tz=TZ).start == _local(2024, 1, 1)
    year = resolve_bucket("2024", now=NOW, tz=TZ)
    assert year.end == _local(2025, 1, 1) - pd.Timedelta(1, "ns")


def test_last_quarter_wraps_year():
    january = TZ.localize(datetime(2025, 1, 20, 10, 0))
    rng = resolve_bucket("last_quarter", now=january, tz=TZ)
    assert rng.start == _local(2024, 10, 1)
    assert rng.end == _local(2025, 1, 1) - pd.Timedelta(1, "ns")


@pytest.mark.parametrize("name", BUCKET_NAMES)
def test_bucket_boundaries_are_inclusive_to_the_nanosecond(name):
    rng = resolve_bucket(name, now=NOW, tz=TZ)
    assert rng == resolve_bucket(name, now=NOW, tz=TZ)
    one_ns = pd.Timedelta(1, "ns")
    stamps = pd.Series([rng.start - one_ns, rng.start, rng.end, rng.end + one_ns])
    assert in_range_mask(stamps, rng).tolist() == [False, True, True, False]


def test_all_and_unknown_buckets():
    assert resolve_bucket("all", now=NOW, tz=TZ) is None
    assert resolve_bucket("todos", now=NOW, tz=TZ) is None
    assert canonical_bucket("mesPasado") == "last_month"
    with pytest.raises(ValidationError):
        resolve_bucket("fortnight", now=NOW, tz=TZ)
