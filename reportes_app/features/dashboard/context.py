"""Pure helpers to build dashboard context for rendering and testing."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from reportes_app.analytics.aggregations.kpis import (
    KpiSummary,
    compute_kpis,
    priority_distribution,
    status_distribution,
    top_departments,
    top_problem_types,
    top_reporters,
)
from reportes_app.analytics.aggregations.trends import monthly_trend, weekday_load
from reportes_app.analytics.segments.filters import FilterOptions, filter_options
from reportes_app.core.config import DEFAULT_TOP_N


@dataclass(slots=True)
class DashboardContext:
    kpis: KpiSummary
    by_department: pd.DataFrame
    by_priority: pd.DataFrame
    by_status: pd.DataFrame
    by_problem_type: pd.DataFrame
    by_reporter: pd.DataFrame
    monthly: pd.DataFrame
    weekdays: pd.DataFrame
    options: FilterOptions = field(default_factory=lambda: FilterOptions([], [], []))


def build_dashboard_context(
    view: pd.DataFrame,
    *,
    store_frame: pd.DataFrame | None = None,
    top_n: int = DEFAULT_TOP_N,
    tz=None,
) -> DashboardContext:
    """Every derived series for one filtered view.

    ``store_frame`` (the unfiltered store) feeds the dropdown options so that
    choosing one filter never hides the alternatives.
    """
    options_source = view if store_frame is None else store_frame
    return DashboardContext(
        kpis=compute_kpis(view),
        by_department=top_departments(view, top_n),
        by_priority=priority_distribution(view),
        by_status=status_distribution(view),
        by_problem_type=top_problem_types(view, top_n),
        by_reporter=top_reporters(view, top_n),
        monthly=monthly_trend(view, tz=tz),
        weekdays=weekday_load(view, tz=tz),
        options=filter_options(options_source),
    )
