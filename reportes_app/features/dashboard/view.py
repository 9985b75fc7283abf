"""Dashboard view state: active filters, debounced search, and pagination."""

from __future__ import annotations

import logging

import pandas as pd
import pytz

from reportes_app.analytics.segments.filters import (
    FilterSpec,
    Page,
    clamp_page,
    filter_reports,
    most_recent_first,
    paginate,
)
from reportes_app.core.column_config import get_columns
from reportes_app.core.config import AppSettings
from reportes_app.core.store import ReportStore
from reportes_app.core.timers import Debouncer, Scheduler
from reportes_app.features.bulk.export import export_csv, export_filename, export_json

from .context import DashboardContext, build_dashboard_context

logger = logging.getLogger(__name__)


class DashboardView:
    """Filtered, most-recent-first view of the store with a clamped page cursor.

    Search text is applied through its own trailing-edge debouncer; the page
    cursor re-clamps whenever filters change or the store changes.
    """

    def __init__(
        self,
        store: ReportStore,
        scheduler: Scheduler,
        settings: AppSettings | None = None,
        *,
        now_fn=None,
    ):
        self.store = store
        self.scheduler = scheduler
        self.settings = settings or AppSettings()
        self._tz = pytz.timezone(self.settings.timezone)
        self._now_fn = now_fn
        self.spec = FilterSpec()
        self.search_text = ""
        self.page = 1
        self.page_size = self.settings.page_size
        self._search = Debouncer(
            scheduler, self.settings.search_debounce_seconds, self._apply_search, name="search"
        )
        self._unsubscribe = store.subscribe(self._on_store_changed)

    # ------------------ Filters ------------------
    def set_filter(self, **changes) -> FilterSpec:
        if "search" in changes:
            raise ValueError("search text goes through set_search_text()")
        self.spec = self.spec.with_changes(**changes)
        self._reclamp()
        return self.spec

    def reset_filters(self) -> None:
        self._search.cancel()
        self.search_text = ""
        self.spec = FilterSpec()
        self._reclamp()

    def set_search_text(self, text: str) -> None:
        self.search_text = text
        self._search.trigger(text)

    @property
    def search_pending(self) -> bool:
        return self._search.armed

    def _apply_search(self, text: str) -> None:
        logger.debug("Applying search %r", text)
        self.spec = self.spec.with_changes(search=text)
        self._reclamp()

    # ------------------ Views ------------------
    def _now(self):
        return self._now_fn() if self._now_fn else None

    def filtered(self) -> pd.DataFrame:
        view = filter_reports(self.store.to_dataframe(), self.spec, now=self._now(), tz=self._tz)
        return most_recent_first(view)

    def current_page(self) -> Page:
        page = paginate(self.filtered(), self.page, self.page_size)
        self.page = page.page
        return page

    def table(self) -> pd.DataFrame:
        """Current page restricted to the ticket list columns, in display order."""
        rows = self.current_page().rows
        return rows[[c for c in get_columns("ticket_list") if c in rows.columns]]

    def go_to_page(self, page: int) -> int:
        self.page = clamp_page(page, len(self.filtered()), self.page_size)
        return self.page

    def context(self) -> DashboardContext:
        return build_dashboard_context(
            self.filtered(),
            store_frame=self.store.to_dataframe(),
            top_n=self.settings.top_n,
            tz=self._tz,
        )

    def export(self, kind: str, today=None) -> tuple[str, str]:
        """Filename and content for exporting the current filtered view."""
        view = self.filtered()
        content = export_csv(view, tz=self._tz) if kind == "csv" else export_json(view, tz=self._tz)
        return export_filename(kind, today), content

    def close(self) -> None:
        self._search.cancel()
        self._unsubscribe()

    # ------------------ Internal Helpers ------------------
    def _reclamp(self) -> None:
        self.page = clamp_page(self.page, len(self.filtered()), self.page_size)

    def _on_store_changed(self, _store: ReportStore) -> None:
        self._reclamp()
