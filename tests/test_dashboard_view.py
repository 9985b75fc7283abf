import json
from datetime import date, datetime

import pytest

from fakes import TZ, build_env, raw_report
from reportes_app.features.dashboard.view import DashboardView

NOW = TZ.localize(datetime(2025, 3, 3, 18, 0))


def _view(n=25):
    raws = [raw_report(i, quienReporta="Ana" if i % 2 else "Luis") for i in range(1, n + 1)]
    _, store, scheduler, _ = build_env(raws)
    return DashboardView(store, scheduler, now_fn=lambda: NOW), store, scheduler


def test_search_is_debounced():
    view, _, scheduler = _view()
    view.set_search_text("piso 1")
    view.set_search_text("piso 12")
    assert view.search_pending
    assert len(view.filtered()) == 25
    scheduler.advance(0.5)
    assert not view.search_pending
    assert view.filtered()["id"].tolist() == ["r12"]


def test_page_cursor_reclamps_on_filter_and_store_changes():
    view, store, _ = _view()
    assert view.go_to_page(3) == 3
    assert len(view.current_page().rows) == 5
    assert list(view.table().columns)[:3] == ["id", "timestamp", "departments_text"]
    view.set_filter(reported_by="Ana")
    assert view.page == 2
    store.replace_all([])
    assert view.page == 1
    assert view.current_page().total_pages == 1


def test_filters_accept_aliases_and_reject_search():
    view, _, _ = _view()
    view.set_filter(date_bucket="hoy")
    assert view.spec.date_bucket == "today"
    assert len(view.filtered()) == 25
    with pytest.raises(ValueError):
        view.set_filter(search="x")
    view.reset_filters()
    assert view.spec.is_disabled()


def test_context_and_export_follow_filtered_view():
    view, _, _ = _view(4)
    view.set_filter(reported_by="Luis")
    ctx = view.context()
    assert ctx.kpis.total == 2
    assert ctx.options.people == ["Ana", "Ayudante Paco", "Luis"]
    filename, content = view.export("json", today=date(2025, 3, 3))
    assert filename == "reportes_sistemas_2025-03-03.json"
    assert [r["_id"] for r in json.loads(content)] == ["r2", "r4"]
    view.close()
