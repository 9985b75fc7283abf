from datetime import datetime

import pytz

from fakes import make_report
from reportes_app.analytics.aggregations.kpis import compute_kpis
from reportes_app.analytics.segments.filters import (
    FilterSpec,
    clamp_page,
    filter_options,
    filter_reports,
    most_recent_first,
    paginate,
)
from reportes_app.core.mappers import reports_to_dataframe

TZ = pytz.timezone("America/Monterrey")
NOW = TZ.localize(datetime(2025, 6, 10, 18, 0))


def _sample_df():
    reports = [
        make_report(
            1,
            timestamp=TZ.localize(datetime(2024, 1, 5, 10, 0)).isoformat(),
            prioridad="Alta",
            departamento=["Catastro", "Obras"],
            quienReporta="Ana",
        ),
        make_report(
            2,
            timestamp=TZ.localize(datetime(2025, 6, 10, 9, 0)).isoformat(),
            prioridad="Media",
            departamento=["Tesorería"],
            quienReporta="Luis",
            descripcion="El sistema de nómina marca error al guardar",
            asignadoA=None,
        ),
        make_report(
            3,
            timestamp=TZ.localize(datetime(2025, 6, 10, 11, 0)).isoformat(),
            prioridad="Baja",
            departamento=["Obras"],
            status="Resuelto",
            quienReporta="Marta",
        ),
    ]
    return reports_to_dataframe(reports, tz=TZ)


def test_example_scenario():
    df = _sample_df()
    today = filter_reports(df, FilterSpec(date_bucket="today"), now=NOW, tz=TZ)
    assert sorted(today["id"]) == ["r2", "r3"]
    year = filter_reports(df, FilterSpec(date_bucket="2024"), now=NOW, tz=TZ)
    assert year["id"].tolist() == ["r1"]
    critical = filter_reports(df, FilterSpec(priority="Crítica"), now=NOW, tz=TZ)
    assert critical.empty
    assert compute_kpis(critical).as_dict() == {
        "total": 0,
        "pending": 0,
        "in_progress": 0,
        "resolved": 0,
        "unique_reporters": 0,
        "unique_problem_types": 0,
    }


def test_disabled_spec_returns_everything():
    df = _sample_df()
    assert FilterSpec().is_disabled()
    assert len(filter_reports(df, FilterSpec(), now=NOW, tz=TZ)) == len(df)


def test_filtered_rows_satisfy_every_predicate():
    df = _sample_df()
    spec = FilterSpec(department="Obras", reported_by="Ana", search="IMPRESORA")
    out = filter_reports(df, spec, now=NOW, tz=TZ)
    assert set(out["id"]) <= set(df["id"])
    assert out["id"].tolist() == ["r1"]
    for _, row in out.iterrows():
        assert "Obras" in row["departments"]
        assert row["reported_by"] == "Ana"
        assert "impresora" in row["description"].lower()


def test_categorical_matches_are_case_sensitive_and_search_covers_fields():
    df = _sample_df()
    assert filter_reports(df, FilterSpec(priority="alta"), now=NOW, tz=TZ).empty
    assert filter_reports(df, FilterSpec(search="tesorer"), now=NOW, tz=TZ)["id"].tolist() == ["r2"]
    assert filter_reports(df, FilterSpec(search="resuelto"), now=NOW, tz=TZ)["id"].tolist() == ["r3"]
    assert filter_reports(df, FilterSpec(search="r1"), now=NOW, tz=TZ)["id"].tolist() == ["r1"]


def test_ordering_pagination_and_options():
    df = most_recent_first(_sample_df())
    assert df["id"].tolist() == ["r3", "r2", "r1"]
    page = paginate(df, 5, 2)
    assert page.page == 2
    assert page.total_pages == 2
    assert page.rows["id"].tolist() == ["r1"]
    assert clamp_page(0, 0, 10) == 1
    options = filter_options(df)
    assert options.departments == ["Catastro", "Obras", "Tesorería"]
    assert "Ayudante Paco" in options.people
