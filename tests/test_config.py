import pydantic
import pytest

from reportes_app.core.auth import Session, can_mutate, normalize_role
from reportes_app.core.column_config import get_columns, load_column_sets
from reportes_app.core.config import EXPORT_COLUMNS, AppSettings
from reportes_app.core.errors import Err, ErrorKind
from reportes_app.core.reports_client import ReportsAPI


def test_column_sets_load():
    sets = load_column_sets()
    assert "export" in sets and "ticket_list" in sets
    assert get_columns("export") == list(EXPORT_COLUMNS)
    assert get_columns("missing") == []


def test_column_sets_fallback_without_yaml(tmp_path):
    sets = load_column_sets(tmp_path, reload=True)
    assert sets["export"] == list(EXPORT_COLUMNS)
    load_column_sets(reload=True)


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("REPORTES_API_BASE_URL", "https://api.example.org/")
    monkeypatch.setenv("REPORTES_POLL_INTERVAL_SECONDS", "12")
    settings = AppSettings()
    assert settings.api_base_url == "https://api.example.org"
    assert settings.poll_interval_seconds == 12.0
    assert settings.timezone == "America/Monterrey"
    assert settings.autosave_debounce_seconds == 1.0
    api = ReportsAPI.from_settings(settings)
    assert api.base_url == "https://api.example.org"
    assert api.timeout == settings.request_timeout_seconds


@pytest.mark.parametrize("value", ["treinta", "0", "-5"])
def test_settings_reject_invalid_intervals(monkeypatch, value):
    monkeypatch.setenv("REPORTES_POLL_INTERVAL_SECONDS", value)
    with pytest.raises(pydantic.ValidationError):
        AppSettings()
    with pytest.raises(pydantic.ValidationError):
        AppSettings(page_size=0)


def test_role_gate():
    assert normalize_role("Jefe") == "jefe_departamento"
    assert can_mutate(Session.for_role("Técnico"))
    assert not can_mutate(Session.for_role("usuario"))
    assert not can_mutate(None)
    assert Session(token="abc").auth_headers() == {"Authorization": "Bearer abc"}


def test_err_helpers():
    err = Err(ErrorKind.NOT_FOUND, "Reporte no encontrado")
    assert not err.ok
    assert "no longer exists" in err.message()
