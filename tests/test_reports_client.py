import requests

from reportes_app.core.auth import Session
from reportes_app.core.config import AppSettings
from reportes_app.core.errors import ErrorKind
from reportes_app.core.reports_client import ReportsAPI, kind_for_status


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeHTTP:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.timeouts = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.requests.append((method, url, json, headers))
        self.timeouts.append(timeout)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _api(*responses, session=None):
    http = FakeHTTP(*responses)
    return ReportsAPI("http://api.test/", session, http=http), http


def test_client_built_from_settings():
    session = Session.for_role("tecnico", token="abc")
    http = FakeHTTP(FakeResponse(payload=[]))
    settings = AppSettings(api_base_url="http://reportes.local/", request_timeout_seconds=4)
    api = ReportsAPI.from_settings(settings, session, http=http)
    assert api.list_reports().value == []
    assert http.requests[0][1] == "http://reportes.local/api/reportes"
    assert http.requests[0][3] == {"Authorization": "Bearer abc"}
    assert http.timeouts == [4.0]
    assert ReportsAPI("http://x", http=http).timeout == AppSettings().request_timeout_seconds


def test_status_mapping():
    assert kind_for_status(400) is ErrorKind.VALIDATION
    assert kind_for_status(422) is ErrorKind.VALIDATION
    assert kind_for_status(403) is ErrorKind.AUTHORIZATION
    assert kind_for_status(404) is ErrorKind.NOT_FOUND
    assert kind_for_status(503) is ErrorKind.SERVER
    assert kind_for_status(418) is ErrorKind.SERVER


def test_list_reports_accepts_bare_and_wrapped_arrays():
    api, http = _api(FakeResponse(payload=[{"_id": "1"}]), FakeResponse(payload={"reportes": [{"_id": "2"}]}))
    assert api.list_reports().value == [{"_id": "1"}]
    assert api.list_reports().value == [{"_id": "2"}]
    assert http.requests[0][:2] == ("GET", "http://api.test/api/reportes")


def test_mutations_send_bearer_token_and_parse_ids():
    session = Session.for_role("administrador", token="abc")
    api, http = _api(
        FakeResponse(201, {"insertedId": "new1"}),
        FakeResponse(200, {"message": "ok", "reporte": {"_id": "new1"}}),
        FakeResponse(200, {"message": "deleted"}),
        session=session,
    )
    assert api.create_report({"descripcion": "x"}).value == "new1"
    assert api.patch_report("new1", {"prioridad": "Alta"}).value == {"_id": "new1"}
    assert api.delete_report("new1").ok
    methods = [(m, url) for m, url, _, _ in http.requests]
    assert methods == [
        ("POST", "http://api.test/api/reportes"),
        ("PATCH", "http://api.test/api/reportes/new1"),
        ("DELETE", "http://api.test/api/reportes/new1"),
    ]
    assert all(headers == {"Authorization": "Bearer abc"} for *_, headers in http.requests)


def test_failures_become_err_values():
    api, _ = _api(
        FakeResponse(404, {"message": "Reporte no encontrado"}),
        FakeResponse(500, None, text="boom"),
        requests.ConnectionError("refused"),
    )
    not_found = api.delete_report("gone")
    assert not_found.kind is ErrorKind.NOT_FOUND
    assert not_found.detail == "Reporte no encontrado"
    server = api.patch_report("x", {})
    assert server.kind is ErrorKind.SERVER and server.detail == "boom"
    assert api.list_reports().kind is ErrorKind.NETWORK
