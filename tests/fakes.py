"""Shared in-memory stand-ins for the remote report collection."""

from __future__ import annotations

import threading
from datetime import datetime

import pytz

from reportes_app.core.auth import Session
from reportes_app.core.errors import Err, ErrorKind, Ok
from reportes_app.core.mappers import map_report
from reportes_app.core.reports_client import ReportsAPI
from reportes_app.core.service import ReportService
from reportes_app.core.store import ReportStore
from reportes_app.core.timers import ManualClock, Scheduler

TZ = pytz.timezone("America/Monterrey")


def raw_report(i, **overrides):
    raw = {
        "_id": f"r{i}",
        "departamento": ["Catastro"],
        "descripcion": f"La impresora del piso {i} no imprime nada",
        "tipoProblema": "Hardware - Impresoras",
        "quienReporta": "Ana",
        "prioridad": "Media",
        "status": "Pendiente",
        "asignadoA": "Ayudante Paco",
        "timestamp": TZ.localize(datetime(2025, 3, 3, 9, 0)).isoformat(),
    }
    raw.update(overrides)
    return raw


def make_report(i, **overrides):
    return map_report(raw_report(i, **overrides), tz=TZ)


class FakeAPI(ReportsAPI):
    """Keeps raw entities in memory; ``failures`` maps a method name to the Err it returns."""

    def __init__(self, raws=None):
        self.base_url = "http://test"
        self.session = None
        self.timeout = 1.0
        self.raws = [dict(r) for r in (raws or [])]
        self.failures: dict[str, Err] = {}
        self.calls: list[tuple] = []
        self._lock = threading.Lock()
        self._next_id = 1000

    def list_reports(self):
        self.calls.append(("list",))
        if "list" in self.failures:
            return self.failures["list"]
        return Ok([dict(r) for r in self.raws])

    def create_report(self, payload):
        with self._lock:
            self.calls.append(("create", payload))
            fail = self.failures.get("create")
            if callable(fail):
                fail = fail(payload)
            if fail is not None:
                return fail
            self._next_id += 1
            new_id = f"n{self._next_id}"
            self.raws.append({**payload, "_id": new_id})
            return Ok(new_id)

    def patch_report(self, report_id, fields):
        self.calls.append(("patch", report_id, fields))
        if "patch" in self.failures:
            return self.failures["patch"]
        for raw in self.raws:
            if raw.get("_id") == report_id:
                raw.update(fields)
                return Ok(dict(raw))
        return Err(ErrorKind.NOT_FOUND, "Reporte no encontrado")

    def delete_report(self, report_id):
        self.calls.append(("delete", report_id))
        if "delete" in self.failures:
            return self.failures["delete"]
        before = len(self.raws)
        self.raws = [r for r in self.raws if r.get("_id") != report_id]
        if len(self.raws) == before:
            return Err(ErrorKind.NOT_FOUND, "Reporte no encontrado")
        return Ok(None)

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)


def admin_session():
    return Session.for_role("administrador", token="t0k3n", user="admin")


def build_env(raws=None):
    """FakeAPI, store, manual-clock scheduler and service, with the store loaded."""
    api = FakeAPI(raws)
    store = ReportStore(tz=TZ)
    scheduler = Scheduler(ManualClock())
    service = ReportService(api, store, scheduler)
    service.refetch()
    api.calls.clear()
    return api, store, scheduler, service
