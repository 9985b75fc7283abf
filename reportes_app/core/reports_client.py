"""Remote report collection client (REST over requests).

Every public call returns ``Ok(value)`` or ``Err(kind, detail)``; HTTP failures
are converted at this boundary so callers branch on the error kind instead of
catching exceptions.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from .auth import Session
from .config import REPORTS_ENDPOINT, AppSettings
from .errors import Err, ErrorKind, Ok

logger = logging.getLogger(__name__)


def kind_for_status(status_code: int) -> ErrorKind:
    if status_code in (400, 422):
        return ErrorKind.VALIDATION
    if status_code in (401, 403):
        return ErrorKind.AUTHORIZATION
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    return ErrorKind.SERVER


def _error_detail(resp) -> str:
    try:
        data = resp.json()
    except ValueError:
        return (resp.text or "")[:200]
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return (resp.text or "")[:200]


class ReportsAPI:
    def __init__(
        self,
        base_url: str,
        session: Session | None = None,
        *,
        http: requests.Session | None = None,
        timeout: float | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.http = http or requests.Session()
        self.timeout = timeout if timeout is not None else AppSettings().request_timeout_seconds

    @classmethod
    def from_settings(cls, settings: AppSettings, session: Session | None = None, **kwargs) -> ReportsAPI:
        return cls(settings.api_base_url, session, timeout=settings.request_timeout_seconds, **kwargs)

    def _url(self, report_id: str | None = None) -> str:
        url = f"{self.base_url}{REPORTS_ENDPOINT}"
        if report_id is not None:
            url = f"{url}/{report_id}"
        return url

    def _request(self, method: str, url: str, *, json: Any = None) -> Ok | Err:
        headers = self.session.auth_headers() if self.session else {}
        try:
            resp = self.http.request(method, url, json=json, headers=headers, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            logger.warning("%s %s unreachable: %s", method, url, exc)
            return Err(ErrorKind.NETWORK, str(exc))
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            return Err(ErrorKind.NETWORK, str(exc))
        if resp.status_code >= 400:
            kind = kind_for_status(resp.status_code)
            detail = _error_detail(resp)
            logger.info("%s %s -> %s (%s)", method, url, resp.status_code, kind.value)
            return Err(kind, detail)
        return Ok(resp)

    def list_reports(self) -> Ok | Err:
        result = self._request("GET", self._url())
        if not result.ok:
            return result
        try:
            data = result.value.json()
        except ValueError:
            return Err(ErrorKind.SERVER, "Malformed report list response")
        # The collection answers with a bare array or a wrapped one.
        if isinstance(data, dict):
            data = data.get("reportes") or data.get("data") or []
        if not isinstance(data, list):
            return Err(ErrorKind.SERVER, "Unexpected report list payload")
        return Ok(data)

    def create_report(self, payload: dict[str, Any]) -> Ok | Err:
        result = self._request("POST", self._url(), json=payload)
        if not result.ok:
            return result
        try:
            data = result.value.json()
        except ValueError:
            data = {}
        new_id = None
        if isinstance(data, dict):
            new_id = data.get("insertedId") or data.get("_id") or data.get("id")
        return Ok(str(new_id) if new_id is not None else None)

    def patch_report(self, report_id: str, fields: dict[str, Any]) -> Ok | Err:
        result = self._request("PATCH", self._url(report_id), json=fields)
        if not result.ok:
            return result
        try:
            data = result.value.json()
        except ValueError:
            data = None
        reporte = data.get("reporte") if isinstance(data, dict) else None
        return Ok(reporte)

    def delete_report(self, report_id: str) -> Ok | Err:
        result = self._request("DELETE", self._url(report_id))
        if not result.ok:
            return result
        return Ok(None)
