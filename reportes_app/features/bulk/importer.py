"""Bulk import: parse externally authored files and submit one create call per record."""

from __future__ import annotations

import io
import json
import logging
import random
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import pandas as pd
import pytz

from reportes_app.core.auth import Session, can_mutate
from reportes_app.core.config import (
    ASSIGNEE_ROSTER,
    OTHER_PROBLEM_TYPE,
    PROBLEM_TYPES,
    TABULAR_FIELDS,
    TIMEZONE,
    UNKNOWN_REPORTER,
    WIRE_FIELDS,
    AppSettings,
)
from reportes_app.core.errors import Err, ErrorKind, ValidationError
from reportes_app.core.mappers import clean_text, fields_to_payload, normalize_departments, parse_timestamp
from reportes_app.core.models import Notification
from reportes_app.core.reports_client import ReportsAPI
from reportes_app.core.service import ProgressCallback, ReportService
from reportes_app.core.status import coerce_priority, coerce_status

logger = logging.getLogger(__name__)

_ATTR_TO_HEADER: dict[str, str] = {attr: header for header, attr in TABULAR_FIELDS.items()}


# ------------------ Parsing ------------------
def parse_csv(text: str) -> list[dict[str, Any]]:
    """Rows of a CSV export as dicts; blank cells become empty strings."""
    if not text or not text.strip():
        return []
    df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skip_blank_lines=True)
    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


def parse_json(text: str) -> list[dict[str, Any]]:
    """Records of a JSON import file, which must hold an array."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON: {exc.msg}") from exc
    if not isinstance(data, list):
        raise ValidationError("The JSON file must contain an array of reports.")
    return [item if isinstance(item, dict) else {} for item in data]


# ------------------ Transformation ------------------
def _pick(raw: dict[str, Any], attr: str) -> Any:
    """Value for ``attr`` under its tabular header, falling back to its wire key."""
    header_value = raw.get(_ATTR_TO_HEADER.get(attr, ""))
    if _present(header_value):
        return header_value
    wire_value = raw.get(WIRE_FIELDS[attr])
    return wire_value if _present(wire_value) else None


def _present(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return bool(value)
    return bool(clean_text(value))


def transform_record(
    raw: dict[str, Any],
    roster: Sequence[str] = ASSIGNEE_ROSTER,
    rng: random.Random | None = None,
    now: datetime | None = None,
    tz=None,
) -> dict[str, Any] | None:
    """Creation payload (wire keys) for one imported record.

    Returns None when the record lacks departments or a description; such rows
    are dropped before submission and are not failures. Out-of-range values are
    coerced rather than rejected, and a missing or unrecognised assignee gets a
    pseudo-random roster pick.
    """
    departments = normalize_departments(_pick(raw, "departments"))
    description = clean_text(_pick(raw, "description"))
    if not departments or not description:
        return None

    rng = rng or random.Random()
    problem_type = clean_text(_pick(raw, "problem_type"))
    if problem_type not in PROBLEM_TYPES:
        problem_type = OTHER_PROBLEM_TYPE
    assignee = clean_text(_pick(raw, "assignee"))
    if assignee not in roster:
        assignee = rng.choice(list(roster)) if roster else None
    timestamp = parse_timestamp(_pick(raw, "timestamp"), tz)
    if timestamp is None:
        timestamp = now or datetime.now(tz or pytz.timezone(TIMEZONE))

    return fields_to_payload(
        {
            "departments": departments,
            "description": description,
            "problem_type": problem_type,
            "reported_by": clean_text(_pick(raw, "reported_by")) or UNKNOWN_REPORTER,
            "priority": coerce_priority(_pick(raw, "priority")),
            "status": coerce_status(_pick(raw, "status")),
            "assignee": assignee,
            "timestamp": timestamp,
        }
    )


# ------------------ Submission ------------------
@dataclass(frozen=True, slots=True)
class ImportSummary:
    total: int
    succeeded: int
    failed: int
    dropped: int
    refetched: bool = False

    def as_message(self) -> str:
        return f"Import finished. Succeeded: {self.succeeded}, failed: {self.failed}, skipped: {self.dropped}."


class BulkImporter:
    """Submit a batch of imported records as independent concurrent creates.

    Outcomes are tallied as futures complete, so the summary accounts for every
    input record exactly once regardless of completion order.
    """

    def __init__(
        self,
        api: ReportsAPI,
        service: ReportService,
        session: Session | None,
        settings: AppSettings | None = None,
        *,
        rng: random.Random | None = None,
        roster: Sequence[str] = ASSIGNEE_ROSTER,
        notify: Callable[[Notification], None] | None = None,
    ):
        self.api = api
        self.service = service
        self.session = session
        self.settings = settings or AppSettings()
        self.rng = rng or random.Random()
        self.roster = tuple(roster)
        self.notify = notify
        self._tz = pytz.timezone(self.settings.timezone)

    def run(
        self,
        records: Sequence[dict[str, Any]],
        *,
        progress: ProgressCallback | None = None,
        now: datetime | None = None,
    ) -> ImportSummary:
        total = len(records)
        now = now or datetime.now(self._tz)
        payloads = []
        for raw in records:
            payload = transform_record(raw, self.roster, self.rng, now, self._tz)
            if payload is not None:
                payloads.append(payload)
        dropped = total - len(payloads)
        if dropped:
            logger.info("Dropped %s of %s imported records missing departments or description", dropped, total)

        if not can_mutate(self.session):
            logger.info("Denied bulk import of %s records", len(payloads))
            summary = ImportSummary(total, 0, len(payloads), dropped)
            self._notify("error", "Permission denied: your role cannot import reports.")
            return summary
        if not payloads:
            summary = ImportSummary(total, 0, 0, dropped)
            self._notify("info", summary.as_message())
            return summary

        succeeded, failed = self._submit_all(payloads, progress)
        refresh = self.service.refetch(progress=progress)
        if not refresh.ok:
            logger.warning("Refetch after import failed: %s", refresh.detail)
        summary = ImportSummary(total, succeeded, failed, dropped, refetched=refresh.ok)
        logger.info(
            "Import of %s records: %s succeeded, %s failed, %s dropped", total, succeeded, failed, dropped
        )
        self._notify("success" if succeeded else "error", summary.as_message())
        return summary

    def _submit_all(self, payloads: list[dict[str, Any]], progress: ProgressCallback | None) -> tuple[int, int]:
        succeeded = failed = 0
        completed = 0
        if progress:
            progress("Importing reports", 0, len(payloads))
        workers = max(1, min(self.settings.import_max_workers, len(payloads)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self.api.create_report, payload) for payload in payloads]
            for fut in as_completed(futures):
                try:
                    result = fut.result()
                except Exception as exc:
                    logger.warning("Create task failed: %s", exc)
                    result = Err(ErrorKind.NETWORK, str(exc))
                if result.ok:
                    succeeded += 1
                else:
                    failed += 1
                    logger.debug("Import create failed (%s): %s", result.kind.value, result.detail)
                completed += 1
                if progress:
                    progress("Importing reports", completed, len(payloads))
        return succeeded, failed

    def _notify(self, level: str, message: str) -> None:
        if self.notify is not None:
            self.notify(Notification(level, message))
