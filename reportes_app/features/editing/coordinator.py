"""MutationCoordinator: optimistic create/update/delete against the remote collection.

Lifecycle of an inline edit::

    IDLE -> EDITING -> AUTOSAVE_PENDING -> SAVING -> IDLE
                                             \\-> ERROR -> IDLE (after error_reset_seconds)

Only one report may be in an edit session at a time. Every remote failure is
caught here, rolled back from an explicit snapshot, and reported as a single
Notification; nothing escapes to the caller as an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytz

from reportes_app.core.auth import Session, can_mutate
from reportes_app.core.config import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    EDITABLE_FIELDS,
    MIN_DESCRIPTION_LENGTH,
    AppSettings,
)
from reportes_app.core.errors import Err, ErrorKind, Ok
from reportes_app.core.mappers import fields_to_payload, normalize_field_value, parse_timestamp, resolve_field
from reportes_app.core.models import Notification, Report
from reportes_app.core.reports_client import ReportsAPI
from reportes_app.core.service import ReportService
from reportes_app.core.store import ReportStore
from reportes_app.core.timers import Debouncer, Scheduler, Timer

from .diff import compute_patch
from .session import EditSession, EditState, PendingMutation

Notifier = Callable[[Notification], None]

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"success": logging.INFO, "info": logging.INFO, "error": logging.WARNING}


def log_notification(notification: Notification) -> None:
    logger.log(_LOG_LEVELS.get(notification.level, logging.INFO), notification.message)


def validate_new_report(fields: dict[str, Any]) -> list[str]:
    """Problems that block creation; empty when the payload is acceptable."""
    problems: list[str] = []
    if not fields.get("departments"):
        problems.append("at least one department is required")
    description = fields.get("description") or ""
    if len(description) < MIN_DESCRIPTION_LENGTH:
        problems.append(f"description must be at least {MIN_DESCRIPTION_LENGTH} characters")
    if not fields.get("problem_type"):
        problems.append("problem type is required")
    if not fields.get("reported_by"):
        problems.append("reporter is required")
    return problems


class MutationCoordinator:
    def __init__(
        self,
        store: ReportStore,
        api: ReportsAPI,
        service: ReportService,
        scheduler: Scheduler,
        session: Session | None,
        settings: AppSettings | None = None,
        notify: Notifier | None = None,
    ):
        self.store = store
        self.api = api
        self.service = service
        self.scheduler = scheduler
        self.session = session
        self.settings = settings or AppSettings()
        self.notify = notify or log_notification
        self._tz = pytz.timezone(self.settings.timezone)
        self._edit: EditSession | None = None
        self._autosave = Debouncer(
            scheduler, self.settings.autosave_debounce_seconds, self._on_autosave_due, name="autosave"
        )
        self._error_timer: Timer | None = None
        self.in_flight: PendingMutation | None = None

    # ------------------ Introspection ------------------
    @property
    def state(self) -> EditState:
        return self._edit.state if self._edit else EditState.IDLE

    @property
    def active_id(self) -> str | None:
        return self._edit.report_id if self._edit else None

    @property
    def autosave_armed(self) -> bool:
        return self._autosave.armed

    def visible_report(self, report_id: str) -> Report | None:
        """What the table should show: the draft while editing, else the store row."""
        baseline = self.store.get(report_id)
        if self._edit is not None and self._edit.report_id == report_id:
            return self._edit.draft(baseline)
        return baseline

    # ------------------ Edit Sessions ------------------
    def begin_edit(self, report_id: str) -> bool:
        if not self._authorize("edit reports"):
            return False
        if self._edit is not None:
            if self._edit.report_id == report_id:
                return True
            self._collapse("switched edit target")
        baseline = self.store.get(report_id)
        if baseline is None:
            self._notify("error", "Report not found.")
            return False
        self._edit = EditSession(report_id=report_id, opened_from=baseline)
        logger.debug("Editing %s", report_id)
        return True

    def change_field(self, field: str, value: Any) -> bool:
        """Record a field change and (re)arm the autosave debounce."""
        if self._edit is None:
            logger.warning("Ignoring change to %s with no active edit session", field)
            return False
        try:
            attr = resolve_field(field)
        except KeyError:
            self._notify("error", f"Unknown field: {field}")
            return False
        if attr not in EDITABLE_FIELDS:
            self._notify("error", f"Field {field} cannot be edited.")
            return False
        self._cancel_error_timer()
        self._edit.set_field(attr, normalize_field_value(attr, value))
        self._edit.state = EditState.AUTOSAVE_PENDING
        self._autosave.trigger()
        return True

    def save(self) -> Ok | Err:
        """Manual save: skips the debounce and sends the diff right away."""
        self._autosave.cancel()
        if self._edit is None:
            self._notify("info", "Nothing to save.")
            return Ok({})
        return self._save(manual=True)

    def cancel(self) -> bool:
        """Drop the draft without any network call; the row shows the store baseline again."""
        if self._edit is None:
            return False
        self._collapse("cancelled")
        self._notify("info", "Edit cancelled.")
        return True

    def _on_autosave_due(self) -> None:
        if self._edit is not None and self._edit.state is EditState.AUTOSAVE_PENDING:
            self._save(manual=False)

    def _save(self, *, manual: bool) -> Ok | Err:
        edit = self._edit
        if edit is None:
            return Ok({})
        if not self._authorize("update reports"):
            edit.state = EditState.EDITING
            return Err(ErrorKind.AUTHORIZATION, "Permission denied")
        baseline = self.store.get(edit.report_id)
        if baseline is None:
            return self._fail(edit, Err(ErrorKind.NOT_FOUND, "Report not found"))
        patch = compute_patch(baseline, edit.draft(baseline))
        if not patch:
            logger.debug("No changes for %s; skipping save", edit.report_id)
            self._end_session()
            if manual:
                self._notify("info", "No changes detected; nothing to save.")
            return Ok({})
        if "departments" in patch and not patch["departments"]:
            edit.state = EditState.EDITING
            self._notify("error", "At least one department is required.")
            return Err(ErrorKind.VALIDATION, "At least one department is required")

        edit.state = EditState.SAVING
        result = self._apply_update(edit.report_id, patch)
        if not result.ok:
            return self._fail(edit, result)
        self._end_session()
        self._notify("success", "Report updated." if manual else "Changes saved.")
        self._reconcile()
        return Ok(patch)

    # ------------------ Direct Mutations ------------------
    def set_status(self, report_id: str, status: str) -> Ok | Err:
        """Quick status change outside an edit session."""
        if not self._authorize("update reports"):
            return Err(ErrorKind.AUTHORIZATION, "Permission denied")
        if self.active_id == report_id:
            self._collapse("status changed directly")
        baseline = self.store.get(report_id)
        if baseline is None:
            self._notify("error", "Report not found.")
            return Err(ErrorKind.NOT_FOUND, "Report not found")
        patch = compute_patch(baseline, baseline.copy(status=normalize_field_value("status", status)))
        if not patch:
            return Ok({})
        result = self._apply_update(report_id, patch)
        if not result.ok:
            self._notify("error", f"Could not update the report: {result.message()}")
            return result
        self._notify("success", "Report status updated.")
        self._reconcile()
        return Ok(patch)

    def delete(self, report_id: str) -> Ok | Err:
        """Optimistic delete; rolls back unless the remote says the report is already gone."""
        if not self._authorize("delete reports"):
            return Err(ErrorKind.AUTHORIZATION, "Permission denied")
        if self._edit is not None:
            self._collapse("delete requested")
        snapshot = self.store.remove(report_id)
        if snapshot is None:
            self._notify("error", "Report not found.")
            return Err(ErrorKind.NOT_FOUND, "Report not found")
        self.in_flight = PendingMutation("delete", report_id, snapshot)
        try:
            result = self.api.delete_report(report_id)
        finally:
            self.in_flight = None
        if result.ok:
            self._notify("success", "Report deleted.")
            return Ok(report_id)
        if result.kind is ErrorKind.NOT_FOUND:
            logger.info("Report %s already deleted remotely; scheduling refetch", report_id)
            self.service.schedule_refetch()
            self._notify("info", "Report was already deleted.")
            return Ok(report_id)
        self.store.restore(snapshot)
        logger.warning("Delete of %s failed (%s); restored", report_id, result.kind.value)
        self._notify("error", f"Could not delete the report: {result.message()}")
        return result

    def create(self, fields: dict[str, Any]) -> Ok | Err:
        """Validate and submit a new report, then reconcile with a refetch."""
        if not self._authorize("create reports"):
            return Err(ErrorKind.AUTHORIZATION, "Permission denied")
        normalized = self.build_create_fields(fields)
        problems = validate_new_report(normalized)
        if problems:
            detail = "; ".join(problems)
            self._notify("error", f"Invalid report: {detail}.")
            return Err(ErrorKind.VALIDATION, detail)
        result = self.api.create_report(fields_to_payload(normalized))
        if not result.ok:
            self._notify("error", f"Could not create the report: {result.message()}")
            return result
        self._notify("success", "Report created.")
        self._reconcile()
        return result

    def build_create_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in fields.items():
            try:
                attr = resolve_field(key)
            except KeyError:
                continue
            if attr in ("id", "attachments"):
                continue
            if attr == "timestamp":
                out[attr] = parse_timestamp(value, self._tz)
                continue
            out[attr] = normalize_field_value(attr, value)
        out.setdefault("priority", DEFAULT_PRIORITY)
        out.setdefault("status", DEFAULT_STATUS)
        if out.get("timestamp") is None:
            out["timestamp"] = datetime.now(self._tz)
        return out

    def refresh(self) -> Ok | Err:
        """User-requested refetch; collapses any active edit session first."""
        if self._edit is not None:
            self._collapse("manual refresh")
        return self.service.refetch()

    # ------------------ Internal Helpers ------------------
    def _authorize(self, action: str) -> bool:
        if can_mutate(self.session):
            return True
        logger.info("Denied attempt to %s", action)
        self._notify("error", f"Permission denied: your role cannot {action}.")
        return False

    def _apply_update(self, report_id: str, patch: dict[str, Any]) -> Ok | Err:
        snapshot = self.store.apply_patch(report_id, patch)
        if snapshot is None:
            return Err(ErrorKind.NOT_FOUND, "Report not found")
        self.in_flight = PendingMutation("update", report_id, snapshot, dict(patch))
        try:
            result = self.api.patch_report(report_id, fields_to_payload(patch))
        finally:
            self.in_flight = None
        if not result.ok:
            self.store.restore(snapshot)
            logger.warning("Patch of %s failed (%s); rolled back", report_id, result.kind.value)
        else:
            logger.info("Patched %s fields %s", report_id, sorted(patch))
        return result

    def _reconcile(self) -> None:
        """Best-effort refetch after a confirmed mutation; failure keeps optimistic state."""
        result = self.service.refetch()
        if not result.ok:
            logger.warning("Reconciliation refetch failed: %s", result.detail)

    def _fail(self, edit: EditSession, error: Err) -> Err:
        edit.state = EditState.ERROR
        edit.last_error = error
        self._notify("error", f"Could not save changes: {error.message()}")
        self._cancel_error_timer()
        self._error_timer = self.scheduler.call_later(
            self.settings.error_reset_seconds, self._reset_after_error, name="edit-error"
        )
        return error

    def _reset_after_error(self) -> None:
        if self._edit is not None and self._edit.state is EditState.ERROR:
            logger.debug("Error shown for %s; returning to idle", self._edit.report_id)
            self._end_session()

    def _cancel_error_timer(self) -> None:
        if self._error_timer is not None:
            self._error_timer.cancel()
            self._error_timer = None

    def _collapse(self, reason: str) -> None:
        if self._edit is None:
            return
        logger.debug("Collapsing edit of %s: %s", self._edit.report_id, reason)
        self._end_session()

    def _end_session(self) -> None:
        self._autosave.cancel()
        self._cancel_error_timer()
        self._edit = None

    def _notify(self, level: str, message: str) -> None:
        self.notify(Notification(level, message))
