"""Edit session state for the single report currently being edited inline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from reportes_app.core.errors import Err
from reportes_app.core.models import Report
from reportes_app.core.store import Snapshot


class EditState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    AUTOSAVE_PENDING = "autosave_pending"
    SAVING = "saving"
    ERROR = "error"


@dataclass(slots=True)
class EditSession:
    """Local edits for one report.

    Only touched fields are kept. The visible draft is always the freshest
    store baseline with these edits laid over it, so a refetch that lands
    mid-session updates untouched fields but never the user's own values.
    """

    report_id: str
    opened_from: Report
    state: EditState = EditState.EDITING
    edits: dict[str, Any] = field(default_factory=dict)
    last_error: Err | None = None

    def set_field(self, attr: str, value: Any) -> None:
        self.edits[attr] = value

    def draft(self, baseline: Report | None) -> Report:
        base = baseline if baseline is not None else self.opened_from
        return base.copy(**self.edits)


@dataclass(frozen=True, slots=True)
class PendingMutation:
    """An in-flight remote call with the snapshot needed to undo its optimistic effect."""

    kind: str  # "update" | "delete"
    report_id: str
    snapshot: Snapshot
    fields: dict[str, Any] = field(default_factory=dict)
