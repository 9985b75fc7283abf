"""Domain data models for reports and user-facing notifications."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime


@dataclass(slots=True)
class Report:
    id: str
    departments: list[str]
    description: str
    problem_type: str
    reported_by: str
    priority: str
    status: str
    timestamp: datetime
    assignee: str | None = None
    attachments: list[str] = field(default_factory=list)

    def copy(self, **changes) -> Report:
        """Return an independent copy; list fields are never shared."""
        changes.setdefault("departments", list(self.departments))
        changes.setdefault("attachments", list(self.attachments))
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class Notification:
    level: str  # "success" | "info" | "error"
    message: str
