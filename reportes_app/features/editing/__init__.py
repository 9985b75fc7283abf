"""Inline edit coordination: optimistic mutations with debounced autosave."""

from reportes_app.features.editing.coordinator import MutationCoordinator, validate_new_report
from reportes_app.features.editing.diff import compute_patch
from reportes_app.features.editing.session import EditSession, EditState, PendingMutation

__all__ = [
    "EditSession",
    "EditState",
    "MutationCoordinator",
    "PendingMutation",
    "compute_patch",
    "validate_new_report",
]
