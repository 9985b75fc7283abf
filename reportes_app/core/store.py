"""ReportStore: the single in-memory source of truth for all derived views."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import pandas as pd
import pytz

from .config import TIMEZONE
from .mappers import reports_to_dataframe
from .models import Report

logger = logging.getLogger(__name__)

StoreListener = Callable[["ReportStore"], None]


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Pre-mutation copy of one entity and its position, for rollback."""

    report: Report
    index: int


class ReportStore:
    """Holds at most one Report per id, in the order the remote listed them.

    Mutation entry points are deliberately few: ``replace_all`` (refetch),
    ``apply_patch`` / ``remove`` (optimistic changes) and ``restore`` (rollback).
    """

    def __init__(self, reports: Iterable[Report] | None = None, tz=None):
        self._tz = tz or pytz.timezone(TIMEZONE)
        self._reports: dict[str, Report] = {}
        self._listeners: list[StoreListener] = []
        self._version = 0
        self._frame: pd.DataFrame | None = None
        if reports:
            self._load(reports)

    # ------------------ Reads ------------------
    def __len__(self) -> int:
        return len(self._reports)

    def __contains__(self, report_id: object) -> bool:
        return report_id in self._reports

    @property
    def version(self) -> int:
        return self._version

    def ids(self) -> list[str]:
        return list(self._reports)

    def get(self, report_id: str) -> Report | None:
        report = self._reports.get(report_id)
        return report.copy() if report is not None else None

    def all(self) -> list[Report]:
        return [r.copy() for r in self._reports.values()]

    def to_dataframe(self) -> pd.DataFrame:
        if self._frame is None:
            self._frame = reports_to_dataframe(self._reports.values(), tz=self._tz)
        return self._frame.copy()

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------ Writes ------------------
    def replace_all(self, reports: Iterable[Report]) -> None:
        """Wholesale replacement from a refetch; duplicate ids keep the last one."""
        self._reports = {}
        self._load(reports)
        self._changed("replace_all")

    def apply_patch(self, report_id: str, fields: dict[str, Any]) -> Snapshot | None:
        """Merge ``fields`` into an entity; returns the pre-patch snapshot."""
        snapshot = self.snapshot(report_id)
        if snapshot is None:
            return None
        fields = {k: v for k, v in fields.items() if k != "id"}
        self._reports[report_id] = snapshot.report.copy(**fields)
        self._changed("apply_patch")
        return snapshot

    def remove(self, report_id: str) -> Snapshot | None:
        snapshot = self.snapshot(report_id)
        if snapshot is None:
            return None
        del self._reports[report_id]
        self._changed("remove")
        return snapshot

    def restore(self, snapshot: Snapshot) -> None:
        """Put a snapshot back at its original position (replacing any newer copy)."""
        items = [(k, v) for k, v in self._reports.items() if k != snapshot.report.id]
        index = min(max(snapshot.index, 0), len(items))
        items.insert(index, (snapshot.report.id, snapshot.report.copy()))
        self._reports = dict(items)
        self._changed("restore")

    def snapshot(self, report_id: str) -> Snapshot | None:
        for index, (key, report) in enumerate(self._reports.items()):
            if key == report_id:
                return Snapshot(report.copy(), index)
        return None

    # ------------------ Internal Helpers ------------------
    def _load(self, reports: Iterable[Report]) -> None:
        for report in reports:
            self._reports[report.id] = report.copy()

    def _changed(self, reason: str) -> None:
        self._version += 1
        self._frame = None
        logger.debug("Store %s -> version %s (%s reports)", reason, self._version, len(self._reports))
        for listener in list(self._listeners):
            listener(self)
