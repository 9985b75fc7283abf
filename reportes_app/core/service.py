"""ReportService: fetching, mapping, and periodic refresh of the Report Store."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime

import pytz

from .config import AppSettings
from .errors import Err, Ok
from .mappers import map_reports
from .reports_client import ReportsAPI
from .store import ReportStore
from .timers import Scheduler, Timer

ProgressCallback = Callable[[str, int | None, int | None], None]

logger = logging.getLogger(__name__)


class ReportService:
    """Owns the only code path allowed to replace the store wholesale.

    At most one refetch runs at a time. A refetch requested while another is in
    flight is coalesced: the running one loops once more when it finishes, so
    the store always ends on the freshest listing without double-firing.
    """

    def __init__(
        self,
        api: ReportsAPI,
        store: ReportStore,
        scheduler: Scheduler,
        settings: AppSettings | None = None,
    ):
        self.api = api
        self.store = store
        self.scheduler = scheduler
        self.settings = settings or AppSettings()
        self._tz = pytz.timezone(self.settings.timezone)
        self._lock = threading.Lock()
        self._in_flight = False
        self._pending = False
        self._poll_timer: Timer | None = None
        self.last_error: Err | None = None
        self.last_refreshed: datetime | None = None

    # ------------------ Fetch Methods ------------------
    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def refetch(self, *, progress: ProgressCallback | None = None) -> Ok | Err:
        """Replace the store with the remote listing.

        Returns ``Ok(count)`` after a replacement, ``Ok(None)`` when the request
        was coalesced into a refetch already running, or the ``Err`` of the
        last attempt.
        """
        with self._lock:
            if self._in_flight:
                self._pending = True
                logger.debug("Refetch already in flight; coalescing")
                return Ok(None)
            self._in_flight = True
        try:
            while True:
                result = self._fetch_once(progress)
                with self._lock:
                    if not self._pending:
                        self._in_flight = False
                        return result
                    self._pending = False
        except BaseException:
            with self._lock:
                self._in_flight = False
                self._pending = False
            raise

    def schedule_refetch(self, delay: float = 0.0) -> Timer:
        """Queue a background refetch on the scheduler."""
        return self.scheduler.call_later(delay, self.refetch, name="refetch")

    # ------------------ Polling ------------------
    def start_polling(self, *, immediately: bool = True) -> Timer:
        if self._poll_timer is not None and self._poll_timer.armed:
            return self._poll_timer
        self._poll_timer = self.scheduler.call_every(
            self.settings.poll_interval_seconds,
            self.refetch,
            first_delay=0.0 if immediately else None,
            name="poll",
        )
        return self._poll_timer

    def stop_polling(self) -> None:
        if self._poll_timer is not None:
            self._poll_timer.cancel()
            self._poll_timer = None

    # ------------------ Internal Helpers ------------------
    def _fetch_once(self, progress: ProgressCallback | None) -> Ok | Err:
        if progress:
            progress("Querying reports", None, None)
        result = self.api.list_reports()
        if not result.ok:
            self.last_error = result
            logger.warning("Refetch failed (%s): %s", result.kind.value, result.detail)
            return result
        now = datetime.now(self._tz)
        reports = map_reports(result.value, tz=self._tz, now=now)
        dropped = len(result.value) - len(reports)
        if dropped:
            logger.debug("Dropped %s raw reports without an id", dropped)
        self.store.replace_all(reports)
        self.last_error = None
        self.last_refreshed = now
        if progress:
            progress("Reports loaded", len(reports), len(reports))
        logger.info("Refetched %s reports", len(reports))
        return Ok(len(reports))
