"""Cooperative timers: injectable clocks, a scheduler, and trailing-edge debouncers.

Nothing here spawns threads. Timers only fire from ``Scheduler.run_pending`` (or
``Scheduler.advance`` with a ``ManualClock``), which the host loop calls; tests
drive virtual time deterministically instead of sleeping.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> float: ...


class MonotonicClock:
    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """Virtual clock for tests; time only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def set(self, value: float) -> None:
        if value < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = float(value)

    def advance(self, seconds: float) -> None:
        self.set(self._now + seconds)


class TimerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"


class Timer:
    __slots__ = ("callback", "deadline", "interval", "name", "seq", "state")

    def __init__(self, deadline: float, callback: Callable[[], Any], seq: int, *, interval=None, name=""):
        self.deadline = deadline
        self.callback = callback
        self.seq = seq
        self.interval = interval
        self.name = name
        self.state = TimerState.ARMED

    @property
    def armed(self) -> bool:
        return self.state is TimerState.ARMED

    def cancel(self) -> None:
        if self.state is TimerState.ARMED:
            self.state = TimerState.IDLE

    def __repr__(self) -> str:
        return f"Timer({self.name or self.seq!r}, deadline={self.deadline:.3f}, state={self.state.value})"


class Scheduler:
    def __init__(self, clock: Clock | None = None):
        self.clock = clock or MonotonicClock()
        self._timers: list[Timer] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self.clock.now()

    def call_later(self, delay: float, callback: Callable[[], Any], *, name: str = "") -> Timer:
        timer = Timer(self.now() + max(0.0, delay), callback, next(self._seq), name=name)
        self._timers.append(timer)
        return timer

    def call_every(
        self,
        interval: float,
        callback: Callable[[], Any],
        *,
        first_delay: float | None = None,
        name: str = "",
    ) -> Timer:
        if interval <= 0:
            raise ValueError("call_every() needs a positive interval")
        delay = interval if first_delay is None else first_delay
        timer = Timer(self.now() + max(0.0, delay), callback, next(self._seq), interval=interval, name=name)
        self._timers.append(timer)
        return timer

    def pending(self) -> list[Timer]:
        self._timers = [t for t in self._timers if t.armed]
        return sorted(self._timers, key=lambda t: (t.deadline, t.seq))

    def next_deadline(self) -> float | None:
        timers = self.pending()
        return timers[0].deadline if timers else None

    def _fire(self, timer: Timer) -> None:
        if timer.interval is not None:
            # Re-arm before running so the callback may cancel it.
            timer.deadline = timer.deadline + timer.interval
        else:
            timer.state = TimerState.FIRED
        try:
            timer.callback()
        except Exception:
            logger.exception("Timer %r callback failed", timer)

    def run_pending(self) -> int:
        """Fire every timer whose deadline has passed, in deadline order."""
        fired = 0
        while True:
            now = self.now()
            due = [t for t in self.pending() if t.deadline <= now]
            if not due:
                return fired
            self._fire(due[0])
            fired += 1

    def advance(self, seconds: float) -> int:
        """Move a ManualClock forward, firing timers at their own deadlines."""
        if not isinstance(self.clock, ManualClock):
            raise TypeError("advance() requires a ManualClock")
        target = self.clock.now() + seconds
        fired = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            self.clock.set(max(deadline, self.clock.now()))
            fired += self.run_pending()
        self.clock.set(target)
        fired += self.run_pending()
        return fired

    def run(self, stop: threading.Event, tick: float = 0.1) -> None:
        """Drive timers with a real clock until ``stop`` is set."""
        while not stop.is_set():
            self.run_pending()
            stop.wait(tick)


class Debouncer:
    """Trailing-edge debounce with an explicit Idle/Armed/Fired state.

    Each ``trigger`` re-arms the timer; the callback only runs once the input
    has been quiet for ``delay`` seconds, with the arguments of the latest
    trigger. Each debouncer owns its own timer, so cancelling one never
    affects another.
    """

    def __init__(self, scheduler: Scheduler, delay: float, callback: Callable[..., Any], *, name: str = ""):
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self.name = name
        self._timer: Timer | None = None
        self._args: tuple = ()
        self._kwargs: dict[str, Any] = {}
        self._state = TimerState.IDLE

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def armed(self) -> bool:
        return self._state is TimerState.ARMED

    def trigger(self, *args, **kwargs) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._args = args
        self._kwargs = kwargs
        self._state = TimerState.ARMED
        self._timer = self.scheduler.call_later(self.delay, self._fire, name=self.name)

    def cancel(self) -> bool:
        """Disarm without firing; returns True when a trigger was pending."""
        was_armed = self.armed
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._args = ()
        self._kwargs = {}
        self._state = TimerState.IDLE
        if was_armed:
            logger.debug("Debouncer %s cancelled", self.name)
        return was_armed

    def _fire(self) -> None:
        args, kwargs = self._args, self._kwargs
        self._timer = None
        self._args = ()
        self._kwargs = {}
        self._state = TimerState.FIRED
        self.callback(*args, **kwargs)
