# src/ivy_planner/core/locks.py

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from datetime import date


class DayLocks:
    """
    One lock per calendar day.

    Queue mutations read-then-write a day's task list, so they are serialized
    per day. Multi-day operations (rollover) take every lock they need in
    ascending date order.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[date, threading.Lock] = {}

    def for_day(self, day: date) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(day)
            if lock is None:
                lock = threading.Lock()
                self._locks[day] = lock
            return lock

    @contextmanager
    def hold(self, *days: date) -> Iterator[None]:
        with ExitStack() as stack:
            for d in sorted(set(days)):
                stack.enter_context(self.for_day(d))
            yield
