# src/ivy_planner/core/ports.py

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage/clock/notification swappable and makes testing easier.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..planner.models import DayBucket, Insight, StatisticsSnapshot


class Clock(Protocol):
    """Supplies "now" and local day boundaries; the core never reads a global clock."""

    def now(self) -> datetime: ...
    def today(self) -> date: ...
    def start_of_day(self, day: date) -> datetime: ...


class IdGenerator(Protocol):
    def new_id(self) -> str: ...


class DayRepo(Protocol):
    """
    Persistence collaborator.

    load_day creates the bucket if absent; save_day is last-write-wins.
    Implementations raise PersistenceError on storage failures.
    """

    def load_day(self, day: date) -> DayBucket: ...
    def find_day(self, day: date) -> DayBucket | None: ...
    def save_day(self, bucket: DayBucket) -> None: ...
    def latest_day_before(self, day: date) -> DayBucket | None: ...
    def latest_statistics_before(self, day: date) -> StatisticsSnapshot | None: ...


class InsightSink(Protocol):
    """Notification side: receives insights worth alerting the user about."""

    def notify(self, insight: Insight) -> None: ...
