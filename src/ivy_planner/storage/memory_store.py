# src/ivy_planner/storage/memory_store.py

from __future__ import annotations

import copy
import logging
from datetime import date

from ..planner.models import DayBucket, StatisticsSnapshot

logger = logging.getLogger(__name__)


class InMemoryDayStore:
    """
    Process-local DayRepo.

    Saved buckets are deep-copied so that callers keep working on their own
    objects and only save_day() changes what later loads see.
    """

    def __init__(self) -> None:
        self._days: dict[date, DayBucket] = {}

    def load_day(self, day: date) -> DayBucket:
        stored = self._days.get(day)
        if stored is None:
            bucket = DayBucket(date=day)
            self._days[day] = copy.deepcopy(bucket)
            logger.debug("Created day %s", day)
            return bucket
        return copy.deepcopy(stored)

    def find_day(self, day: date) -> DayBucket | None:
        stored = self._days.get(day)
        return copy.deepcopy(stored) if stored is not None else None

    def save_day(self, bucket: DayBucket) -> None:
        self._days[bucket.date] = copy.deepcopy(bucket)

    def latest_day_before(self, day: date) -> DayBucket | None:
        earlier = [d for d in self._days if d < day]
        if not earlier:
            return None
        return copy.deepcopy(self._days[max(earlier)])

    def latest_statistics_before(self, day: date) -> StatisticsSnapshot | None:
        for d in sorted((d for d in self._days if d < day), reverse=True):
            stats = self._days[d].statistics
            if stats is not None:
                return copy.deepcopy(stats)
        return None

    def count_days(self) -> int:
        return len(self._days)
