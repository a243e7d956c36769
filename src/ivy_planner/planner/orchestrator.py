# src/ivy_planner/planner/orchestrator.py

"""
Day orchestrator.

Thin coordinating layer used by the CLI: every call
- opens today first if it was not opened yet (rollover after midnight),
- takes the day lock(s),
- loads the bucket from the DayRepo,
- runs queue/insight operations and refreshes the day's streaks,
- saves the bucket back.

PersistenceError from the repo propagates unchanged; nothing is retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta
from typing import TypeVar

from ..core.errors import TaskNotFoundError
from ..core.locks import DayLocks
from ..core.ports import Clock, DayRepo, InsightSink
from ..insights.engine import AnalyticsReport, InsightEngine
from .backlog import mark_all_reviewed, needing_review
from .models import (
    REVIEW_AFTER_DAYS,
    BacklogRecord,
    DayBucket,
    EnergyAllocation,
    EnergyLevel,
    Insight,
    InsertResult,
    PromoteResult,
    QueueStatus,
    RolloverResult,
    TaskRecord,
)
from .queue_manager import QueueManager

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DayOrchestrator:
    def __init__(
        self,
        repo: DayRepo,
        queue: QueueManager,
        engine: InsightEngine,
        clock: Clock,
        *,
        locks: DayLocks | None = None,
        sink: InsightSink | None = None,
    ) -> None:
        self._repo = repo
        self._queue = queue
        self._engine = engine
        self._clock = clock
        self._locks = locks or DayLocks()
        self._sink = sink

    @property
    def queue(self) -> QueueManager:
        return self._queue

    @property
    def engine(self) -> InsightEngine:
        return self._engine

    def _day(self, d: date | None) -> date:
        return d if d is not None else self._clock.today()

    def _ensure_open(self, day: date) -> None:
        # Only the current day is opened implicitly; past days are edited as stored.
        if day == self._clock.today():
            self.open_day(day)

    def _mutate(self, d: date | None, fn: Callable[[DayBucket], T]) -> T:
        day = self._day(d)
        self._ensure_open(day)
        with self._locks.hold(day):
            bucket = self._repo.load_day(day)
            result = fn(bucket)
            # Idempotent per day: every active day closes with current counters.
            self._engine.update_streaks(bucket)
            self._repo.save_day(bucket)
            return result

    # ---- day transition ----

    def open_day(self, d: date | None = None) -> tuple[DayBucket, RolloverResult | None]:
        """
        Load the day; on its first open, roll incomplete work over from the
        latest earlier day that exists and carry that day's backlog along.
        """
        day = self._day(d)
        with self._locks.hold(day):
            bucket = self._repo.load_day(day)
            if bucket.rollover_source is not None:
                return bucket, None
            source = self._repo.latest_day_before(day)

        if source is None:
            return bucket, None

        with self._locks.hold(source.date, day):
            bucket = self._repo.load_day(day)
            if bucket.rollover_source is not None:
                return bucket, None
            source = self._repo.find_day(source.date) or source
            result = self._queue.rollover(source, bucket)
            # The backlog is unranked "someday" work: it follows the user to the new day.
            carried = [b for b in source.backlog if bucket.find_backlog(b.id) is None]
            bucket.backlog = carried + bucket.backlog
            bucket.rollover_source = source.date
            self._repo.save_day(bucket)
            logger.info("Day %s opened: %s", day, result.summary)
            return bucket, result

    def view(self, d: date | None = None) -> DayBucket:
        day = self._day(d)
        self._ensure_open(day)
        with self._locks.hold(day):
            return self._repo.load_day(day)

    # ---- queue ----

    def add_task(
        self,
        description: str,
        reasoning: str = "",
        preferred_rank: int | None = None,
        *,
        d: date | None = None,
    ) -> InsertResult:
        def op(bucket: DayBucket) -> InsertResult:
            result = self._queue.insert(bucket, description, reasoning, preferred_rank)
            result.task.estimated_duration = self._engine.predict_duration(description, bucket)
            return result

        return self._mutate(d, op)

    def start_task(self, task_id: str, *, d: date | None = None) -> TaskRecord:
        return self._mutate(d, lambda b: self._queue.start(b, task_id, self._clock.now()))

    def complete_task(self, task_id: str, *, d: date | None = None) -> TaskRecord:
        def op(bucket: DayBucket) -> TaskRecord:
            existing = bucket.find_task(task_id)
            was_completed = existing is not None and existing.completed
            at = self._clock.now()
            task = self._queue.complete(bucket, task_id, at)
            if not was_completed:
                self._engine.record_completion(bucket, task, at)
                self._engine.update_estimation_accuracy(bucket, task)
            return task

        return self._mutate(d, op)

    def update_rank(self, task_id: str, new_rank: int, *, d: date | None = None) -> bool:
        return self._mutate(d, lambda b: self._queue.update_rank(b, task_id, new_rank))

    def demote(self, task_id: str, *, d: date | None = None) -> BacklogRecord:
        return self._mutate(d, lambda b: self._queue.demote(b, task_id))

    def promote(
        self,
        backlog_id: str,
        target_rank: int,
        reasoning: str = "",
        *,
        d: date | None = None,
    ) -> PromoteResult:
        return self._mutate(d, lambda b: self._queue.promote(b, backlog_id, target_rank, reasoning))

    def delete_backlog(self, backlog_id: str, *, d: date | None = None) -> BacklogRecord:
        return self._mutate(d, lambda b: self._queue.delete_backlog(b, backlog_id))

    def review_backlog(self, backlog_id: str, *, d: date | None = None) -> BacklogRecord:
        def op(bucket: DayBucket) -> BacklogRecord:
            record = bucket.find_backlog(backlog_id)
            if record is None:
                raise TaskNotFoundError("backlog task", backlog_id)
            record.mark_reviewed(self._clock.now())
            return record

        return self._mutate(d, op)

    def review_all_backlog(self, after_days: int = REVIEW_AFTER_DAYS, *, d: date | None = None) -> int:
        """Marks every backlog item that is due for review; returns how many."""

        def op(bucket: DayBucket) -> int:
            now = self._clock.now()
            return mark_all_reviewed(needing_review(bucket.backlog, now, after_days=after_days), now)

        return self._mutate(d, op)

    def clear_completed(self, *, d: date | None = None) -> int:
        return self._mutate(d, self._queue.clear_completed)

    def queue_status(self, d: date | None = None) -> QueueStatus:
        return self._queue.queue_status(self.view(d))

    def energy_allocation(self, energy: EnergyLevel | None = None, *, d: date | None = None) -> EnergyAllocation:
        bucket = self.view(d)
        return self._queue.suggest_energy_allocation(bucket, energy or bucket.morning_energy)

    # ---- journal ----

    def predict_tomorrow_energy(self, energy: EnergyLevel, *, d: date | None = None) -> None:
        def op(bucket: DayBucket) -> None:
            bucket.tomorrow_energy = energy

        self._mutate(d, op)

    def set_morning_energy(self, energy: EnergyLevel, *, d: date | None = None) -> float | None:
        """
        Record today's energy check. If yesterday predicted today's energy,
        returns the updated accuracy for that (predicted, actual) pair.
        """
        day = self._day(d)
        yesterday = self._repo.find_day(day - timedelta(days=1))
        predicted = yesterday.tomorrow_energy if yesterday is not None else None

        def op(bucket: DayBucket) -> float | None:
            bucket.morning_energy = energy
            if predicted is None:
                return None
            return self._engine.update_energy_accuracy(bucket, predicted, energy)

        return self._mutate(day, op)

    def update_journal(
        self,
        *,
        highlight: str | None = None,
        intention: str | None = None,
        gratitude: str | None = None,
        d: date | None = None,
    ) -> DayBucket:
        def op(bucket: DayBucket) -> DayBucket:
            if highlight is not None:
                bucket.highlight = highlight.strip()
            if intention is not None:
                bucket.intention = intention.strip()
            if gratitude is not None:
                bucket.gratitude = gratitude.strip()
            return bucket

        return self._mutate(d, op)

    # ---- insights ----

    def refresh_insights(self, *, d: date | None = None) -> list[Insight]:
        """Analyze -> streaks -> generate; forwards notifiable insights to the sink."""

        fresh: list[Insight] = []

        def op(bucket: DayBucket) -> list[Insight]:
            self._engine.analyze_completion_patterns(bucket)
            self._engine.update_streaks(bucket)
            produced = self._engine.generate_insights(bucket)
            # Duplicates are not stored, so only new insights keep their id in the snapshot.
            stored = {i.id for i in self._engine.snapshot(bucket).insights}
            fresh.extend(i for i in produced if i.id in stored)
            return produced

        produced = self._mutate(d, op)

        if self._sink is not None:
            for insight in fresh:
                if insight.should_notify:
                    self._sink.notify(insight)
        return produced

    def recent_insights(self, limit: int = 3, *, d: date | None = None) -> list[Insight]:
        return self._mutate(d, lambda b: self._engine.get_recent_insights(b, limit))

    def acknowledge_insight(self, insight_id: str, *, d: date | None = None) -> bool:
        def op(bucket: DayBucket) -> bool:
            insight = self._engine.find_insight(bucket, insight_id)
            if insight is None:
                return False
            self._engine.acknowledge(insight)
            return True

        return self._mutate(d, op)

    def predict_duration(self, description: str, *, d: date | None = None) -> float:
        return self._mutate(d, lambda b: self._engine.predict_duration(description, b))

    def suggest_time(self, description: str, *, d: date | None = None) -> datetime | None:
        return self._mutate(d, lambda b: self._engine.suggest_optimal_time(description, b))

    def report(self, *, d: date | None = None) -> AnalyticsReport:
        return self._mutate(d, self._engine.analytics_report)
