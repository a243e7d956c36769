# src/ivy_planner/insights/engine.py

"""
Insight engine.

Per day it runs Analyze -> Learn -> Generate -> Acknowledge, any number of
times and in any order. Every call works on the day's StatisticsSnapshot,
created on demand by the StatisticsStore.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from ..core.ports import Clock, DayRepo, IdGenerator
from ..planner.classifier import classify
from ..planner.models import (
    DEFAULT_TASK_DURATION,
    DayBucket,
    EnergyLevel,
    Insight,
    StatisticsSnapshot,
    TaskRecord,
)
from ..planner.queue_manager import QueueManager
from .generators import run_passes
from .stats import StatisticsStore

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AnalyticsReport:
    completion_rate: float
    estimation_accuracy: float
    planning_streak: int
    execution_streak: int
    completion_streak: int
    longest_streak: int
    struggling_count: int
    top_categories: list[tuple[str, float]] = field(default_factory=list)
    recent_insights: list[Insight] = field(default_factory=list)
    energy_accuracy: float = 0.0

    @property
    def summary(self) -> str:
        return (
            "Analytics report\n"
            f"  Completion rate: {int(self.completion_rate * 100)}%\n"
            f"  Time estimation: {int(self.estimation_accuracy * 100)}% accurate\n"
            f"  Longest streak: {self.longest_streak} days\n"
            f"  Current streaks: planning {self.planning_streak} | "
            f"execution {self.execution_streak} | tasks {self.completion_streak}"
        )


class InsightEngine:
    def __init__(
        self,
        stats: StatisticsStore,
        clock: Clock,
        ids: IdGenerator,
        *,
        history: DayRepo | None = None,
        default_duration: float = DEFAULT_TASK_DURATION,
    ) -> None:
        self._stats = stats
        self._clock = clock
        self._ids = ids
        self._history = history
        self._default_duration = float(default_duration)

    def snapshot(self, day: DayBucket) -> StatisticsSnapshot:
        return self._stats.snapshot_for(day)

    # ---- analyze ----

    def analyze_completion_patterns(self, day: DayBucket) -> None:
        snap = self.snapshot(day)
        total = len(day.tasks)

        for task in day.completed_tasks:
            self._stats.record_completion_rate(snap, classify(task.description), total)

        for task in day.active_queue:
            if task.rank >= 4:
                self._stats.record_struggle(snap, classify(task.description))

    # ---- learn ----

    def record_completion(self, day: DayBucket, task: TaskRecord, completed_at: datetime) -> None:
        snap = self.snapshot(day)
        category = classify(task.description)

        if task.actual_duration is None and task.started_at is not None:
            task.actual_duration = max(0.0, (completed_at - task.started_at).total_seconds())

        if task.actual_duration is not None and task.actual_duration > 0:
            self._stats.learn_duration(
                snap,
                category,
                task.actual_duration,
                seed=task.estimated_duration,
            )

        self._stats.record_optimal_time(snap, category, completed_at)

    def update_estimation_accuracy(self, day: DayBucket, task: TaskRecord) -> None:
        if task.actual_duration is None or task.actual_duration <= 0:
            return
        snap = self.snapshot(day)
        acc = self._stats.record_estimation(snap, task.estimated_duration, task.actual_duration)
        logger.debug("Estimation accuracy now %.3f (task id=%s)", acc, task.id)

    def update_energy_accuracy(self, day: DayBucket, predicted: EnergyLevel, actual: EnergyLevel) -> float:
        return self._stats.record_energy(self.snapshot(day), predicted, actual)

    def update_streaks(self, day: DayBucket) -> None:
        snap = self.snapshot(day)

        if snap.streak_baseline is None:
            snap.streak_baseline = (snap.planning_streak, snap.execution_streak, snap.completion_streak)
        base_planning, base_execution, base_completion = snap.streak_baseline

        yesterday_active = self._had_activity(day.date - timedelta(days=1))

        def step(base: int, qualifies: bool) -> int:
            if not qualifies:
                return 0
            return base + 1 if yesterday_active else 1

        snap.planning_streak = step(base_planning, day.has_planning_activity())
        snap.execution_streak = step(base_execution, day.has_execution_activity())
        snap.completion_streak = step(base_completion, day.has_completion_activity())
        snap.longest_streak = max(snap.longest_streak, snap.max_streak)

        logger.debug(
            "Streaks %s: planning=%d execution=%d completion=%d longest=%d",
            day.date,
            snap.planning_streak,
            snap.execution_streak,
            snap.completion_streak,
            snap.longest_streak,
        )

    def _had_activity(self, d: date) -> bool:
        if self._history is None:
            return False
        previous = self._history.find_day(d)
        return previous is not None and previous.has_any_activity()

    # ---- predict ----

    def predict_duration(self, description: str, day: DayBucket) -> float:
        snap = self.snapshot(day)
        category = classify(description)

        learned = snap.duration_by_category.get(category)
        if learned is not None:
            return learned * snap.estimation_accuracy

        text = description.lower()
        similar = [
            v for key, v in snap.duration_by_category.items() if key in text or category in key
        ]
        if similar:
            return sum(similar) / len(similar)

        return self._default_duration

    def suggest_optimal_time(self, description: str, day: DayBucket) -> datetime | None:
        snap = self.snapshot(day)
        offset = snap.optimal_time_by_category.get(classify(description))
        if offset is None:
            return None
        return self._clock.start_of_day(day.date) + timedelta(seconds=offset)

    # ---- generate ----

    def generate_insights(self, day: DayBucket) -> list[Insight]:
        """
        Run every generator pass. All produced insights are returned; only the
        ones not already stored (same text and type) are appended.
        """
        snap = self.snapshot(day)
        now = self._clock.now()

        produced: list[Insight] = []
        added = 0
        for draft in run_passes(snap):
            insight = Insight(
                id=self._ids.new_id(),
                text=draft.text,
                type=draft.type,
                confidence=draft.confidence,
                generated_at=now,
            )
            produced.append(insight)
            if not any(existing.same_as(insight) for existing in snap.insights):
                snap.insights.append(insight)
                added += 1

        if added:
            logger.info("Generated %d new insight(s) for %s", added, day.date)
        return produced

    def get_recent_insights(self, day: DayBucket, limit: int = 3) -> list[Insight]:
        snap = self.snapshot(day)
        pending = [i for i in snap.insights if not i.acknowledged]
        pending.sort(key=lambda i: i.confidence, reverse=True)
        return pending[: max(0, limit)]

    def find_insight(self, day: DayBucket, insight_id: str) -> Insight | None:
        for i in self.snapshot(day).insights:
            if i.id == insight_id:
                return i
        return None

    @staticmethod
    def acknowledge(insight: Insight) -> None:
        insight.acknowledge()

    # ---- reporting ----

    def analytics_report(self, day: DayBucket, *, insights_limit: int = 3) -> AnalyticsReport:
        snap = self.snapshot(day)
        return AnalyticsReport(
            completion_rate=QueueManager.completion_rate(day),
            estimation_accuracy=snap.estimation_accuracy,
            planning_streak=snap.planning_streak,
            execution_streak=snap.execution_streak,
            completion_streak=snap.completion_streak,
            longest_streak=snap.longest_streak,
            struggling_count=len(QueueManager.struggling_tasks(day)),
            top_categories=self._stats.top_categories(snap),
            recent_insights=self.get_recent_insights(day, insights_limit),
            energy_accuracy=self._stats.average_energy_accuracy(snap),
        )
