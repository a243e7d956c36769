# src/ivy_planner/planner/models.py

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum

MAX_ACTIVE_TASKS = 6  # Ivy Lee Method limit
DEFAULT_TASK_DURATION = 3600.0  # seconds
REVIEW_AFTER_DAYS = 14

TAG_QUEUE_OVERFLOW = "queue_overflow"
TAG_DEMOTED = "demoted"
TAG_ROLLOVER = "rollover"


class InsightType(StrEnum):
    PATTERN = "pattern"
    TIME_ESTIMATION = "time_estimation"
    ENERGY = "energy"
    STREAK = "streak"
    STRUGGLE = "struggle"
    WORKFLOW = "workflow"

    @property
    def actionable(self) -> bool:
        # Streak messages are motivation only.
        return self is not InsightType.STREAK

    @classmethod
    def from_db(cls, raw: str | None) -> InsightType:
        try:
            return cls(raw or "")
        except ValueError:
            return cls.PATTERN


class EnergyLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_db(cls, raw: str | None) -> EnergyLevel:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.MEDIUM

    @property
    def description(self) -> str:
        if self is EnergyLevel.HIGH:
            return "High Energy - Ready to tackle challenging tasks"
        if self is EnergyLevel.LOW:
            return "Low Energy - Focus on lighter, easier tasks"
        return "Medium Energy - Good for most tasks"


@dataclass(slots=True)
class TaskRecord:
    """A ranked unit of work owned by exactly one DayBucket."""

    id: str
    description: str
    rank: int
    reasoning: str = ""
    created_at: datetime | None = None
    completed: bool = False
    completed_at: datetime | None = None
    started_at: datetime | None = None
    estimated_duration: float = DEFAULT_TASK_DURATION
    actual_duration: float | None = None
    rolled_over_from: date | None = None

    @property
    def active(self) -> bool:
        return not self.completed

    def mark_started(self, at: datetime) -> None:
        if self.completed:
            return
        self.started_at = at

    def mark_completed(self, at: datetime) -> bool:
        """
        Transition to completed. Returns False if already completed
        (completed_at is only ever set once).
        """
        if self.completed:
            return False
        self.completed = True
        self.completed_at = at
        if self.started_at is not None:
            self.actual_duration = max(0.0, (at - self.started_at).total_seconds())
        return True


@dataclass(slots=True)
class BacklogRecord:
    """Unranked, possibly indefinitely deferred task ("someday/maybe")."""

    id: str
    description: str
    date_added: datetime
    tags: set[str] = field(default_factory=set)
    source_context: str = "manual"
    last_reviewed: datetime | None = None

    def age_in_days(self, now: datetime) -> int:
        return max(0, (now - self.date_added).days)

    def needs_review(self, now: datetime, *, after_days: int = REVIEW_AFTER_DAYS) -> bool:
        if self.last_reviewed is None:
            return self.age_in_days(now) > after_days
        return (now - self.last_reviewed).days > after_days

    def mark_reviewed(self, at: datetime) -> None:
        self.last_reviewed = at


@dataclass(slots=True)
class Insight:
    id: str
    text: str
    type: InsightType
    confidence: float
    generated_at: datetime
    acknowledged: bool = False

    @property
    def actionable(self) -> bool:
        return self.type.actionable

    @property
    def should_notify(self) -> bool:
        return self.confidence >= 0.8 and self.actionable

    def acknowledge(self) -> None:
        self.acknowledged = True

    def same_as(self, other: Insight) -> bool:
        return self.text == other.text and self.type == other.type


@dataclass(slots=True)
class StatisticsSnapshot:
    """
    Learning state attached to a day.

    Values are cumulative: a new day's snapshot starts as a copy of the
    previous one (see StatisticsStore.snapshot_for).
    """

    completion_rate_by_category: dict[str, float] = field(default_factory=dict)
    struggling_counts: dict[str, int] = field(default_factory=dict)
    duration_by_category: dict[str, float] = field(default_factory=dict)
    estimation_accuracy: float = 0.7
    energy_accuracy: dict[str, float] = field(default_factory=dict)
    optimal_time_by_category: dict[str, float] = field(default_factory=dict)

    planning_streak: int = 0
    execution_streak: int = 0
    completion_streak: int = 0
    longest_streak: int = 0
    # Counters as they were before the first update_streaks() of this day.
    streak_baseline: tuple[int, int, int] | None = None

    insights: list[Insight] = field(default_factory=list)

    @property
    def max_streak(self) -> int:
        return max(self.planning_streak, self.execution_streak, self.completion_streak)

    def carry_forward(self) -> StatisticsSnapshot:
        seeded = copy.deepcopy(self)
        seeded.streak_baseline = None
        return seeded


@dataclass(slots=True)
class DayBucket:
    """
    One calendar day: its ranked queue (active first, then completed),
    its backlog and its statistics.
    """

    date: date
    tasks: list[TaskRecord] = field(default_factory=list)
    backlog: list[BacklogRecord] = field(default_factory=list)
    statistics: StatisticsSnapshot | None = None

    highlight: str = ""
    intention: str = ""
    gratitude: str = ""
    current_focus: str = ""
    morning_energy: EnergyLevel = EnergyLevel.MEDIUM
    tomorrow_energy: EnergyLevel | None = None

    rollover_source: date | None = None

    @property
    def active_queue(self) -> list[TaskRecord]:
        return sorted((t for t in self.tasks if not t.completed), key=lambda t: t.rank)

    @property
    def completed_tasks(self) -> list[TaskRecord]:
        return [t for t in self.tasks if t.completed]

    def find_task(self, task_id: str) -> TaskRecord | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def find_backlog(self, backlog_id: str) -> BacklogRecord | None:
        for b in self.backlog:
            if b.id == backlog_id:
                return b
        return None

    # ---- streak qualification ----

    def has_planning_activity(self) -> bool:
        return bool(self.highlight.strip() or self.intention.strip() or self.tasks)

    def has_execution_activity(self) -> bool:
        return bool(
            self.gratitude.strip()
            or self.current_focus.strip()
            or any(t.completed for t in self.tasks)
        )

    def has_completion_activity(self) -> bool:
        return any(t.completed for t in self.tasks)

    def has_any_activity(self) -> bool:
        return (
            self.has_planning_activity()
            or self.has_execution_activity()
            or self.has_completion_activity()
        )


# ---- operation results ----


@dataclass(slots=True, frozen=True)
class InsertResult:
    task: TaskRecord
    evicted: BacklogRecord | None = None


@dataclass(slots=True, frozen=True)
class PromoteResult:
    task: TaskRecord | None
    demoted: BacklogRecord | None = None

    @property
    def success(self) -> bool:
        return self.task is not None


@dataclass(slots=True, frozen=True)
class RolloverResult:
    rolled_over: list[TaskRecord]
    moved_to_backlog: list[BacklogRecord]
    total_incomplete: int

    @property
    def summary(self) -> str:
        rolled = len(self.rolled_over)
        moved = len(self.moved_to_backlog)
        if self.total_incomplete == 0:
            return "Perfect! All tasks completed."
        if moved == 0:
            return f"{rolled} task(s) rolled over to today."
        return f"{rolled} task(s) rolled over, {moved} moved to backlog."


@dataclass(slots=True, frozen=True)
class QueueStatus:
    active_count: int
    completed_count: int
    completion_rate: float
    available_slots: int

    @property
    def has_open_slots(self) -> bool:
        return self.available_slots > 0

    @property
    def status_text(self) -> str:
        if self.active_count == 0:
            return "Queue is empty - add your first task!"
        if self.active_count <= 2:
            return "Light load - perfect for deep work"
        if self.active_count <= 4:
            return "Balanced queue - good focus needed"
        return "Full queue - maximum capacity"


@dataclass(slots=True, frozen=True)
class EnergyAllocation:
    energy: EnergyLevel
    recommended: list[TaskRecord]
    suggestion: str
