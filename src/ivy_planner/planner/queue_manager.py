# src/ivy_planner/planner/queue_manager.py

"""
Ivy Lee queue manager.

Keeps the active queue of a DayBucket at ranks 1..N (N <= 6) with no gaps:
- capacity is enforced by evicting the highest-ranked active task to the backlog,
  never by rejecting a call;
- out-of-range ranks are ignored;
- tasks are addressed by id, a stale id raises TaskNotFoundError.

Persisting the mutated day is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from ..core.errors import TaskNotFoundError
from ..core.ports import Clock, IdGenerator
from .models import (
    DEFAULT_TASK_DURATION,
    MAX_ACTIVE_TASKS,
    TAG_DEMOTED,
    TAG_QUEUE_OVERFLOW,
    TAG_ROLLOVER,
    BacklogRecord,
    DayBucket,
    EnergyAllocation,
    EnergyLevel,
    InsertResult,
    PromoteResult,
    QueueStatus,
    RolloverResult,
    TaskRecord,
)

logger = logging.getLogger(__name__)


def _valid_rank(rank: int | None) -> bool:
    return rank is not None and 1 <= rank <= MAX_ACTIVE_TASKS


class QueueManager:
    def __init__(
        self,
        clock: Clock,
        ids: IdGenerator,
        *,
        default_duration: float = DEFAULT_TASK_DURATION,
    ) -> None:
        self._clock = clock
        self._ids = ids
        self._default_duration = float(default_duration)

    # ---- ordering ----

    @staticmethod
    def reorder(tasks: Iterable[TaskRecord]) -> list[TaskRecord]:
        """
        Renormalize ranks: active tasks sorted by rank (stable, so list order
        breaks ties) get 1..N, completed tasks follow in their original order.
        """
        items = list(tasks)
        active = sorted((t for t in items if not t.completed), key=lambda t: t.rank)
        completed = [t for t in items if t.completed]
        for i, t in enumerate(active, start=1):
            t.rank = i
        return active + completed

    def _commit(self, day: DayBucket, active: list[TaskRecord]) -> None:
        # `active` is already in the desired order; positions become ranks.
        for i, t in enumerate(active, start=1):
            t.rank = i
        day.tasks = self.reorder(active + day.completed_tasks)

    # ---- backlog helpers ----

    def _new_backlog(self, description: str, *, tag: str, context: str) -> BacklogRecord:
        return BacklogRecord(
            id=self._ids.new_id(),
            description=description,
            date_added=self._clock.now(),
            tags={tag},
            source_context=context,
        )

    def _evict_if_full(self, day: DayBucket, active: list[TaskRecord]) -> BacklogRecord | None:
        """Move the highest-ranked active task to the backlog when the queue is full."""
        if len(active) < MAX_ACTIVE_TASKS:
            return None
        victim = active.pop()  # active is sorted by rank
        evicted = self._new_backlog(victim.description, tag=TAG_QUEUE_OVERFLOW, context="queue_overflow")
        day.backlog.append(evicted)
        day.tasks = [t for t in day.tasks if t.id != victim.id]
        logger.info(
            "Queue full on %s: evicted rank %s task id=%s to backlog",
            day.date,
            victim.rank,
            victim.id,
        )
        return evicted

    # ---- operations ----

    def insert(
        self,
        day: DayBucket,
        description: str,
        reasoning: str = "",
        preferred_rank: int | None = None,
    ) -> InsertResult:
        active = day.active_queue
        rank = min(len(active) + 1, MAX_ACTIVE_TASKS)
        if preferred_rank is not None and _valid_rank(preferred_rank):
            rank = preferred_rank

        evicted = self._evict_if_full(day, active)

        task = TaskRecord(
            id=self._ids.new_id(),
            description=description.strip(),
            rank=rank,
            reasoning=reasoning.strip(),
            created_at=self._clock.now(),
            estimated_duration=self._default_duration,
        )
        active.insert(min(rank - 1, len(active)), task)
        self._commit(day, active)

        logger.debug("Inserted task id=%s rank=%s on %s", task.id, task.rank, day.date)
        return InsertResult(task=task, evicted=evicted)

    def promote(
        self,
        day: DayBucket,
        backlog_id: str,
        target_rank: int,
        reasoning: str = "",
    ) -> PromoteResult:
        source = day.find_backlog(backlog_id)
        if source is None:
            raise TaskNotFoundError("backlog task", backlog_id)
        if not _valid_rank(target_rank):
            logger.debug("Promote ignored: rank %r out of range", target_rank)
            return PromoteResult(task=None)

        active = day.active_queue
        demoted = self._evict_if_full(day, active)

        task = TaskRecord(
            id=self._ids.new_id(),
            description=source.description,
            rank=target_rank,
            reasoning=reasoning.strip(),
            created_at=self._clock.now(),
            estimated_duration=self._default_duration,
        )
        day.backlog = [b for b in day.backlog if b.id != backlog_id]
        active.insert(min(target_rank - 1, len(active)), task)
        self._commit(day, active)

        logger.debug("Promoted backlog id=%s -> task id=%s rank=%s", backlog_id, task.id, task.rank)
        return PromoteResult(task=task, demoted=demoted)

    def demote(self, day: DayBucket, task_id: str) -> BacklogRecord:
        active = day.active_queue
        task = next((t for t in active if t.id == task_id), None)
        if task is None:
            raise TaskNotFoundError("active task", task_id)

        record = self._new_backlog(task.description, tag=TAG_DEMOTED, context="demoted")
        day.backlog.append(record)
        day.tasks = [t for t in day.tasks if t.id != task_id]
        active.remove(task)
        self._commit(day, active)

        logger.debug("Demoted task id=%s to backlog id=%s", task_id, record.id)
        return record

    def update_rank(self, day: DayBucket, task_id: str, new_rank: int) -> bool:
        """
        Move an active task so that it ends up at new_rank; the others shift.
        Returns False (queue unchanged) for an invalid rank or inactive task.
        """
        if not _valid_rank(new_rank):
            return False
        active = day.active_queue
        task = next((t for t in active if t.id == task_id), None)
        if task is None:
            return False

        active.remove(task)
        active.insert(min(new_rank - 1, len(active)), task)
        self._commit(day, active)
        return True

    def rollover(self, source: DayBucket, target: DayBucket) -> RolloverResult:
        """
        Copy incomplete tasks of `source` into `target` in rank order.
        Source records stay where they are as history.
        """
        incomplete = source.active_queue
        rolled: list[TaskRecord] = []
        backlogged: list[BacklogRecord] = []

        for task in incomplete:
            if len(target.active_queue) < MAX_ACTIVE_TASKS:
                carried = TaskRecord(
                    id=self._ids.new_id(),
                    description=task.description,
                    rank=task.rank,
                    reasoning=task.reasoning,
                    created_at=self._clock.now(),
                    estimated_duration=task.estimated_duration,
                    rolled_over_from=source.date,
                )
                target.tasks.append(carried)
                rolled.append(carried)
            else:
                record = self._new_backlog(task.description, tag=TAG_ROLLOVER, context="daily_rollover")
                target.backlog.append(record)
                backlogged.append(record)

        target.tasks = self.reorder(target.tasks)

        logger.info(
            "Rollover %s -> %s: rolled=%d backlogged=%d",
            source.date,
            target.date,
            len(rolled),
            len(backlogged),
        )
        return RolloverResult(
            rolled_over=rolled,
            moved_to_backlog=backlogged,
            total_incomplete=len(incomplete),
        )

    # ---- task lifecycle ----

    def _require_task(self, day: DayBucket, task_id: str) -> TaskRecord:
        task = day.find_task(task_id)
        if task is None:
            raise TaskNotFoundError("task", task_id)
        return task

    def start(self, day: DayBucket, task_id: str, at: datetime | None = None) -> TaskRecord:
        task = self._require_task(day, task_id)
        task.mark_started(at or self._clock.now())
        if not task.completed:
            day.current_focus = task.description
        return task

    def complete(self, day: DayBucket, task_id: str, at: datetime | None = None) -> TaskRecord:
        task = self._require_task(day, task_id)
        if not task.mark_completed(at or self._clock.now()):
            return task

        was_first = task.rank == 1
        day.tasks = self.reorder(day.tasks)
        if was_first:
            nxt = self.current_task(day)
            day.current_focus = nxt.description if nxt else ""
        return task

    def clear_completed(self, day: DayBucket) -> int:
        before = len(day.tasks)
        day.tasks = [t for t in day.tasks if not t.completed]
        return before - len(day.tasks)

    def delete_backlog(self, day: DayBucket, backlog_id: str) -> BacklogRecord:
        record = day.find_backlog(backlog_id)
        if record is None:
            raise TaskNotFoundError("backlog task", backlog_id)
        day.backlog = [b for b in day.backlog if b.id != backlog_id]
        return record

    # ---- queue analytics ----

    @staticmethod
    def current_task(day: DayBucket) -> TaskRecord | None:
        active = day.active_queue
        return active[0] if active else None

    @staticmethod
    def completion_rate(day: DayBucket) -> float:
        total = len(day.tasks)
        if total == 0:
            return 0.0
        return len(day.completed_tasks) / total

    @staticmethod
    def struggling_tasks(day: DayBucket) -> list[TaskRecord]:
        return [t for t in day.active_queue if t.rank >= 4]

    def queue_status(self, day: DayBucket) -> QueueStatus:
        active = len(day.active_queue)
        return QueueStatus(
            active_count=active,
            completed_count=len(day.completed_tasks),
            completion_rate=self.completion_rate(day),
            available_slots=max(0, MAX_ACTIVE_TASKS - active),
        )

    @staticmethod
    def suggest_energy_allocation(day: DayBucket, energy: EnergyLevel) -> EnergyAllocation:
        active = day.active_queue
        if energy is EnergyLevel.HIGH:
            return EnergyAllocation(
                energy=energy,
                recommended=active[:3],
                suggestion="Perfect time for your top 3 priorities! Tackle the most important work now.",
            )
        if energy is EnergyLevel.MEDIUM:
            return EnergyAllocation(
                energy=energy,
                recommended=active[1:4],
                suggestion="Good energy for tasks #2-4. Save the biggest challenge for high energy time.",
            )
        return EnergyAllocation(
            energy=energy,
            recommended=active[3:],
            suggestion="Low energy time - perfect for lighter tasks #4-6 or planning tomorrow.",
        )
