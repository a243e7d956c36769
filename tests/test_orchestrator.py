# tests/test_orchestrator.py

from __future__ import annotations

import threading
from datetime import date

import pytest

from ivy_planner.core.errors import TaskNotFoundError
from ivy_planner.planner.models import BacklogRecord, DayBucket, EnergyLevel, InsightType, StatisticsSnapshot

D1 = date(2024, 3, 3)
D2 = date(2024, 3, 4)  # FixedClock's today


def test_open_day_rolls_over_once(orchestrator, store, queue, clock) -> None:
    yesterday = store.load_day(D1)
    for text in ("Write report", "Call bank", "Plan trip"):
        queue.insert(yesterday, text)
    yesterday.backlog.append(BacklogRecord(id="b1", description="Learn Go", date_added=clock.now()))
    store.save_day(yesterday)

    bucket, result = orchestrator.open_day()

    assert result is not None
    assert [t.description for t in result.rolled_over] == ["Write report", "Call bank", "Plan trip"]
    assert bucket.rollover_source == D1
    assert [t.rolled_over_from for t in bucket.active_queue] == [D1, D1, D1]
    assert [b.description for b in bucket.backlog] == ["Learn Go"]

    again, second = orchestrator.open_day()
    assert second is None
    assert len(again.active_queue) == 3
    assert len(again.backlog) == 1


def test_open_first_day_has_nothing_to_roll(orchestrator) -> None:
    bucket, result = orchestrator.open_day()
    assert result is None
    assert bucket.date == D2
    assert bucket.tasks == []


def test_add_task_uses_learned_duration(orchestrator, store) -> None:
    store.save_day(
        DayBucket(
            date=D1,
            statistics=StatisticsSnapshot(duration_by_category={"writing": 2000.0}, estimation_accuracy=0.5),
        )
    )

    result = orchestrator.add_task("Write chapter")

    assert result.task.estimated_duration == pytest.approx(1000.0)
    saved = store.find_day(D2)
    assert saved is not None and saved.active_queue[0].estimated_duration == pytest.approx(1000.0)


def test_complete_task_learns_once(orchestrator, clock) -> None:
    task = orchestrator.add_task("Write A").task
    orchestrator.start_task(task.id)
    clock.advance(minutes=30)

    done = orchestrator.complete_task(task.id)
    assert done.actual_duration == pytest.approx(1800.0)

    snap = orchestrator.view().statistics
    assert snap is not None
    assert snap.estimation_accuracy == pytest.approx(0.66)
    assert snap.optimal_time_by_category == {"writing": 9 * 3600 + 30 * 60}

    clock.advance(hours=1)
    orchestrator.complete_task(task.id)
    snap2 = orchestrator.view().statistics
    assert snap2 is not None
    assert snap2.estimation_accuracy == pytest.approx(0.66)
    assert snap2.optimal_time_by_category == {"writing": 9 * 3600 + 30 * 60}


def test_refresh_insights_notifies_fresh_actionable_only(orchestrator, store, sink) -> None:
    bucket = store.load_day(D2)
    bucket.statistics = StatisticsSnapshot(estimation_accuracy=0.9)
    store.save_day(bucket)

    first = orchestrator.refresh_insights()
    second = orchestrator.refresh_insights()

    assert [i.type for i in first] == [InsightType.TIME_ESTIMATION]
    assert len(second) == 1
    assert [i.type for i in sink.received] == [InsightType.TIME_ESTIMATION]

    recent = orchestrator.recent_insights()
    assert len(recent) == 1
    assert orchestrator.acknowledge_insight(recent[0].id) is True
    assert orchestrator.recent_insights() == []
    assert orchestrator.acknowledge_insight("missing") is False


def test_morning_energy_scores_yesterdays_prediction(orchestrator) -> None:
    assert orchestrator.set_morning_energy(EnergyLevel.HIGH) is None

    orchestrator.predict_tomorrow_energy(EnergyLevel.HIGH, d=D1)
    accuracy = orchestrator.set_morning_energy(EnergyLevel.HIGH)

    assert accuracy == pytest.approx(0.6)
    bucket = orchestrator.view()
    assert bucket.morning_energy is EnergyLevel.HIGH
    assert bucket.statistics is not None
    assert bucket.statistics.energy_accuracy == {"high_to_high": pytest.approx(0.6)}


def test_backlog_review_and_delete(orchestrator, clock) -> None:
    for i in range(7):
        orchestrator.add_task(f"Task {i}")
    record = orchestrator.view().backlog[0]

    reviewed = orchestrator.review_backlog(record.id)
    assert reviewed.last_reviewed == clock.now()

    orchestrator.delete_backlog(record.id)
    assert orchestrator.view().backlog == []

    with pytest.raises(TaskNotFoundError):
        orchestrator.review_backlog(record.id)


def test_journal_feeds_streaks(orchestrator) -> None:
    orchestrator.update_journal(highlight="  Finish draft  ", gratitude="sun")
    bucket = orchestrator.view()
    assert bucket.highlight == "Finish draft"

    orchestrator.refresh_insights()
    snap = orchestrator.view().statistics
    assert snap is not None
    assert (snap.planning_streak, snap.execution_streak, snap.completion_streak) == (1, 1, 0)


def test_concurrent_adds_keep_ranks_contiguous(orchestrator) -> None:
    def worker(n: int) -> None:
        for i in range(3):
            orchestrator.add_task(f"w{n}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    bucket = orchestrator.view()
    assert sorted(t.rank for t in bucket.active_queue) == [1, 2, 3, 4, 5, 6]
    assert len(bucket.backlog) == 6


def test_predict_and_report(orchestrator) -> None:
    assert orchestrator.predict_duration("Buy milk") == 3600.0
    assert orchestrator.suggest_time("Buy milk") is None
    assert "Analytics report" in orchestrator.report().summary


def test_streaks_count_days_without_insight_refresh(orchestrator, clock) -> None:
    orchestrator.update_journal(highlight="Day one")
    orchestrator.refresh_insights()

    clock.advance(days=1)
    orchestrator.update_journal(highlight="Day two")
    orchestrator.add_task("Write notes")

    clock.advance(days=1)
    orchestrator.update_journal(highlight="Day three")
    orchestrator.refresh_insights()

    snap = orchestrator.view().statistics
    assert snap is not None
    assert snap.planning_streak == 3
    assert snap.longest_streak == 3


def test_first_call_after_midnight_rolls_over(orchestrator, clock) -> None:
    for i in range(1, 8):
        orchestrator.add_task(f"Task {i}")

    clock.advance(days=1)
    bucket = orchestrator.view()

    assert bucket.rollover_source == D2
    assert [t.description for t in bucket.active_queue] == ["Task 1", "Task 2", "Task 3", "Task 4", "Task 5", "Task 7"]
    assert all(t.rolled_over_from == D2 for t in bucket.active_queue)
    assert [b.description for b in bucket.backlog] == ["Task 6"]

    orchestrator.add_task("Fresh")
    assert len(orchestrator.view().active_queue) == 6


def test_past_days_are_not_rolled_over_implicitly(orchestrator, store, queue) -> None:
    earlier = store.load_day(date(2024, 3, 1))
    queue.insert(earlier, "Old task")
    store.save_day(earlier)

    orchestrator.update_journal(highlight="Looking back", d=D1)

    past = store.find_day(D1)
    assert past is not None
    assert past.rollover_source is None
    assert past.tasks == []


def test_review_all_backlog_marks_only_stale_items(orchestrator, clock) -> None:
    for i in range(7):
        orchestrator.add_task(f"Task {i}")
    assert orchestrator.review_all_backlog() == 0

    clock.advance(days=15)
    assert orchestrator.review_all_backlog() == 1
    assert orchestrator.view().backlog[0].last_reviewed == clock.now()
    assert orchestrator.review_all_backlog() == 0
