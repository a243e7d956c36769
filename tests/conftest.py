# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from ivy_planner.core.state import AppState
from ivy_planner.insights.engine import InsightEngine
from ivy_planner.insights.stats import StatisticsStore
from ivy_planner.planner.models import DayBucket
from ivy_planner.planner.orchestrator import DayOrchestrator
from ivy_planner.planner.queue_manager import QueueManager
from ivy_planner.storage.memory_store import InMemoryDayStore

from .fakes import FixedClock, RecordingSink, SequentialIds


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="ivy-test",
        log_level="DEBUG",
        timezone="UTC",
        console_enabled=False,
        # Paths (tmp per test run)
        data_dir=tmp_path,
        db_path=tmp_path / "days.sqlite3",
        # Tuning
        review_after_days=14,
        default_task_duration=3600.0,
        recent_insights_limit=3,
    )


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture()
def store() -> InMemoryDayStore:
    return InMemoryDayStore()


@pytest.fixture()
def queue(clock: FixedClock, ids: SequentialIds) -> QueueManager:
    return QueueManager(clock, ids)


@pytest.fixture()
def engine(clock: FixedClock, ids: SequentialIds, store: InMemoryDayStore) -> InsightEngine:
    return InsightEngine(StatisticsStore(history=store), clock, ids, history=store)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def orchestrator(
    store: InMemoryDayStore,
    queue: QueueManager,
    engine: InsightEngine,
    clock: FixedClock,
    sink: RecordingSink,
) -> DayOrchestrator:
    return DayOrchestrator(store, queue, engine, clock, sink=sink)


@pytest.fixture()
def day(clock: FixedClock) -> DayBucket:
    return DayBucket(date=clock.today())


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    store: InMemoryDayStore,
    orchestrator: DayOrchestrator,
    clock: FixedClock,
) -> AppState:
    """AppState wired with the in-memory store and deterministic fakes."""
    return AppState(settings=settings, repo=store, orchestrator=orchestrator, clock=clock)
