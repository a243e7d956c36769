# src/ivy_planner/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations (clock, ids, SQLite store, queue, insights)
  into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.clock import SystemClock, UuidIds
from ..core.ports import DayRepo, InsightSink
from ..core.state import AppState
from ..insights.engine import InsightEngine
from ..insights.sinks import LoggingInsightSink
from ..insights.stats import StatisticsStore
from ..planner.orchestrator import DayOrchestrator
from ..planner.queue_manager import QueueManager
from ..storage.day_store import DayStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    repo: DayRepo | None = None,
    sink: InsightSink | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Settings and the repo are injectable so tests can run against tmp paths or
    an in-memory store. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = SystemClock(settings.timezone)
    ids = UuidIds()
    if repo is None:
        repo = DayStore(settings.db_path)

    queue = QueueManager(clock, ids, default_duration=settings.default_task_duration)
    engine = InsightEngine(
        StatisticsStore(history=repo),
        clock,
        ids,
        history=repo,
        default_duration=settings.default_task_duration,
    )
    orchestrator = DayOrchestrator(
        repo,
        queue,
        engine,
        clock,
        sink=sink or LoggingInsightSink(),
    )

    logger.debug("AppState wired (tz=%s db=%s)", settings.timezone, settings.db_path)
    return AppState(settings=settings, repo=repo, orchestrator=orchestrator, clock=clock)
