# src/ivy_planner/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, opens today (rolling over yesterday's
unfinished work) and then either starts the console REPL or, with the console
disabled, runs a single daily check and exits (suitable for cron).
"""

from __future__ import annotations

import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.errors import PlannerError
from ..logging_setup import setup_logging
from ..planner.models import MAX_ACTIVE_TASKS

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    # DayStore uses short-lived sqlite connections per call; close() is a no-op hook.
    try:
        repo = getattr(state, "repo", None)
        if repo is not None and hasattr(repo, "close"):
            repo.close()
    except Exception:
        logger.debug("Repo close failed.", exc_info=True)


def _handle_sigterm(signum, _frame) -> None:
    # Unwinds a blocking input() the same way Ctrl+C does.
    logger.info("Signal %s received, shutting down...", signum)
    raise KeyboardInterrupt


def run_daily_check(state) -> None:
    """Refresh today's insights and log the queue state once."""
    orch = state.orchestrator
    insights = orch.refresh_insights()
    status = orch.queue_status()
    logger.info(
        "Queue: %d/%d active, %d completed. %s",
        status.active_count,
        MAX_ACTIVE_TASKS,
        status.completed_count,
        status.status_text,
    )
    logger.info("Daily check done: %d insight(s) produced.", len(insights))


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/ivy")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "ivy"))

    state = create_initial_state(settings=settings)

    try:
        signal.signal(signal.SIGTERM, _handle_sigterm)
    except (ValueError, OSError):
        # Not available on every platform / outside the main thread.
        pass

    try:
        _, rollover = state.orchestrator.open_day()
        if rollover is not None:
            logger.info("Rollover: %s", rollover.summary)

        if settings.console_enabled:
            run_console_loop(state)
        else:
            run_daily_check(state)
    except PlannerError:
        logger.exception("Planner failed.")
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
