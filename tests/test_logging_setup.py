# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from ivy_planner.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("ivy_planner.planner.orchestrator", logging.INFO, True),
        ("ivy_planner.insights.sinks", logging.INFO, True),
        ("ivy_planner.planner.queue_manager", logging.INFO, False),
        ("ivy_planner.planner.queue_manager", logging.WARNING, True),
        ("ivy_planner.storage.day_store", logging.INFO, False),
        ("ivy_planner.storage.day_store", logging.ERROR, True),
        ("ivy_planner.connectors.console_connector", logging.INFO, False),
        ("ivy_planner.cli.commands", logging.INFO, False),
        ("ivy_planner.cli.commands", logging.ERROR, True),
        ("py.warnings", logging.WARNING, False),
        ("urllib3", logging.WARNING, False),
        ("urllib3", logging.ERROR, True),
    ],
)
def test_console_filter_keeps_day_and_insight_messages(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown


def test_setup_logging_writes_full_file_log(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs")
        logging.getLogger("ivy_planner.storage.day_store").debug("created day %s", "2024-03-04")
        for h in root.handlers:
            h.flush()

        assert log_file == tmp_path / "logs" / "ivy.log"
        assert "created day 2024-03-04" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
        logging.captureWarnings(False)
