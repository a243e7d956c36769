# src/ivy_planner/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


# Loggers that narrate every mutation; the file log keeps them, the console only shows problems.
_CHATTY_LOGGERS = (
    "ivy_planner.planner.queue_manager",
    "ivy_planner.insights.stats",
    "ivy_planner.insights.engine",
    "ivy_planner.storage",
    "ivy_planner.connectors.console_connector",
)

# Replies already tell the user about failed commands.
_REPLY_LOGGERS = ("ivy_planner.cli.commands",)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Make interactive console usable:
    - show day transitions (orchestrator) and insight notifications (sinks)
    - keep queue/statistics/store/REPL chatter out unless WARNING+
    - keep command failures (already shown as replies) out unless ERROR+
    - suppress Python warnings (captured as 'py.warnings') unless ERROR+
    - suppress third-party noise unless ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("ivy_planner."):
            if name.startswith(_REPLY_LOGGERS):
                return record.levelno >= logging.ERROR
            if name.startswith(_CHATTY_LOGGERS):
                return record.levelno >= logging.WARNING
            return True

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/ivy",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure logging with:
    - Console handler: readable + filtered for interactive use
    - File handler: full logs for debugging

    Call this ONCE, very early (before first logger.info).
    Returns the path of the log file.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "ivy.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)

    return log_file
