# src/ivy_planner/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..planner.orchestrator import DayOrchestrator
from .ports import Clock, DayRepo


@dataclass
class AppState:
    # Settings object (ivy_planner.config.Settings or a test stand-in).
    settings: Any

    repo: DayRepo
    orchestrator: DayOrchestrator
    clock: Clock

    # Serializes connector access to the orchestrator.
    lock: threading.RLock = field(default_factory=threading.RLock)
