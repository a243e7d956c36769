# src/ivy_planner/core/errors.py

from __future__ import annotations


class PlannerError(Exception):
    """Base class for errors surfaced to planner callers."""


class TaskNotFoundError(PlannerError, LookupError):
    """A task or backlog id no longer belongs to the day it was looked up in."""

    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} {item_id!r} not found")
        self.kind = kind
        self.item_id = item_id


class PersistenceError(PlannerError):
    """Raised by day stores when loading or saving fails."""
