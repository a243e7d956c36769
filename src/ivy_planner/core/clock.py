# src/ivy_planner/core/clock.py

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from zoneinfo import ZoneInfo


class SystemClock:
    """Wall clock in the user's timezone."""

    def __init__(self, tz_name: str = "UTC") -> None:
        self._tz = ZoneInfo(tz_name)

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def today(self) -> date:
        return self.now().date()

    def start_of_day(self, day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=self._tz)


class UuidIds:
    def new_id(self) -> str:
        return str(uuid.uuid4())
