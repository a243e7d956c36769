# src/ivy_planner/insights/stats.py

"""
Statistics store: per-day learning state and its numeric update rules.

All rules are small exponential blends:
- duration learning:     avg = avg * 0.7 + observed * 0.3
- estimation accuracy:   acc = acc * 0.8 + min(est, act) / max(est, act) * 0.2
- energy accuracy:       v   = v * 0.8 + (predicted == actual) * 0.2, seeded at 0.5
- completion rate:       r   = (r + 1) / max(1, tasks_today), clamped to [0, 1]

Only the InsightEngine calls the mutators.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from ..core.ports import DayRepo
from ..planner.models import DayBucket, EnergyLevel, StatisticsSnapshot

logger = logging.getLogger(__name__)

DURATION_ALPHA = 0.3
ACCURACY_ALPHA = 0.2
ENERGY_ALPHA = 0.2
ENERGY_SEED = 0.5


def blend(current: float, sample: float, weight: float) -> float:
    return current * (1.0 - weight) + sample * weight


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, float(x)))


def symmetric_accuracy(estimated: float, actual: float) -> float:
    """min/max ratio: 1.0 is a perfect estimate, over- and under-estimates cost the same."""
    hi = max(estimated, actual)
    if hi <= 0:
        return 0.0
    return min(estimated, actual) / hi


def energy_key(predicted: EnergyLevel, actual: EnergyLevel) -> str:
    return f"{predicted.value}_to_{actual.value}"


def seconds_since_midnight(ts: datetime) -> float:
    return float(ts.hour * 3600 + ts.minute * 60)


class StatisticsStore:
    def __init__(self, history: DayRepo | None = None) -> None:
        self._history = history

    def snapshot_for(self, day: DayBucket) -> StatisticsSnapshot:
        """Lazily attach a snapshot to the day, seeded from the latest earlier day."""
        if day.statistics is not None:
            return day.statistics

        seed = self._previous_snapshot(day.date)
        day.statistics = seed.carry_forward() if seed is not None else StatisticsSnapshot()
        logger.debug("Statistics created for %s (seeded=%s)", day.date, seed is not None)
        return day.statistics

    def _previous_snapshot(self, d: date) -> StatisticsSnapshot | None:
        if self._history is None:
            return None
        return self._history.latest_statistics_before(d)

    # ---- mutators ----

    @staticmethod
    def record_completion_rate(snap: StatisticsSnapshot, category: str, total_tasks: int) -> float:
        current = snap.completion_rate_by_category.get(category, 0.0)
        rate = clamp01((current + 1.0) / max(1, total_tasks))
        snap.completion_rate_by_category[category] = rate
        return rate

    @staticmethod
    def record_struggle(snap: StatisticsSnapshot, category: str) -> int:
        n = snap.struggling_counts.get(category, 0) + 1
        snap.struggling_counts[category] = n
        return n

    @staticmethod
    def learn_duration(snap: StatisticsSnapshot, category: str, observed: float, *, seed: float) -> float:
        current = snap.duration_by_category.get(category, seed)
        avg = blend(current, observed, DURATION_ALPHA)
        snap.duration_by_category[category] = avg
        logger.debug("Duration %s: %.0fs -> %.0fs", category, current, avg)
        return avg

    @staticmethod
    def record_estimation(snap: StatisticsSnapshot, estimated: float, actual: float) -> float:
        sample = symmetric_accuracy(estimated, actual)
        snap.estimation_accuracy = clamp01(blend(snap.estimation_accuracy, sample, ACCURACY_ALPHA))
        return snap.estimation_accuracy

    @staticmethod
    def record_energy(snap: StatisticsSnapshot, predicted: EnergyLevel, actual: EnergyLevel) -> float:
        key = energy_key(predicted, actual)
        hit = 1.0 if predicted == actual else 0.0
        value = blend(snap.energy_accuracy.get(key, ENERGY_SEED), hit, ENERGY_ALPHA)
        snap.energy_accuracy[key] = value
        return value

    @staticmethod
    def record_optimal_time(snap: StatisticsSnapshot, category: str, completed_at: datetime) -> float:
        # Last write wins; not averaged.
        offset = seconds_since_midnight(completed_at)
        snap.optimal_time_by_category[category] = offset
        return offset

    # ---- readers ----

    @staticmethod
    def average_energy_accuracy(snap: StatisticsSnapshot) -> float:
        values = list(snap.energy_accuracy.values())
        if not values:
            return 0.0
        return sum(values) / len(values)

    @staticmethod
    def top_categories(snap: StatisticsSnapshot, limit: int = 3) -> list[tuple[str, float]]:
        ranked = sorted(snap.completion_rate_by_category.items(), key=lambda kv: kv[1], reverse=True)
        return ranked[:limit]
