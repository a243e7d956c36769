# src/ivy_planner/insights/generators.py

"""
Insight generator passes.

Each pass looks at one aspect of a StatisticsSnapshot and returns at most one
draft. Texts are fixed templates: deduplication is an exact (text, type)
comparison, so a pass must produce the same text for the same statistics.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..planner.models import InsightType, StatisticsSnapshot
from .stats import clamp01

NOON_SECONDS = 12 * 3600


@dataclass(slots=True, frozen=True)
class InsightDraft:
    text: str
    type: InsightType
    confidence: float


def pattern_pass(snap: StatisticsSnapshot) -> InsightDraft | None:
    if not snap.completion_rate_by_category:
        return None
    category, rate = max(snap.completion_rate_by_category.items(), key=lambda kv: kv[1])
    if rate <= 0.8:
        return None
    return InsightDraft(
        text=(
            f"You consistently excel at {category} tasks! "
            "Consider scheduling more during your peak hours."
        ),
        type=InsightType.PATTERN,
        confidence=clamp01(rate),
    )


def time_estimation_pass(snap: StatisticsSnapshot) -> InsightDraft | None:
    acc = snap.estimation_accuracy
    if acc < 0.6:
        return InsightDraft(
            text=(
                "Your time estimates tend to be off. "
                "Try breaking larger tasks into smaller, more predictable chunks."
            ),
            type=InsightType.TIME_ESTIMATION,
            confidence=clamp01(1.0 - acc),
        )
    if acc > 0.85:
        return InsightDraft(
            text="Excellent time estimation skills! You're great at predicting how long tasks will take.",
            type=InsightType.TIME_ESTIMATION,
            confidence=clamp01(acc),
        )
    return None


def energy_pass(snap: StatisticsSnapshot) -> InsightDraft | None:
    morning = sum(1 for v in snap.optimal_time_by_category.values() if v < NOON_SECONDS)
    afternoon = len(snap.optimal_time_by_category) - morning
    if morning <= afternoon:
        return None
    return InsightDraft(
        text=(
            "You tend to be most productive in the morning. "
            "Consider scheduling your most important tasks before noon."
        ),
        type=InsightType.ENERGY,
        confidence=0.8,
    )


def streak_pass(snap: StatisticsSnapshot) -> InsightDraft | None:
    best = snap.max_streak
    if best >= 7:
        return InsightDraft(
            text=f"Amazing! You're on a {best}-day streak. Consistency is building your success momentum!",
            type=InsightType.STREAK,
            confidence=0.9,
        )
    if best >= 3:
        return InsightDraft(
            text=f"Great work! {best} days in a row. Keep the momentum going!",
            type=InsightType.STREAK,
            confidence=0.75,
        )
    return None


def struggle_pass(snap: StatisticsSnapshot) -> InsightDraft | None:
    if not snap.struggling_counts:
        return None
    category, count = max(snap.struggling_counts.items(), key=lambda kv: kv[1])
    if count < 3:
        return None
    return InsightDraft(
        text=(
            f"{category.capitalize()} tasks often get pushed down your priority list. "
            "Consider breaking them into smaller steps or scheduling them at your peak energy time."
        ),
        type=InsightType.STRUGGLE,
        confidence=0.8,
    )


def workflow_pass(snap: StatisticsSnapshot) -> InsightDraft | None:
    if snap.planning_streak <= snap.execution_streak + 2:
        return None
    return InsightDraft(
        text=(
            "You're great at evening planning but could improve morning execution. "
            "Try preparing your workspace the night before."
        ),
        type=InsightType.WORKFLOW,
        confidence=0.75,
    )


GENERATOR_PASSES: tuple[Callable[[StatisticsSnapshot], InsightDraft | None], ...] = (
    pattern_pass,
    time_estimation_pass,
    energy_pass,
    streak_pass,
    struggle_pass,
    workflow_pass,
)


def run_passes(snap: StatisticsSnapshot) -> list[InsightDraft]:
    drafts: list[InsightDraft] = []
    for gen in GENERATOR_PASSES:
        draft = gen(snap)
        if draft is not None:
            drafts.append(draft)
    return drafts
