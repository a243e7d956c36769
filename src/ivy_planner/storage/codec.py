# src/ivy_planner/storage/codec.py

"""DayBucket <-> JSON-compatible dict."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from ..planner.models import (
    DEFAULT_TASK_DURATION,
    BacklogRecord,
    DayBucket,
    EnergyLevel,
    Insight,
    InsightType,
    StatisticsSnapshot,
    TaskRecord,
)


def _dt(v: datetime | None) -> str | None:
    return v.isoformat() if v is not None else None


def _parse_dt(raw: Any) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(str(raw))


def _parse_date(raw: Any) -> date | None:
    if not raw:
        return None
    return date.fromisoformat(str(raw))


def task_to_dict(t: TaskRecord) -> dict[str, Any]:
    return {
        "id": t.id,
        "description": t.description,
        "rank": t.rank,
        "reasoning": t.reasoning,
        "created_at": _dt(t.created_at),
        "completed": t.completed,
        "completed_at": _dt(t.completed_at),
        "started_at": _dt(t.started_at),
        "estimated_duration": t.estimated_duration,
        "actual_duration": t.actual_duration,
        "rolled_over_from": t.rolled_over_from.isoformat() if t.rolled_over_from else None,
    }


def task_from_dict(d: dict[str, Any]) -> TaskRecord:
    estimated = d.get("estimated_duration")
    actual = d.get("actual_duration")
    return TaskRecord(
        id=str(d["id"]),
        description=str(d.get("description") or ""),
        rank=int(d.get("rank") or 0),
        reasoning=str(d.get("reasoning") or ""),
        created_at=_parse_dt(d.get("created_at")),
        completed=bool(d.get("completed", False)),
        completed_at=_parse_dt(d.get("completed_at")),
        started_at=_parse_dt(d.get("started_at")),
        estimated_duration=float(estimated) if estimated is not None else DEFAULT_TASK_DURATION,
        actual_duration=float(actual) if actual is not None else None,
        rolled_over_from=_parse_date(d.get("rolled_over_from")),
    )


def backlog_to_dict(b: BacklogRecord) -> dict[str, Any]:
    return {
        "id": b.id,
        "description": b.description,
        "date_added": b.date_added.isoformat(),
        "tags": sorted(b.tags),
        "source_context": b.source_context,
        "last_reviewed": _dt(b.last_reviewed),
    }


def backlog_from_dict(d: dict[str, Any]) -> BacklogRecord:
    added = _parse_dt(d.get("date_added"))
    if added is None:
        raise ValueError(f"backlog record {d.get('id')!r} has no date_added")
    return BacklogRecord(
        id=str(d["id"]),
        description=str(d.get("description") or ""),
        date_added=added,
        tags={str(t) for t in d.get("tags") or []},
        source_context=str(d.get("source_context") or "manual"),
        last_reviewed=_parse_dt(d.get("last_reviewed")),
    )


def insight_to_dict(i: Insight) -> dict[str, Any]:
    return {
        "id": i.id,
        "text": i.text,
        "type": i.type.value,
        "confidence": i.confidence,
        "generated_at": i.generated_at.isoformat(),
        "acknowledged": i.acknowledged,
    }


def insight_from_dict(d: dict[str, Any]) -> Insight:
    generated = _parse_dt(d.get("generated_at"))
    if generated is None:
        raise ValueError(f"insight {d.get('id')!r} has no generated_at")
    return Insight(
        id=str(d["id"]),
        text=str(d.get("text") or ""),
        type=InsightType.from_db(d.get("type")),
        confidence=float(d.get("confidence") or 0.0),
        generated_at=generated,
        acknowledged=bool(d.get("acknowledged", False)),
    )


def stats_to_dict(s: StatisticsSnapshot) -> dict[str, Any]:
    return {
        "completion_rate_by_category": dict(s.completion_rate_by_category),
        "struggling_counts": dict(s.struggling_counts),
        "duration_by_category": dict(s.duration_by_category),
        "estimation_accuracy": s.estimation_accuracy,
        "energy_accuracy": dict(s.energy_accuracy),
        "optimal_time_by_category": dict(s.optimal_time_by_category),
        "planning_streak": s.planning_streak,
        "execution_streak": s.execution_streak,
        "completion_streak": s.completion_streak,
        "longest_streak": s.longest_streak,
        "streak_baseline": list(s.streak_baseline) if s.streak_baseline is not None else None,
        "insights": [insight_to_dict(i) for i in s.insights],
    }


def stats_from_dict(d: dict[str, Any]) -> StatisticsSnapshot:
    baseline = d.get("streak_baseline")
    return StatisticsSnapshot(
        completion_rate_by_category={str(k): float(v) for k, v in (d.get("completion_rate_by_category") or {}).items()},
        struggling_counts={str(k): int(v) for k, v in (d.get("struggling_counts") or {}).items()},
        duration_by_category={str(k): float(v) for k, v in (d.get("duration_by_category") or {}).items()},
        estimation_accuracy=float(d.get("estimation_accuracy", 0.7)),
        energy_accuracy={str(k): float(v) for k, v in (d.get("energy_accuracy") or {}).items()},
        optimal_time_by_category={str(k): float(v) for k, v in (d.get("optimal_time_by_category") or {}).items()},
        planning_streak=int(d.get("planning_streak") or 0),
        execution_streak=int(d.get("execution_streak") or 0),
        completion_streak=int(d.get("completion_streak") or 0),
        longest_streak=int(d.get("longest_streak") or 0),
        streak_baseline=(int(baseline[0]), int(baseline[1]), int(baseline[2])) if baseline else None,
        insights=[insight_from_dict(i) for i in d.get("insights") or []],
    )


def day_to_dict(day: DayBucket) -> dict[str, Any]:
    return {
        "date": day.date.isoformat(),
        "tasks": [task_to_dict(t) for t in day.tasks],
        "backlog": [backlog_to_dict(b) for b in day.backlog],
        "statistics": stats_to_dict(day.statistics) if day.statistics is not None else None,
        "highlight": day.highlight,
        "intention": day.intention,
        "gratitude": day.gratitude,
        "current_focus": day.current_focus,
        "morning_energy": day.morning_energy.value,
        "tomorrow_energy": day.tomorrow_energy.value if day.tomorrow_energy else None,
        "rollover_source": day.rollover_source.isoformat() if day.rollover_source else None,
    }


def day_from_dict(d: dict[str, Any]) -> DayBucket:
    day = _parse_date(d.get("date"))
    if day is None:
        raise ValueError("day payload has no date")
    stats = d.get("statistics")
    return DayBucket(
        date=day,
        tasks=[task_from_dict(t) for t in d.get("tasks") or []],
        backlog=[backlog_from_dict(b) for b in d.get("backlog") or []],
        statistics=stats_from_dict(stats) if stats else None,
        highlight=str(d.get("highlight") or ""),
        intention=str(d.get("intention") or ""),
        gratitude=str(d.get("gratitude") or ""),
        current_focus=str(d.get("current_focus") or ""),
        morning_energy=EnergyLevel.from_db(d.get("morning_energy")),
        tomorrow_energy=EnergyLevel.from_db(d.get("tomorrow_energy")) if d.get("tomorrow_energy") else None,
        rollover_source=_parse_date(d.get("rollover_source")),
    )
