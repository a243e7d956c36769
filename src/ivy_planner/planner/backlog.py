# src/ivy_planner/planner/backlog.py

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from .models import REVIEW_AFTER_DAYS, BacklogRecord


def filter_backlog(
    records: Iterable[BacklogRecord],
    *,
    search: str = "",
    tags: Iterable[str] = (),
) -> list[BacklogRecord]:
    """
    Search is a case-insensitive substring match on description or any tag.
    A tag filter keeps records sharing at least one tag. Newest first.
    """
    needle = search.strip().lower()
    wanted = {t.lower() for t in tags}

    out: list[BacklogRecord] = []
    for r in records:
        if needle and needle not in r.description.lower() and not any(needle in t.lower() for t in r.tags):
            continue
        if wanted and wanted.isdisjoint(t.lower() for t in r.tags):
            continue
        out.append(r)

    out.sort(key=lambda r: r.date_added, reverse=True)
    return out


def available_tags(records: Iterable[BacklogRecord]) -> list[str]:
    return sorted({t for r in records for t in r.tags})


def needing_review(
    records: Iterable[BacklogRecord],
    now: datetime,
    *,
    after_days: int = REVIEW_AFTER_DAYS,
) -> list[BacklogRecord]:
    return [r for r in records if r.needs_review(now, after_days=after_days)]


def mark_all_reviewed(records: Iterable[BacklogRecord], at: datetime) -> int:
    n = 0
    for r in records:
        r.mark_reviewed(at)
        n += 1
    return n
