# tests/test_backlog.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ivy_planner.planner.backlog import available_tags, filter_backlog, mark_all_reviewed, needing_review
from ivy_planner.planner.models import BacklogRecord

NOW = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


def _rec(rid: str, text: str, days_old: int, tags: set[str] | None = None) -> BacklogRecord:
    return BacklogRecord(id=rid, description=text, date_added=NOW - timedelta(days=days_old), tags=tags or set())


def test_filter_by_search_and_tags_newest_first() -> None:
    records = [
        _rec("a", "Learn Rust", 10, {"demoted"}),
        _rec("b", "Fix bike", 1, {"queue_overflow"}),
        _rec("c", "Rust meetup talk", 3),
    ]

    assert [r.id for r in filter_backlog(records)] == ["b", "c", "a"]
    assert [r.id for r in filter_backlog(records, search="rust")] == ["c", "a"]
    # Search also matches tags.
    assert [r.id for r in filter_backlog(records, search="overflow")] == ["b"]
    assert [r.id for r in filter_backlog(records, tags=["DEMOTED", "rollover"])] == ["a"]
    assert filter_backlog(records, search="rust", tags=["queue_overflow"]) == []


def test_available_tags_sorted_unique() -> None:
    records = [_rec("a", "x", 0, {"b", "a"}), _rec("b", "y", 0, {"a"})]
    assert available_tags(records) == ["a", "b"]


def test_needs_review_after_fourteen_days() -> None:
    fresh = _rec("fresh", "x", 14)
    stale = _rec("stale", "y", 15)
    reviewed = _rec("reviewed", "z", 40)
    reviewed.mark_reviewed(NOW - timedelta(days=2))

    assert [r.id for r in needing_review([fresh, stale, reviewed], NOW)] == ["stale"]
    assert stale.age_in_days(NOW) == 15

    assert mark_all_reviewed([stale], NOW) == 1
    assert not stale.needs_review(NOW)
    assert stale.needs_review(NOW + timedelta(days=15))


def test_review_window_is_configurable() -> None:
    rec = _rec("a", "x", 5)
    assert rec.needs_review(NOW, after_days=3)
    assert not rec.needs_review(NOW, after_days=7)
