# tests/test_commands.py

from __future__ import annotations

from ivy_planner.cli.commands import CommandRegistry, registry
from ivy_planner.core.errors import TaskNotFoundError


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a", aliases=["aa"])
    reg.register("b", h3, "b")

    assert reg.handle(state, "/a x y") == "h2:x,y"
    assert reg.handle(state, "/AA") == "h2:"
    assert reg.handle(state, "/b", emit=notes.append) == "h3"
    assert called == {"h2": 2, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_planner_errors_become_replies(state) -> None:
    reg = CommandRegistry()

    def boom(state, args):
        raise TaskNotFoundError("task", "abc")

    reg.register("boom", boom, "boom")
    reply = reg.handle(state, "/boom") or ""
    assert reply.startswith("Error:")
    assert "abc" in reply


def test_help_lists_every_command(state) -> None:
    reply = registry.handle(state, "/help") or ""
    for name in ("add", "list", "start", "done", "rank", "demote", "backlog", "promote",
                 "review", "insights", "ack", "predict", "energy", "report", "status"):
        assert f"/{name}" in reply


def test_add_list_rank_and_done_flow(state) -> None:
    assert "Added #1: Write report" in (registry.handle(state, "/add Write report -- due Friday") or "")
    registry.handle(state, "/add Email Bob")
    assert "Added #1: Call mom" in (registry.handle(state, "/add #1 Call mom") or "")

    listing = registry.handle(state, "/list") or ""
    assert listing.index("1. Call mom") < listing.index("2. Write report") < listing.index("3. Email Bob")

    assert "to #1" in (registry.handle(state, "/rank 3 1") or "")
    assert "Rank must be" in (registry.handle(state, "/rank 1 9") or "")

    registry.handle(state, "/start 1")
    done = registry.handle(state, "/done") or ""
    assert "Completed: Email Bob" in done
    assert "Next: Call mom" in done

    bucket = state.orchestrator.view()
    assert [t.description for t in bucket.active_queue] == ["Call mom", "Write report"]
    assert bucket.active_queue[1].reasoning == "due Friday"


def test_overflow_demote_promote_through_backlog(state) -> None:
    for i in range(1, 7):
        registry.handle(state, f"/add Task {i}")

    reply = registry.handle(state, "/add Task 7") or ""
    assert "moved 'Task 6' to backlog" in reply

    assert "Moved 'Task 1' to backlog" in (registry.handle(state, "/demote 1") or "")

    backlog = registry.handle(state, "/backlog") or ""
    assert "Task 6" in backlog and "Task 1" in backlog
    assert "demoted" in (registry.handle(state, "/backlog tags") or "")
    assert "Task 1" not in (registry.handle(state, "/backlog tag:queue_overflow") or "")

    promoted = registry.handle(state, "/promote 1 2") or ""
    assert promoted.startswith("Promoted to #2")
    assert "Rank must be" in (registry.handle(state, "/promote 1 0") or "")

    assert "Error:" in (registry.handle(state, "/demote zzz") or "")
    assert "Deleted from backlog" in (registry.handle(state, "/backlog delete 1") or "")
    assert registry.handle(state, "/backlog") == "Backlog is empty."


def test_review_lists_and_marks_stale_items(state, clock) -> None:
    for i in range(7):
        registry.handle(state, f"/add Task {i}")

    assert registry.handle(state, "/review") == "Nothing needs review."

    clock.advance(days=20)
    assert "Needs review (1)" in (registry.handle(state, "/review") or "")
    assert "Marked 1 item(s)" in (registry.handle(state, "/review all") or "")
    assert registry.handle(state, "/review") == "Nothing needs review."


def test_energy_predict_journal_and_report(state) -> None:
    for text in ("Write a", "Write b", "Write c", "Write d"):
        registry.handle(state, f"/add {text}")

    reply = registry.handle(state, "/energy low") or ""
    assert "Low Energy" in reply
    assert "Write d" in reply
    assert "Usage" in (registry.handle(state, "/energy sleepy") or "")
    assert "tomorrow looks high" in (registry.handle(state, "/energy tomorrow high") or "")

    assert "Estimated duration: 60 min" in (registry.handle(state, "/predict Write more") or "")

    assert registry.handle(state, "/journal intention Deep work") == "Saved intention."
    assert "Intention: Deep work" in (registry.handle(state, "/journal") or "")

    assert "Analytics report" in (registry.handle(state, "/report") or "")
    assert "Queue: 4/6 active" in (registry.handle(state, "/status") or "")


def test_insights_and_ack(state, store, clock) -> None:
    from ivy_planner.planner.models import StatisticsSnapshot

    bucket = store.load_day(clock.today())
    bucket.statistics = StatisticsSnapshot(estimation_accuracy=0.9)
    store.save_day(bucket)

    notes: list[str] = []
    reply = registry.handle(state, "/insights", emit=notes.append) or ""
    assert "Excellent time estimation" in reply
    assert notes

    insight_id = state.orchestrator.recent_insights()[0].id
    assert "Acknowledged" in (registry.handle(state, f"/ack {insight_id}") or "")
    assert "No new insights" in (registry.handle(state, "/insights") or "")
    assert "No insight" in (registry.handle(state, "/ack nope") or "")


def test_queue_and_backlog_survive_midnight(state, clock) -> None:
    for i in range(1, 8):
        registry.handle(state, f"/add Task {i}")

    clock.advance(days=1)

    listing = registry.handle(state, "/list") or ""
    assert "1. Task 1" in listing
    assert "Task 6" in (registry.handle(state, "/backlog") or "")
