# src/ivy_planner/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.errors import PlannerError, TaskNotFoundError
from ..core.state import AppState
from ..planner.backlog import available_tags, filter_backlog, needing_review
from ..planner.models import MAX_ACTIVE_TASKS, BacklogRecord, DayBucket, EnergyLevel, Insight, TaskRecord

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

SHORT_ID = 8


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except PlannerError as e:
            logger.info("/%s failed: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting helpers ----


def _short(item_id: str) -> str:
    return item_id[:SHORT_ID]


def _minutes(seconds: float) -> str:
    return f"{max(0, round(seconds / 60))} min"


def _fmt_task(t: TaskRecord) -> str:
    marks = []
    if t.started_at is not None and not t.completed:
        marks.append("in progress")
    if t.rolled_over_from is not None:
        marks.append(f"from {t.rolled_over_from.isoformat()}")
    suffix = f" ({', '.join(marks)})" if marks else ""
    return f"{t.rank}. {t.description} [{_short(t.id)}] ~{_minutes(t.estimated_duration)}{suffix}"


def _fmt_backlog(i: int, b: BacklogRecord, state: AppState) -> str:
    age = b.age_in_days(state.clock.now())
    tags = f" [tags: {', '.join(sorted(b.tags))}]" if b.tags else ""
    return f"{i}. {b.description} [{_short(b.id)}] {age}d{tags}"


def _fmt_insight(i: Insight) -> str:
    return f"[{_short(i.id)}] ({i.confidence:.2f} {i.type.value}) {i.text}"


def _parse_int(raw: str) -> int | None:
    try:
        return int(raw.lstrip("#"))
    except ValueError:
        return None


def _resolve_task(bucket: DayBucket, token: str) -> TaskRecord:
    """Token is an active rank (1..6) or an id prefix."""
    rank = _parse_int(token)
    if rank is not None and token.lstrip("#").isdigit():
        for t in bucket.active_queue:
            if t.rank == rank:
                return t
    matches = [t for t in bucket.tasks if t.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    raise TaskNotFoundError("task", token)


def _resolve_backlog(bucket: DayBucket, token: str) -> BacklogRecord:
    """Token is a 1-based position in the /backlog listing or an id prefix."""
    listing = filter_backlog(bucket.backlog)
    pos = _parse_int(token)
    if pos is not None and token.lstrip("#").isdigit() and 1 <= pos <= len(listing):
        return listing[pos - 1]
    matches = [b for b in bucket.backlog if b.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    raise TaskNotFoundError("backlog task", token)


def _split_reasoning(args: list[str]) -> tuple[str, str]:
    """'words -- why' -> ('words', 'why')."""
    if "--" in args:
        i = args.index("--")
        return " ".join(args[:i]).strip(), " ".join(args[i + 1 :]).strip()
    return " ".join(args).strip(), ""


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    orch = state.orchestrator
    bucket = orch.view()
    status = orch.queue.queue_status(bucket)
    after_days = int(getattr(state.settings, "review_after_days", 14))
    stale = needing_review(bucket.backlog, state.clock.now(), after_days=after_days)
    return (
        f"Status ({bucket.date.isoformat()}):\n"
        f"  Queue: {status.active_count}/{MAX_ACTIVE_TASKS} active, "
        f"{status.completed_count} done ({int(status.completion_rate * 100)}%)\n"
        f"  {status.status_text}\n"
        f"  Focus: {bucket.current_focus or '-'}\n"
        f"  Energy: {bucket.morning_energy.description}\n"
        f"  Backlog: {len(bucket.backlog)} item(s), {len(stale)} need review"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Write report                -> append at the next free rank
    /add #2 Write report             -> ask for rank 2
    /add Write report -- client asks -> with reasoning
    """
    preferred: int | None = None
    if args and args[0].startswith("#"):
        preferred = _parse_int(args[0])
        args = args[1:]

    description, reasoning = _split_reasoning(args)
    if not description:
        return "Usage: /add [#rank] <description> [-- reasoning]"

    result = state.orchestrator.add_task(description, reasoning, preferred)
    task = result.task
    lines = [f"Added #{task.rank}: {task.description} (~{_minutes(task.estimated_duration)})"]
    if result.evicted is not None:
        lines.append(f"Queue full: moved '{result.evicted.description}' to backlog.")
    return "\n".join(lines)


def cmd_list(state: AppState, args: list[str]) -> str:
    bucket = state.orchestrator.view()
    active = bucket.active_queue
    done = bucket.completed_tasks

    if not active and not done:
        return "Queue is empty - add your first task with /add."

    lines = [f"Queue for {bucket.date.isoformat()}:"]
    lines.extend(f"  {_fmt_task(t)}" for t in active)
    if done:
        lines.append("Done:")
        lines.extend(f"  [x] {t.description}" for t in done)
    return "\n".join(lines)


def cmd_start(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /start <rank|id>"
    orch = state.orchestrator
    task = _resolve_task(orch.view(), args[0])
    task = orch.start_task(task.id)
    return f"Started: {task.description}"


def cmd_done(state: AppState, args: list[str]) -> str:
    orch = state.orchestrator
    bucket = orch.view()
    if args:
        task = _resolve_task(bucket, args[0])
    else:
        current = orch.queue.current_task(bucket)
        if current is None:
            return "Nothing to complete."
        task = current

    task = orch.complete_task(task.id)
    took = f" in {_minutes(task.actual_duration)}" if task.actual_duration else ""
    nxt = orch.queue.current_task(orch.view())
    tail = f"\nNext: {nxt.description}" if nxt else "\nAll tasks done!"
    return f"Completed: {task.description}{took}{tail}"


def cmd_rank(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /rank <rank|id> <new rank>"
    new_rank = _parse_int(args[1])
    if new_rank is None:
        return f"Not a rank: {args[1]}"

    orch = state.orchestrator
    task = _resolve_task(orch.view(), args[0])
    if not orch.update_rank(task.id, new_rank):
        return f"Rank must be between 1 and {MAX_ACTIVE_TASKS} (and the task still open)."
    return f"Moved '{task.description}' to #{new_rank}."


def cmd_demote(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /demote <rank|id>"
    orch = state.orchestrator
    task = _resolve_task(orch.view(), args[0])
    record = orch.demote(task.id)
    return f"Moved '{record.description}' to backlog."


def cmd_backlog(state: AppState, args: list[str]) -> str:
    """
    /backlog                  -> list (newest first)
    /backlog report tag:work  -> search text and/or tags
    /backlog delete <n|id>    -> remove an item
    /backlog tags             -> list known tags
    """
    orch = state.orchestrator

    if args and args[0].lower() in ("delete", "del", "rm"):
        if len(args) < 2:
            return "Usage: /backlog delete <n|id>"
        record = _resolve_backlog(orch.view(), args[1])
        orch.delete_backlog(record.id)
        return f"Deleted from backlog: {record.description}"

    bucket = orch.view()

    if args and args[0].lower() == "tags":
        tags = available_tags(bucket.backlog)
        return "Tags: " + (", ".join(tags) if tags else "(none)")

    tags = [a[4:] for a in args if a.lower().startswith("tag:") and len(a) > 4]
    search = " ".join(a for a in args if not a.lower().startswith("tag:"))
    listing = filter_backlog(bucket.backlog, search=search, tags=tags)
    if not listing:
        return "Backlog is empty." if not bucket.backlog else "No backlog items match."

    # Positions refer to the unfiltered listing so /promote and /review accept them.
    positions = {b.id: i for i, b in enumerate(filter_backlog(bucket.backlog), start=1)}
    lines = [f"Backlog ({len(listing)}):"]
    lines.extend(f"  {_fmt_backlog(positions[b.id], b, state)}" for b in listing)
    return "\n".join(lines)


def cmd_promote(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /promote <n|id> <rank> [reasoning]"
    rank = _parse_int(args[1])
    if rank is None:
        return f"Not a rank: {args[1]}"

    orch = state.orchestrator
    record = _resolve_backlog(orch.view(), args[0])
    result = orch.promote(record.id, rank, " ".join(args[2:]))
    if not result.success or result.task is None:
        return f"Rank must be between 1 and {MAX_ACTIVE_TASKS}."

    lines = [f"Promoted to #{result.task.rank}: {result.task.description}"]
    if result.demoted is not None:
        lines.append(f"Queue full: moved '{result.demoted.description}' to backlog.")
    return "\n".join(lines)


def cmd_review(state: AppState, args: list[str]) -> str:
    """
    /review          -> list items that need review
    /review <n|id>   -> mark one as reviewed
    /review all      -> mark every listed item as reviewed
    """
    orch = state.orchestrator
    bucket = orch.view()
    after_days = int(getattr(state.settings, "review_after_days", 14))
    stale = needing_review(bucket.backlog, state.clock.now(), after_days=after_days)

    if not args:
        if not stale:
            return "Nothing needs review."
        lines = [f"Needs review ({len(stale)}):"]
        lines.extend(f"  {_fmt_backlog(i, b, state)}" for i, b in enumerate(stale, start=1))
        return "\n".join(lines)

    if args[0].lower() == "all":
        n = orch.review_all_backlog(after_days)
        return f"Marked {n} item(s) as reviewed."

    record = _resolve_backlog(bucket, args[0])
    orch.review_backlog(record.id)
    return f"Reviewed: {record.description}"


def cmd_insights(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        with contextlib.suppress(Exception):
            emit("[INSIGHTS] Analyzing today...")

    orch = state.orchestrator
    orch.refresh_insights()
    limit = int(getattr(state.settings, "recent_insights_limit", 3))
    recent = orch.recent_insights(limit)
    if not recent:
        return "No new insights yet. Keep completing tasks!"
    lines = ["Insights:"]
    lines.extend(f"  {_fmt_insight(i)}" for i in recent)
    lines.append("Use /ack <id> to dismiss one.")
    return "\n".join(lines)


def cmd_ack(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /ack <insight id>"
    orch = state.orchestrator
    stats = orch.view().statistics
    pool = stats.insights if stats is not None else []
    matches = [i for i in pool if i.id.startswith(args[0])]
    if len(matches) != 1 or not orch.acknowledge_insight(matches[0].id):
        return f"No insight with id {args[0]}."
    return f"Acknowledged: {matches[0].text}"


def cmd_predict(state: AppState, args: list[str]) -> str:
    description = " ".join(args).strip()
    if not description:
        return "Usage: /predict <description>"
    orch = state.orchestrator
    seconds = orch.predict_duration(description)
    when = orch.suggest_time(description)
    line = f"Estimated duration: {_minutes(seconds)}"
    if when is not None:
        line += f"\nBest time: around {when.strftime('%H:%M')}"
    return line


def cmd_energy(state: AppState, args: list[str]) -> str:
    """
    /energy                    -> suggestion for the current energy
    /energy high|medium|low    -> record this morning's energy
    /energy tomorrow <level>   -> predict tomorrow's energy
    """
    orch = state.orchestrator
    levels = {e.value for e in EnergyLevel}

    if args and args[0].lower() == "tomorrow":
        if len(args) < 2 or args[1].lower() not in levels:
            return "Usage: /energy tomorrow high|medium|low"
        orch.predict_tomorrow_energy(EnergyLevel(args[1].lower()))
        return f"Noted: tomorrow looks {args[1].lower()}."

    lines: list[str] = []
    if args:
        if args[0].lower() not in levels:
            return "Usage: /energy [high|medium|low] | /energy tomorrow <level>"
        accuracy = orch.set_morning_energy(EnergyLevel(args[0].lower()))
        if accuracy is not None:
            lines.append(f"Energy prediction accuracy: {int(accuracy * 100)}%")

    alloc = orch.energy_allocation()
    lines.append(alloc.energy.description)
    lines.append(alloc.suggestion)
    lines.extend(f"  {_fmt_task(t)}" for t in alloc.recommended)
    return "\n".join(lines)


def cmd_journal(state: AppState, args: list[str]) -> str:
    """
    /journal highlight <text>
    /journal intention <text>
    /journal gratitude <text>
    """
    fields = ("highlight", "intention", "gratitude")
    if not args or args[0].lower() not in fields:
        bucket = state.orchestrator.view()
        return (
            "Journal:\n"
            f"  Highlight: {bucket.highlight or '-'}\n"
            f"  Intention: {bucket.intention or '-'}\n"
            f"  Gratitude: {bucket.gratitude or '-'}"
        )

    name = args[0].lower()
    state.orchestrator.update_journal(**{name: " ".join(args[1:])})
    return f"Saved {name}."


def cmd_report(state: AppState, args: list[str]) -> str:
    report = state.orchestrator.report()
    lines = [report.summary]
    if report.top_categories:
        top = ", ".join(f"{c} {int(r * 100)}%" for c, r in report.top_categories)
        lines.append(f"  Top categories: {top}")
    if report.struggling_count:
        lines.append(f"  Struggling tasks: {report.struggling_count}")
    if report.recent_insights:
        lines.append("  Recent insights:")
        lines.extend(f"    {_fmt_insight(i)}" for i in report.recent_insights)
    return "\n".join(lines)


def cmd_clear(state: AppState, args: list[str]) -> str:
    n = state.orchestrator.clear_completed()
    return f"Cleared {n} completed task(s)."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show today's queue, focus and backlog summary.")
registry.register("add", cmd_add, help_text="Add a task: /add [#rank] <text> [-- reasoning].", aliases=["a"])
registry.register("list", cmd_list, help_text="Show today's queue.", aliases=["ls", "l"])
registry.register("start", cmd_start, help_text="Start working on a task: /start <rank|id>.")
registry.register("done", cmd_done, help_text="Complete a task (default: the current one).", aliases=["d"])
registry.register("rank", cmd_rank, help_text="Re-rank a task: /rank <rank|id> <new rank>.")
registry.register("demote", cmd_demote, help_text="Move a task to the backlog: /demote <rank|id>.")
registry.register(
    "backlog", cmd_backlog, help_text="Backlog: /backlog [search] [tag:x] | delete <n> | tags.", aliases=["b"]
)
registry.register("promote", cmd_promote, help_text="Promote a backlog item: /promote <n|id> <rank>.")
registry.register("review", cmd_review, help_text="Backlog review: /review | /review <n|id> | /review all.")
registry.register("insights", cmd_insights, help_text="Analyze today and show recent insights.", aliases=["i"])
registry.register("ack", cmd_ack, help_text="Acknowledge an insight: /ack <id>.")
registry.register("predict", cmd_predict, help_text="Predict duration and best time: /predict <text>.")
registry.register("energy", cmd_energy, help_text="Energy: /energy [level] | /energy tomorrow <level>.")
registry.register("journal", cmd_journal, help_text="Journal: /journal highlight|intention|gratitude <text>.")
registry.register("report", cmd_report, help_text="Show the analytics report.")
registry.register("clear", cmd_clear, help_text="Remove completed tasks from today's queue.")
