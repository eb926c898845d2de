# src/taskdeck/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from typing import Any, cast

from ..core.dates import parse_date
from ..core.filtering import SortDirection, SortField, StatusFilter
from ..core.models import (
    Category,
    CategoryPatch,
    RecurrenceData,
    RecurrenceType,
    Tag,
    TagPatch,
    Task,
    ValidationResult,
    generate_id,
)
from ..core.search import search_suggestions
from ..core.state import AppState
from ..core.validation import validate_retention_days
from ..tasks import task_api
from ..tasks.task_scheduler import run_recurrence_pass

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

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

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            # Unbalanced quotes: fall back to plain whitespace splitting.
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
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


def _split_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    words: list[str] = []
    opts: dict[str, str] = {}
    for a in args:
        key, sep, value = a.partition("=")
        if sep and key and key.isidentifier():
            opts[key.lower()] = value
        else:
            words.append(a)
    return words, opts


def _csv(value: str) -> list[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


def _resolve_named(items: tuple[Any, ...], ref: str) -> Any | None:
    ref_l = ref.strip().lower()
    for item in items:
        if item.id == ref or item.name.lower() == ref_l:
            return item
    return None


def _task_fields(state: AppState, opts: dict[str, str]) -> tuple[dict[str, Any], list[str]]:
    """Translate key=value options into Task field values."""
    fields: dict[str, Any] = {}
    errors: list[str] = []

    if "title" in opts:
        fields["title"] = opts["title"]
    if "desc" in opts:
        fields["description"] = opts["desc"]
    if "cat" in opts:
        cat = _resolve_named(state.store.categories, opts["cat"])
        if cat is None:
            errors.append(f"Unknown category: {opts['cat']}")
        else:
            fields["category_id"] = cat.id
    if "tags" in opts:
        ids: list[str] = []
        for ref in _csv(opts["tags"]):
            tag = _resolve_named(state.store.tags, ref)
            if tag is None:
                errors.append(f"Unknown tag: {ref}")
            elif tag.id not in ids:
                ids.append(tag.id)
        fields["tag_ids"] = tuple(ids)
    if "pri" in opts:
        fields["priority"] = opts["pri"]
    if "due" in opts:
        if opts["due"] in ("", "none"):
            fields["due_date"] = None
        else:
            due = parse_date(opts["due"])
            if due is None:
                errors.append(f"Invalid date: {opts['due']} (use YYYY-MM-DD)")
            else:
                fields["due_date"] = due
    if "time" in opts:
        fields["due_time"] = opts["time"] or None
    if "repeat" in opts:
        rtype = RecurrenceType.parse(opts["repeat"])
        fields["recurrence_type"] = rtype
        fields["is_recurring"] = rtype != RecurrenceType.NONE
    if "days" in opts:
        try:
            days = tuple(int(d) for d in _csv(opts["days"]))
        except ValueError:
            errors.append(f"Invalid weekdays: {opts['days']} (use 0-6, Sunday=0)")
        else:
            fields["recurrence_data"] = RecurrenceData(weekdays=days)

    return fields, errors


def _resolve_task(state: AppState, ref: str) -> Task | None:
    """Accept a list position (1-based, as shown), a full id or a unique id prefix."""
    if ref.isdigit():
        ids = state.view.ids
        idx = int(ref) - 1
        if 0 <= idx < len(ids):
            return state.store.get_task(ids[idx])
        return None

    task = state.store.get_task(ref)
    if task is not None:
        return task
    matches = [t for t in state.store.tasks if t.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None


def _errors(result: ValidationResult) -> str:
    return "\n".join(f"  - {e}" for e in result.errors)


def _show(state: AppState, prefix: str = "") -> str:
    task_api.refresh_view(state)
    listing = task_api.render_list(state)
    return f"{prefix}\n{listing}" if prefix else listing


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    return _show(state)


def cmd_more(state: AppState, args: list[str]) -> str:
    state.show_all = not state.show_all
    return _show(state)


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add Buy milk cat=personal tags=urgent pri=high due=2026-01-31 time=09:00
    /add Standup repeat=weekly days=1,3,5 due=2026-01-05
    """
    words, opts = _split_options(args)
    title = opts.pop("title", " ".join(words))
    fields, errors = _task_fields(state, opts)
    if errors:
        return "Cannot add task:\n" + "\n".join(f"  - {e}" for e in errors)

    task, result = task_api.create_task(state, title, **fields)
    if not result:
        return "Cannot add task:\n" + _errors(result)
    return _show(state, f"Added: {task.title}")


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <n|id> title=... desc=... cat=... tags=a,b pri=... due=... time=... repeat=... days=..."""
    if not args:
        return "Usage: /edit <n|id> key=value ..."
    task = _resolve_task(state, args[0])
    if task is None:
        return f"Task not found: {args[0]}"

    _, opts = _split_options(args[1:])
    fields, errors = _task_fields(state, opts)
    if errors:
        return "Cannot edit task:\n" + "\n".join(f"  - {e}" for e in errors)
    if not fields:
        return "Nothing to change."

    result = task_api.edit_task(state, task.id, **fields)
    if not result:
        return "Cannot edit task:\n" + _errors(result)
    return _show(state, "Task updated.")


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <n|id>"
    task = _resolve_task(state, args[0])
    if task is None:
        return f"Task not found: {args[0]}"

    updated = task_api.toggle_complete(state, task.id)
    if updated is None:
        return f"Task not found: {args[0]}"
    verb = "Completed" if updated.completed else "Reopened"
    return _show(state, f"{verb}: {updated.title}")


def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <n|id>"
    task = _resolve_task(state, args[0])
    if task is None or not state.store.delete_task(task.id):
        return f"Task not found: {args[0]}"
    return _show(state, f"Deleted: {task.title}")


def cmd_filter(state: AppState, args: list[str]) -> str:
    """/filter all|completed|recurring|today|upcoming|overdue|low|medium|high"""
    if not args:
        choices = ", ".join(s.value for s in StatusFilter)
        return f"Status filter: {state.filter_state.status_filter.value}. Choices: {choices}"
    state.filter_state.set_status(args[0])
    state.show_all = False
    task_api.persist_filter_state(state)
    return _show(state)


def cmd_cat(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /cat <id|name> (again to clear)"
    cat = _resolve_named(state.store.categories, " ".join(args))
    if cat is None:
        return f"Unknown category: {' '.join(args)}"
    state.filter_state.toggle_category(cat.id)
    task_api.persist_filter_state(state)
    return _show(state)


def cmd_tag(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /tag <id|name> (again to clear)"
    tag = _resolve_named(state.store.tags, " ".join(args))
    if tag is None:
        return f"Unknown tag: {' '.join(args)}"
    state.filter_state.toggle_tag(tag.id)
    task_api.persist_filter_state(state)
    return _show(state)


def cmd_search(state: AppState, args: list[str]) -> str:
    term = " ".join(args)
    state.filter_state.set_search(term)
    task_api.persist_filter_state(state)
    listing = _show(state)
    if term and not state.view.ids:
        hints = search_suggestions(state.store.tasks, state.store.categories, state.store.tags, term)
        if hints:
            listing += "\n  Did you mean: " + ", ".join(hints)
    return listing


def cmd_sort(state: AppState, args: list[str]) -> str:
    """/sort <field> [asc|desc]"""
    if not args:
        fields = ", ".join(f.value for f in SortField)
        fs = state.filter_state
        return f"Sorted by {fs.sort_field.value} {fs.sort_direction.value}. Fields: {fields}"
    if args[0] not in {f.value for f in SortField}:
        return f"Unknown sort field: {args[0]}"
    direction = args[1] if len(args) > 1 else None
    if direction is not None and direction not in {d.value for d in SortDirection}:
        return f"Unknown sort direction: {direction}"
    state.filter_state.set_sort(args[0], direction)
    task_api.persist_filter_state(state)
    return _show(state)


def cmd_clear(state: AppState, args: list[str]) -> str:
    state.filter_state.clear()
    state.filter_state.set_search("")
    state.show_all = False
    task_api.persist_filter_state(state)
    return _show(state)


def cmd_retention(state: AppState, args: list[str]) -> str:
    if not args:
        return f"Completed tasks stay visible for {state.filter_state.completed_retention_days} day(s)."
    try:
        days = int(args[0])
    except ValueError:
        return "Usage: /retention <days>"
    result = validate_retention_days(days)
    if not result:
        return _errors(result)
    state.filter_state.completed_retention_days = days
    task_api.persist_filter_state(state)
    return _show(state)


def cmd_stats(state: AppState, args: list[str]) -> str:
    s = state.store.task_stats()
    return (
        "Stats:\n"
        f"  Total: {s.total}  Completed: {s.completed}  Pending: {s.pending}\n"
        f"  Overdue: {s.overdue}  Due today: {s.due_today}  Upcoming: {s.upcoming}\n"
        f"  Recurring: {s.recurring}"
    )


def cmd_recur(state: AppState, args: list[str]) -> str:
    created = run_recurrence_pass(state.store)
    return _show(state, f"Generated {len(created)} occurrence(s).")


def _named_listing(items: tuple[Any, ...], usage: Callable[[str], int], label: str) -> str:
    if not items:
        return f"No {label} yet."
    lines = [f"{label.capitalize()}:"]
    for item in items:
        lines.append(f"  {item.id:<12} {item.name:<20} {item.color}  ({usage(item.id)} task(s))")
    return "\n".join(lines)


def cmd_categories(state: AppState, args: list[str]) -> str:
    """
    /categories                       -> list
    /categories add <name> [#RRGGBB]  -> create
    /categories rename <id> <name>    -> rename
    /categories rm <id>               -> delete (only when unused)
    """
    store = state.store
    if not args:
        return _named_listing(store.categories, store.category_usage, "categories")

    sub = args[0].lower()
    if sub == "add" and len(args) >= 2:
        color = args[2] if len(args) > 2 else "#007bff"
        result = store.add_category(Category(id=generate_id("cat"), name=args[1], color=color))
    elif sub == "rename" and len(args) >= 3:
        result = store.update_category(args[1], CategoryPatch(name=" ".join(args[2:])))
    elif sub == "color" and len(args) >= 3:
        result = store.update_category(args[1], CategoryPatch(color=args[2]))
    elif sub == "rm" and len(args) >= 2:
        result = store.delete_category(args[1])
    else:
        return "Usage: /categories [add <name> [#RRGGBB] | rename <id> <name> | color <id> <#RRGGBB> | rm <id>]"

    if not result:
        return "Cannot change categories:\n" + _errors(result)
    task_api.refresh_view(state)
    return _named_listing(store.categories, store.category_usage, "categories")


def cmd_tags(state: AppState, args: list[str]) -> str:
    """Same sub-commands as /categories."""
    store = state.store
    if not args:
        return _named_listing(store.tags, store.tag_usage, "tags")

    sub = args[0].lower()
    if sub == "add" and len(args) >= 2:
        color = args[2] if len(args) > 2 else "#dc3545"
        result = store.add_tag(Tag(id=generate_id("tag"), name=args[1], color=color))
    elif sub == "rename" and len(args) >= 3:
        result = store.update_tag(args[1], TagPatch(name=" ".join(args[2:])))
    elif sub == "color" and len(args) >= 3:
        result = store.update_tag(args[1], TagPatch(color=args[2]))
    elif sub == "rm" and len(args) >= 2:
        result = store.delete_tag(args[1])
    else:
        return "Usage: /tags [add <name> [#RRGGBB] | rename <id> <name> | color <id> <#RRGGBB> | rm <id>]"

    if not result:
        return "Cannot change tags:\n" + _errors(result)
    task_api.refresh_view(state)
    return _named_listing(store.tags, store.tag_usage, "tags")


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show the task list.", aliases=["ls"])
registry.register("more", cmd_more, help_text="Toggle showing all tasks vs. one page.")
registry.register("add", cmd_add, help_text="Add a task: /add <title> [cat= tags= pri= due= time= repeat= days= desc=].")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <n|id> key=value ...")
registry.register("done", cmd_done, help_text="Toggle completion: /done <n|id>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <n|id>.")
registry.register("filter", cmd_filter, help_text="Status filter: /filter all|completed|recurring|today|upcoming|overdue|low|medium|high.")
registry.register("cat", cmd_cat, help_text="Toggle category filter: /cat <id|name>.")
registry.register("tag", cmd_tag, help_text="Toggle tag filter: /tag <id|name>.")
registry.register("search", cmd_search, help_text="Search title/description/category/tags: /search <term> (empty clears).")
registry.register("sort", cmd_sort, help_text="Sort: /sort createdAt|title|priority|status|category|tags|dueDate [asc|desc].")
registry.register("clear", cmd_clear, help_text="Clear status/category/tag filters and search.")
registry.register("retention", cmd_retention, help_text="Days completed tasks stay visible: /retention <1-365>.")
registry.register("stats", cmd_stats, help_text="Show task counters.")
registry.register("recur", cmd_recur, help_text="Run a recurrence pass now.")
registry.register("categories", cmd_categories, help_text="Manage categories: /categories [add|rename|color|rm].")
registry.register("tags", cmd_tags, help_text="Manage tags: /tags [add|rename|color|rm].")
