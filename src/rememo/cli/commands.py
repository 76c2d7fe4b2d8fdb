# src/rememo/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable
from typing import cast

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_models import Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_TIME_TOKEN_RE = re.compile(r"^\d{1,2}:\d{2}$")


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


def _format_task(i: int, t: Task) -> str:
    mark = "x" if t.completed else " "
    times = ", ".join(t.times) if t.times else "no times"
    bell = "" if t.reminder_enabled else " (reminders off)"
    supply = ""
    if t.current_supply is not None:
        supply = f" supply={t.current_supply}"
        if t.energy_at is not None:
            supply += f" low<={t.energy_at}"
    return f"{i}. [{mark}] {t.id} {t.name} @ {times}{bell}{supply}"


def _parse_add_args(args: list[str]) -> dict:
    """
    /add <name...> [HH:MM ...] [supply=N] [low=N] [remind=off]

    Tokens that look like times or key=value options are pulled out; the rest is the name.
    """
    name_parts: list[str] = []
    times: list[str] = []
    opts: dict = {}

    for tok in args:
        if _TIME_TOKEN_RE.match(tok):
            times.append(tok)
            continue
        key, sep, val = tok.partition("=")
        if sep and key.lower() in {"supply", "low", "remind"}:
            k = key.lower()
            if k == "remind":
                opts["reminder_enabled"] = val.strip().lower() not in {"off", "0", "false", "no"}
            else:
                try:
                    n = int(val)
                except ValueError as e:
                    raise ValueError(f"{k} must be an integer, got {val!r}") from e
                if k == "supply":
                    opts["current_supply"] = n
                else:
                    opts["energy_at"] = n
                    opts["energy_reminder"] = True
            continue
        name_parts.append(tok)

    return {"name": " ".join(name_parts), "times": times, **opts}


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    tasks = state.run(state.task_store.list_tasks())
    scheduled = state.run(state.platform.list_scheduled_notifications())
    permission = state.run(state.platform.get_permission_status())
    return (
        "Status:\n"
        f"  Tasks: {len(tasks)}\n"
        f"  Scheduled reminders: {len(scheduled)}\n"
        f"  Notification permission: {permission.value}\n"
        f"  Storage: {getattr(state.settings, 'kv_db_path', '?')}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /add <name> [HH:MM ...] [supply=N] [low=N] [remind=off]"
    try:
        task = task_api.build_task(**_parse_add_args(args))
    except ValueError as e:
        return f"Error: {e}"

    try:
        outcome = state.run(task_api.create_task(state, task))
    except Exception:
        logger.exception("Save error task_id=%s", task.id)
        return "Failed to save task. Please try again."

    msg = f"Task added: {task.id} {task.name}"
    if outcome.scheduled:
        msg += f" ({len(outcome.scheduled)} reminder(s) scheduled)"
    if outcome.failures:
        msg += f" [reminder problems: {'; '.join(outcome.failures)}]"
    return msg


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.run(state.task_store.list_tasks())
    if not tasks:
        return "No tasks yet. Use /add to create one."
    return "\n".join(_format_task(i, t) for i, t in enumerate(tasks, start=1))


def _effort(state: AppState, args: list[str], completed: bool) -> str:
    if not args:
        return f"Usage: /{'done' if completed else 'skip'} <task_id>"
    task_id = args[0]
    if state.run(state.task_store.get_task(task_id)) is None:
        return f"No task with id {task_id}."
    try:
        outcome, reminder = state.run(task_api.log_effort(state, task_id, completed))
    except Exception:
        logger.exception("recordEffort failed task_id=%s", task_id)
        return "Failed to record. Please try again."

    msg = f"Recorded {'done' if completed else 'skipped'} for {task_id}."
    if outcome.updated_task is not None:
        msg += f" Supply left: {outcome.updated_task.current_supply}."
    if reminder.scheduled:
        msg += " Supply is running low."
    return msg


def cmd_done(state: AppState, args: list[str]) -> str:
    return _effort(state, args, True)


def cmd_skip(state: AppState, args: list[str]) -> str:
    return _effort(state, args, False)


def cmd_toggle(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /toggle <task_id>"
    updated = state.run(task_api.toggle_task_completed(state, args[0]))
    if updated is None:
        return f"No task with id {args[0]}."
    return f"{updated.name}: {'completed' if updated.completed else 'not completed'}."


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <task_id>"
    if state.run(task_api.remove_task(state, args[0])):
        return f"Task {args[0]} deleted."
    return f"No task with id {args[0]}."


def cmd_history(state: AppState, args: list[str]) -> str:
    """
    /history        -> all effort entries
    /history today  -> today's entries only
    """
    today_only = bool(args) and args[0].lower() == "today"
    entries = state.run(
        state.task_store.list_todays_history() if today_only else state.task_store.list_history()
    )
    if not entries:
        return "No history yet."
    names = {t.id: t.name for t in state.run(state.task_store.list_tasks())}
    lines = []
    for h in entries:
        name = names.get(h.task_id, f"(deleted {h.task_id})")
        lines.append(f"{h.timestamp} {'done' if h.completed else 'missed'} {name}")
    return "\n".join(lines)


def cmd_today(state: AppState, args: list[str]) -> str:
    progress = state.run(task_api.daily_progress(state))
    pct = round(progress.fraction * 100)
    return f"Today: {progress.completed} of {progress.total} done ({pct}%)."


def cmd_remind(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /remind <task_id>"
    task = state.run(state.task_store.get_task(args[0]))
    if task is None:
        return f"No task with id {args[0]}."
    outcome = state.run(state.reminders.update_task_reminders(task))
    active = [
        n
        for n in state.run(state.platform.list_scheduled_notifications())
        if (n.content.data or {}).get("taskId") == task.id
    ]
    msg = f"Reminders refreshed for {task.name}: {len(active)} active."
    if outcome.failures:
        msg += f" Problems: {'; '.join(outcome.failures)}"
    return msg


def cmd_scheduled(state: AppState, args: list[str]) -> str:
    items = state.run(state.platform.list_scheduled_notifications())
    if not items:
        return "No reminders scheduled."
    lines = []
    for n in items:
        task_id = (n.content.data or {}).get("taskId", "?")
        lines.append(f"{n.trigger.hour:02d}:{n.trigger.minute:02d} {n.content.body} [task {task_id}]")
    return "\n".join(sorted(lines))


def cmd_token(state: AppState, args: list[str]) -> str:
    token = state.run(state.reminders.register_device_token())
    if token is None:
        return "Notifications are not permitted on this device."
    return f"Device token: {token}"


def cmd_clear(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args or args[0].lower() != "yes":
        return "This deletes all tasks and history. Confirm with: /clear yes"
    tasks = state.run(state.task_store.list_tasks())
    if emit and tasks:
        emit(f"Cancelling reminders for {len(tasks)} task(s)...")
    for t in tasks:
        state.run(state.reminders.cancel_task_reminders(t.id))
    try:
        state.run(state.task_store.clear_all())
    except Exception:
        logger.exception("Error clearing data")
        return "Failed to clear data. Please try again."
    return "All tasks and history cleared."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show task/reminder counts and storage path.")
registry.register(
    "add", cmd_add, help_text="Add a task: /add <name> [HH:MM ...] [supply=N] [low=N] [remind=off]."
)
registry.register("list", cmd_list, help_text="List tasks.", aliases=["ls"])
registry.register("done", cmd_done, help_text="Record a completed effort: /done <task_id>.")
registry.register("skip", cmd_skip, help_text="Record a missed effort: /skip <task_id>.")
registry.register("toggle", cmd_toggle, help_text="Toggle a task's completed flag: /toggle <task_id>.")
registry.register("delete", cmd_delete, help_text="Delete a task and its reminders: /delete <task_id>.")
registry.register("history", cmd_history, help_text="Effort history: /history | /history today.")
registry.register("today", cmd_today, help_text="Today's progress.")
registry.register("remind", cmd_remind, help_text="Re-register reminders for a task: /remind <task_id>.")
registry.register("scheduled", cmd_scheduled, help_text="List scheduled reminders.")
registry.register("token", cmd_token, help_text="Request notification permission and show the device token.")
registry.register("clear", cmd_clear, help_text="Delete all tasks and history: /clear yes.")
