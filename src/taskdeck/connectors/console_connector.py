# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks import task_api

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, line: str, emit: Callable[[str], None] | None = None) -> str:
    """
    One REPL step: commands go to the registry, plain text adds a task.

    Runs under state.lock so it never interleaves with a background recurrence pass.
    """
    with state.lock:
        try:
            if line.startswith("/"):
                reply = command_registry.handle(state, line, emit=emit)
                return reply if reply is not None else ""
            return command_registry.handle(state, f"/add {line}", emit=emit) or ""
        except Exception:
            logger.exception("Command handler crashed.")
            return "Internal error while handling a command."


def run_console_loop(state: AppState) -> None:
    app_name = str(getattr(state.settings, "app_name", "taskdeck"))
    logger.info("Console connector started.")
    _print_ts(f"[{app_name}] Type a task title to add it. Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    with state.lock:
        try:
            task_api.refresh_view(state)
            print(task_api.render_list(state))
        except Exception:
            logger.exception("Initial render failed.")

    while True:
        try:
            user_input = input("> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        reply = handle_line(state, user_input, emit=emit)
        if reply:
            print(reply)

    logger.info("Console connector finished.")
