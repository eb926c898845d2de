# src/taskdeck/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the recurrence scheduler in a background thread (optional),
- the console REPL in the main thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..tasks import task_api
from ..tasks.task_runner import start_recurrence_in_background
from ..tasks.task_scheduler import run_recurrence_pass

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        with state.lock:
            task_api.persist_filter_state(state)
    except Exception:
        logger.exception("Failed to save filter state.")


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/taskdeck")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "taskdeck"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    if settings.recurrence_on_start:
        try:
            created = run_recurrence_pass(state.store)
            logger.info("Startup recurrence pass created %d occurrence(s).", len(created))
        except Exception:
            logger.exception("Startup recurrence pass failed.")

    runner = start_recurrence_in_background(state)

    try:
        run_console_loop(state)
    finally:
        if runner is not None:
            runner.stop()
            runner.join(timeout=10.0)

        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
