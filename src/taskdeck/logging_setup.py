# src/taskdeck/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "taskdeck.log"

# Loggers that fire on every list refresh; kept out of the console below WARNING.
PER_PASS_LOGGERS = frozenset({"taskdeck.core.filtering", "taskdeck.core.reconcile"})


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep stderr quiet while the REPL prints the task list on stdout.

    Every command re-filters and reconciles the list, so those two modules
    only reach the console with warnings (e.g. a reconciliation fallback).
    Scheduler, store and CLI records pass at the handler level; anything
    outside taskdeck, including captured Python warnings, needs ERROR.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("taskdeck."):
            if name in PER_PASS_LOGGERS:
                return record.levelno >= logging.WARNING
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskdeck",
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route taskdeck logs to two handlers and return the log file path.

    - stderr, at console_level, through _ConsoleNoiseFilter;
    - <log_dir>/taskdeck.log, at file_level, unfiltered (per-pass debug lines,
      generated occurrences, storage writes).

    Detaches any handlers already on the root logger, so calling it again
    (tests, a second main()) does not duplicate output.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(threadName)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    # The recurrence runner logs from its own thread; threadName tells them apart.
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
