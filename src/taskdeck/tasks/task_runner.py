# src/taskdeck/tasks/task_runner.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..core.state import AppState
from .task_scheduler import run_recurrence_scheduler

logger = logging.getLogger(__name__)


async def _run_until_stopped(state: AppState, stop_event: asyncio.Event, interval: float) -> None:
    scheduler_task = asyncio.create_task(
        run_recurrence_scheduler(state.store, interval_seconds=interval, lock=state.lock)
    )
    try:
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Recurrence runner cancelled.")
    finally:
        scheduler_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await scheduler_task
        logger.info("Recurrence runner stopped.")


@dataclass
class RecurrenceBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal recurrence runner stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_recurrence_in_background(state: AppState) -> RecurrenceBackgroundRunner | None:
    """
    Start the recurrence scheduler in a background thread with its own event loop.

    The console REPL blocks on input(), so the polling loop cannot share its
    thread. Store access from both sides goes through state.lock.
    A non-positive settings.recurrence_interval_seconds disables the runner.
    """
    interval = float(getattr(state.settings, "recurrence_interval_seconds", 3600.0))
    if interval <= 0:
        logger.info("Recurrence scheduler disabled, not starting.")
        return None

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_until_stopped(state, stop_event, interval))
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="recurrence", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Recurrence thread did not initialize properly.")
        return None

    logger.info("Recurrence background thread started (interval=%.0fs).", interval)
    return RecurrenceBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
