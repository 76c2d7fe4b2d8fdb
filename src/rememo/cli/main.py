# src/rememo/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the background loop (which
hosts the reminder dispatcher), re-registers reminders for stored tasks, then
runs the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.background import BackgroundLoopRunner, start_background_loop
from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import ConsoleMessenger, run_console_loop
from ..logging_setup import setup_logging
from ..tasks.task_api import resync_reminders

logger = logging.getLogger(__name__)


def _shutdown(state, runner: BackgroundLoopRunner | None) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if runner is not None:
        try:
            runner.stop()
            runner.join(timeout=10.0)
        except Exception:
            logger.debug("Background loop shutdown failed.", exc_info=True)

    # The key-value store uses short-lived sqlite connections per call; no explicit close required.
    state.loop = None


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/rememo")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "rememo"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    runner = start_background_loop(state, ConsoleMessenger())
    if runner is None:
        logger.error("Could not start the background loop; exiting.")
        return

    try:
        outcome = state.run(resync_reminders(state), timeout=60.0)
        if not outcome.ok:
            logger.warning("Some reminders could not be restored: %s", "; ".join(outcome.failures))
    except Exception:
        logger.exception("Failed to restore reminders.")

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        # The REPL handles Ctrl+C itself (KeyboardInterrupt out of input()).
        if not settings.console_enabled:
            signal.signal(signal.SIGINT, _handle_signal)
        signal.signal(signal.SIGTERM, _handle_signal)
    except Exception:
        # Some platforms may not support SIGTERM, etc.
        pass

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Delivering reminders only. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        _shutdown(state, runner)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
