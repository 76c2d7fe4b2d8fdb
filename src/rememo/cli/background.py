# src/rememo/cli/background.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..core.ports import OutboundMessenger
from ..core.state import AppState
from ..reminders.local_platform import LocalNotificationCenter, run_notification_dispatcher

logger = logging.getLogger(__name__)


@dataclass
class BackgroundLoopRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal background loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


async def _run_until_stopped(
    state: AppState,
    stop_event: asyncio.Event,
    messenger: OutboundMessenger | None,
) -> None:
    dispatcher: asyncio.Task[None] | None = None
    settings = state.settings
    platform = state.platform

    if (
        messenger is not None
        and getattr(settings, "notifications_enabled", True)
        and isinstance(platform, LocalNotificationCenter)
    ):
        dispatcher = asyncio.create_task(
            run_notification_dispatcher(
                platform,
                messenger,
                interval_seconds=float(getattr(settings, "dispatch_interval_seconds", 15.0)),
            )
        )
        logger.info("Notification dispatcher started.")

    try:
        await stop_event.wait()
    finally:
        if dispatcher is not None:
            dispatcher.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await dispatcher
            logger.info("Notification dispatcher stopped.")


def start_background_loop(
    state: AppState,
    messenger: OutboundMessenger | None = None,
) -> BackgroundLoopRunner | None:
    """
    Start the app event loop in a background thread and attach it to state.

    Why a thread:
    - console REPL is blocking (input()).
    - the store, the platform and the dispatcher are async and share one loop.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        loop.call_soon(ready.set)

        try:
            loop.run_until_complete(_run_until_stopped(state, stop_event, messenger))
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_default_executor())
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="rememo-loop", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Background loop did not initialize properly.")
        return None

    state.loop = loop
    logger.info("Background loop started.")
    return BackgroundLoopRunner(thread=t, loop=loop, stop_event=stop_event)
