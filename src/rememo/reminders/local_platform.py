# src/rememo/reminders/local_platform.py

from __future__ import annotations

"""
In-process notification platform.

LocalNotificationCenter stands in for the host notification service when
rememo runs as a plain Python process:
- keeps daily triggers in memory until cancelled,
- queues immediate (trigger=None) notifications,
- hands out due deliveries via collect_due().

run_notification_dispatcher() is the polling loop that pushes due deliveries
to an OutboundMessenger (the console connector prints them).
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.ports import OutboundMessenger
from .notification_models import (
    DailyTrigger,
    NotificationBehavior,
    NotificationChannel,
    NotificationContent,
    PermissionStatus,
    ScheduledNotification,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Delivery:
    identifier: str
    content: NotificationContent
    fired_at: datetime

    def text(self) -> str:
        return f"{self.content.title}: {self.content.body}"


@dataclass(slots=True)
class _Entry:
    identifier: str
    content: NotificationContent
    trigger: DailyTrigger
    next_fire: datetime


def next_fire_time(trigger: DailyTrigger, now: datetime) -> datetime:
    """Today at HH:MM, or tomorrow at HH:MM if that moment has already passed."""
    candidate = now.replace(hour=trigger.hour, minute=trigger.minute, second=0, microsecond=0)
    if candidate < now:
        candidate += timedelta(days=1)
    return candidate


class LocalNotificationCenter:
    """
    NotificationPlatform implementation that lives in this process.

    Times are naive local wall-clock datetimes from `clock` (datetime.now by default).
    Nothing is persisted: reminders are rebuilt from the stored tasks at start-up.
    """

    def __init__(
        self,
        permission: PermissionStatus = PermissionStatus.UNDETERMINED,
        *,
        auto_grant: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._permission = permission
        self._auto_grant = auto_grant
        self._clock = clock or datetime.now
        self._behavior = NotificationBehavior()
        self._channels: dict[str, NotificationChannel] = {}
        self._entries: dict[str, _Entry] = {}
        self._immediate: list[Delivery] = []
        self._token: str | None = None

    # ---- NotificationPlatform port ----

    async def get_permission_status(self) -> PermissionStatus:
        return self._permission

    async def request_permission(self) -> PermissionStatus:
        # A user who already answered is not asked again.
        if self._permission == PermissionStatus.UNDETERMINED:
            self._permission = PermissionStatus.GRANTED if self._auto_grant else PermissionStatus.DENIED
            logger.info("Notification permission requested -> %s", self._permission.value)
        return self._permission

    async def get_delivery_token(self) -> str:
        if self._permission != PermissionStatus.GRANTED:
            raise PermissionError("notification permission not granted")
        if self._token is None:
            self._token = f"LocalPushToken[{uuid.uuid4().hex}]"
        return self._token

    async def create_notification_channel(self, channel: NotificationChannel) -> None:
        self._channels[channel.id] = channel
        logger.debug("Notification channel set id=%s importance=%s", channel.id, channel.importance.value)

    def set_notification_handler(self, behavior: NotificationBehavior) -> None:
        self._behavior = behavior

    async def schedule_notification(
        self,
        content: NotificationContent,
        trigger: DailyTrigger | None,
    ) -> str:
        identifier = str(uuid.uuid4())
        now = self._clock()

        if trigger is None:
            self._immediate.append(Delivery(identifier=identifier, content=content, fired_at=now))
            logger.debug("Immediate notification queued id=%s", identifier)
            return identifier

        entry = _Entry(
            identifier=identifier,
            content=content,
            trigger=trigger,
            next_fire=next_fire_time(trigger, now),
        )
        self._entries[identifier] = entry
        logger.debug(
            "Daily notification scheduled id=%s at=%02d:%02d next=%s",
            identifier,
            trigger.hour,
            trigger.minute,
            entry.next_fire.isoformat(timespec="minutes"),
        )
        return identifier

    async def list_scheduled_notifications(self) -> list[ScheduledNotification]:
        return [
            ScheduledNotification(identifier=e.identifier, content=e.content, trigger=e.trigger)
            for e in self._entries.values()
        ]

    async def cancel_notification(self, identifier: str) -> None:
        if self._entries.pop(identifier, None) is not None:
            logger.debug("Notification cancelled id=%s", identifier)

    # ---- local helpers ----

    @property
    def behavior(self) -> NotificationBehavior:
        return self._behavior

    @property
    def channels(self) -> dict[str, NotificationChannel]:
        return dict(self._channels)

    def next_fire_of(self, identifier: str) -> datetime | None:
        e = self._entries.get(identifier)
        return None if e is None else e.next_fire

    def collect_due(self, now: datetime | None = None) -> list[Delivery]:
        """
        Pop everything that should be presented at `now`.

        A daily entry fires at most once per call even if several days were
        missed; its next fire time moves to the first slot after `now`.
        """
        if now is None:
            now = self._clock()

        due, self._immediate = self._immediate, []

        for e in self._entries.values():
            if e.next_fire > now:
                continue
            due.append(Delivery(identifier=e.identifier, content=e.content, fired_at=now))
            nxt = next_fire_time(e.trigger, now)
            if nxt <= now:
                nxt += timedelta(days=1)
            e.next_fire = nxt

        return due


async def run_notification_dispatcher(
        center: LocalNotificationCenter,
        messenger: OutboundMessenger,
        *,
        interval_seconds: float = 15.0,
) -> None:
    """
    Simple polling dispatcher.

    Every interval_seconds:
    - collect due deliveries from the center
    - present each one via messenger.send_text(...) when the handler shows alerts
    - log and continue on send failures (a lost reminder must not stop the loop)

    To stop the dispatcher, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while True:
        try:
            due = center.collect_due()
        except Exception:
            logger.exception("collect_due failed")
            due = []

        for delivery in due:
            if not center.behavior.show_alert:
                logger.info("Notification id=%s delivered silently", delivery.identifier)
                continue
            try:
                await messenger.send_text(text=delivery.text())
                logger.info("Notification delivered id=%s", delivery.identifier)
            except Exception:
                logger.exception("Notification delivery failed id=%s", delivery.identifier)

        await asyncio.sleep(sleep_s)
