# src/rememo/reminders/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

Translates a Task's reminder intent into notifications registered on the
host platform, and reverses that registration on demand.

The scheduler keeps no state of its own: every call rebuilds what it needs
from the Task fields, and cancellation re-scans everything the platform has
scheduled.

Best-effort contract:
- platform failures are logged and collected in ReminderOutcome.failures
- nothing here raises into the caller (the user must never be blocked by reminders)
"""

import logging
from dataclasses import dataclass, field

from ..core.ports import NotificationPlatform
from ..tasks.task_models import Task, parse_time_of_day
from .notification_models import (
    ChannelImportance,
    DailyTrigger,
    NotificationBehavior,
    NotificationChannel,
    NotificationContent,
    PermissionStatus,
)

logger = logging.getLogger(__name__)

TASK_REMINDER_TITLE = "Task Reminder"
ENERGY_REMINDER_TITLE = "Energy Reminder"
ENERGY_PAYLOAD_TYPE = "Energy"

DEFAULT_CHANNEL = NotificationChannel(
    id="default",
    name="default",
    importance=ChannelImportance.MAX,
    vibration_pattern=(0, 250, 250, 250),
    light_color="#1a8e2d",
)


@dataclass(slots=True)
class ReminderOutcome:
    """What a scheduler call actually did on the platform."""

    scheduled: list[str] = field(default_factory=list)
    cancelled: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def merge(self, other: ReminderOutcome) -> ReminderOutcome:
        self.scheduled.extend(other.scheduled)
        self.cancelled.extend(other.cancelled)
        self.failures.extend(other.failures)
        return self


class ReminderScheduler:
    def __init__(self, platform: NotificationPlatform, *, channel_id: str = "default") -> None:
        self._platform = platform
        self._channel_id = channel_id or "default"

    @property
    def platform(self) -> NotificationPlatform:
        return self._platform

    async def register_device_token(self) -> str | None:
        """
        Ask for permission if needed and return the delivery token.

        None means "no notifications for this device" (denied, unavailable, or
        the platform failed); callers must check for it.
        """
        try:
            status = await self._platform.get_permission_status()
            if status != PermissionStatus.GRANTED:
                status = await self._platform.request_permission()
            if status != PermissionStatus.GRANTED:
                logger.info("Notification permission not granted (status=%s)", status.value)
                return None

            channel = NotificationChannel(
                id=self._channel_id,
                name=self._channel_id,
                importance=DEFAULT_CHANNEL.importance,
                vibration_pattern=DEFAULT_CHANNEL.vibration_pattern,
                light_color=DEFAULT_CHANNEL.light_color,
            )
            await self._platform.create_notification_channel(channel)
            token = await self._platform.get_delivery_token()
        except Exception:
            logger.exception("Error getting push token")
            return None

        logger.info("Device token registered")
        return token

    async def schedule_task_reminder(self, task: Task) -> ReminderOutcome:
        """Register one daily-repeating notification per entry of task.times."""
        out = ReminderOutcome()
        if not task.reminder_enabled:
            return out

        for raw_time in task.times:
            try:
                hour, minute = parse_time_of_day(raw_time)
            except ValueError as e:
                logger.warning("Skipping reminder for task_id=%s: %s", task.id, e)
                out.failures.append(str(e))
                continue

            content = NotificationContent(
                title=TASK_REMINDER_TITLE,
                body=f"Time for {task.name}",
                data={"taskId": task.id},
                channel_id=self._channel_id,
            )
            try:
                identifier = await self._platform.schedule_notification(
                    content, DailyTrigger(hour=hour, minute=minute)
                )
            except Exception as e:
                logger.exception("Error scheduling task reminder task_id=%s time=%s", task.id, raw_time)
                out.failures.append(f"schedule {raw_time}: {e}")
                continue

            out.scheduled.append(identifier)

        logger.debug(
            "Task reminders scheduled task_id=%s ids=%s failures=%d",
            task.id,
            out.scheduled,
            len(out.failures),
        )
        return out

    async def schedule_energy_reminder(self, task: Task) -> ReminderOutcome:
        """Fire an immediate low-supply notification when supply <= threshold."""
        out = ReminderOutcome()
        if not task.energy_reminder or not task.is_supply_low():
            return out

        content = NotificationContent(
            title=ENERGY_REMINDER_TITLE,
            body=(
                f"Your {task.name} supply is running low. "
                f"Current supply: {task.current_supply}"
            ),
            data={"taskId": task.id, "type": ENERGY_PAYLOAD_TYPE},
            channel_id=self._channel_id,
        )
        try:
            identifier = await self._platform.schedule_notification(content, None)
        except Exception as e:
            logger.exception("Error scheduling energy reminder task_id=%s", task.id)
            out.failures.append(f"energy: {e}")
            return out

        out.scheduled.append(identifier)
        logger.info("Energy reminder fired task_id=%s supply=%s", task.id, task.current_supply)
        return out

    async def cancel_task_reminders(self, task_id: str) -> ReminderOutcome:
        """Cancel every scheduled notification whose payload references task_id."""
        out = ReminderOutcome()
        try:
            scheduled = await self._platform.list_scheduled_notifications()
        except Exception as e:
            logger.exception("Error listing scheduled notifications task_id=%s", task_id)
            out.failures.append(f"list: {e}")
            return out

        for notification in scheduled:
            data = notification.content.data or {}
            if data.get("taskId") != task_id:
                continue
            try:
                await self._platform.cancel_notification(notification.identifier)
            except Exception as e:
                logger.exception(
                    "Error canceling reminder id=%s task_id=%s", notification.identifier, task_id
                )
                out.failures.append(f"cancel {notification.identifier}: {e}")
                continue
            out.cancelled.append(notification.identifier)

        logger.debug("Task reminders cancelled task_id=%s ids=%s", task_id, out.cancelled)
        return out

    async def update_task_reminders(self, task: Task) -> ReminderOutcome:
        """
        Cancel, then reschedule task + energy reminders, strictly in sequence.

        Not atomic: a failure after the cancel step leaves the task with fewer
        (possibly no) active reminders until the next successful update.
        """
        out = await self.cancel_task_reminders(task.id)
        out.merge(await self.schedule_task_reminder(task))
        out.merge(await self.schedule_energy_reminder(task))
        if not out.ok:
            logger.warning(
                "Reminder update for task_id=%s finished with %d failure(s)", task.id, len(out.failures)
            )
        return out


def initialize_notifications(
        platform: NotificationPlatform,
        behavior: NotificationBehavior | None = None,
        *,
        channel_id: str = "default",
) -> ReminderScheduler:
    """
    One-time setup: install the foreground presentation behaviour on the
    platform and return the scheduler handle.

    Call it once at process start (the composition root does this).
    """
    platform.set_notification_handler(behavior or NotificationBehavior())
    logger.info("Notifications initialized (channel=%s)", channel_id)
    return ReminderScheduler(platform, channel_id=channel_id)
