# src/rememo/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps persistence and the notification host swappable and makes testing easier.
"""

from typing import Awaitable, Iterable, Protocol

from ..reminders.notification_models import (
    DailyTrigger,
    NotificationBehavior,
    NotificationChannel,
    NotificationContent,
    PermissionStatus,
    ScheduledNotification,
)


class KeyValueStorage(Protocol):
    """
    Local string-keyed persistence (one serialized blob per key).

    get_item returns None for a missing key. Write methods raise on failure;
    multi_remove removes all given keys or none of them.
    """

    async def get_item(self, key: str) -> str | None: ...
    async def set_item(self, key: str, value: str) -> None: ...
    async def remove_item(self, key: str) -> None: ...
    async def multi_remove(self, keys: Iterable[str]) -> None: ...


class NotificationPlatform(Protocol):
    """
    Host notification service.

    trigger=None means "present immediately"; immediate notifications are
    never returned by list_scheduled_notifications().
    """

    async def get_permission_status(self) -> PermissionStatus: ...
    async def request_permission(self) -> PermissionStatus: ...
    async def get_delivery_token(self) -> str: ...
    async def create_notification_channel(self, channel: NotificationChannel) -> None: ...
    def set_notification_handler(self, behavior: NotificationBehavior) -> None: ...

    async def schedule_notification(
            self,
            content: NotificationContent,
            trigger: DailyTrigger | None,
    ) -> str: ...

    async def list_scheduled_notifications(self) -> list[ScheduledNotification]: ...
    async def cancel_notification(self, identifier: str) -> None: ...


class OutboundMessenger(Protocol):
    """
    Connector-side port: where delivered notifications end up.

    The connector decides how to interpret room_id / to_user_id (both may be None);
    the console connector ignores them and prints.
    """

    def send_text(
            self,
            *,
            text: str,
            room_id: str | None = None,
            to_user_id: str | None = None,
    ) -> Awaitable[None]: ...
