# src/rememo/reminders/notification_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class PermissionStatus(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"

    @classmethod
    def parse(cls, raw: str | None) -> PermissionStatus:
        if not raw:
            return cls.UNDETERMINED
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.UNDETERMINED


class ChannelImportance(StrEnum):
    MIN = "min"
    LOW = "low"
    DEFAULT = "default"
    HIGH = "high"
    MAX = "max"


@dataclass(slots=True, frozen=True)
class NotificationBehavior:
    """How the host presents a notification that arrives while the app is running."""

    show_alert: bool = True
    play_sound: bool = True
    set_badge: bool = True


@dataclass(slots=True, frozen=True)
class NotificationChannel:
    id: str
    name: str
    importance: ChannelImportance = ChannelImportance.DEFAULT
    vibration_pattern: tuple[int, ...] = ()
    light_color: str | None = None


@dataclass(slots=True, frozen=True)
class NotificationContent:
    title: str
    body: str
    # Application-defined payload; only used for matching on cancel.
    data: dict[str, Any] = field(default_factory=dict)
    channel_id: str = "default"


@dataclass(slots=True, frozen=True)
class DailyTrigger:
    """Repeats every day at the given wall-clock time."""

    hour: int
    minute: int

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour out of range: {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute out of range: {self.minute}")


@dataclass(slots=True, frozen=True)
class ScheduledNotification:
    identifier: str
    content: NotificationContent
    trigger: DailyTrigger
