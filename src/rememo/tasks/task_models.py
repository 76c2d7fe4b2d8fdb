# src/rememo/tasks/task_models.py

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

_TIME_OF_DAY_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_ID_ALPHABET = string.digits + string.ascii_lowercase

# Wire names are the persisted JSON keys and must not change.
_TASK_FIELDS = (
    "id",
    "name",
    "times",
    "startDate",
    "color",
    "reminderEnabled",
    "completed",
    "currentSupply",
    "EnergyAt",
    "EnergyReminder",
)
_HISTORY_FIELDS = ("id", "taskId", "timestamp", "Completed")


def parse_time_of_day(raw: str) -> tuple[int, int]:
    """Parse a 24-hour "HH:MM" string into (hour, minute)."""
    m = _TIME_OF_DAY_RE.match(raw or "")
    if not m:
        raise ValueError(f"Invalid time of day: {raw!r} (expected HH:MM)")
    hour, minute = int(m.group(1)), int(m.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid time of day: {raw!r} (expected HH:MM)")
    return hour, minute


def parse_timestamp(raw: str | None) -> datetime | None:
    """ISO 8601 -> datetime; accepts a trailing 'Z'. Returns None if unparseable."""
    if not raw or not isinstance(raw, str):
        return None
    s = raw.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def local_date_of(ts: datetime) -> date:
    """Calendar date in local time. Naive values are taken as local already."""
    if ts.tzinfo is None:
        return ts.date()
    return ts.astimezone().date()


def now_iso() -> str:
    return datetime.now().astimezone().isoformat(timespec="milliseconds")


def new_id(length: int = 9) -> str:
    """Short random lowercase base-36 id (same shape the mobile app generated)."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def _as_int(v: Any) -> int | None:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        return int(v)
    if isinstance(v, str):
        try:
            return int(v.strip())
        except ValueError:
            return None
    return None


def _as_bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "yes", "on"}
    return bool(v)


def _require_id(raw: dict[str, Any]) -> str:
    rid = raw.get("id")
    if rid is None or isinstance(rid, bool) or str(rid).strip() == "":
        raise ValueError("record has no id")
    return str(rid)


@dataclass(slots=True)
class Task:
    id: str
    name: str
    times: list[str] = field(default_factory=list)
    start_date: str = ""
    color: str = ""
    reminder_enabled: bool = False
    completed: bool = False

    # Low-supply tracking; all optional.
    current_supply: int | None = None
    energy_at: int | None = None
    energy_reminder: bool = False

    # Unknown wire fields, kept so a rewrite never drops them.
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Task:
        """Build a Task from a stored record, filling defaults for missing fields."""
        times_raw = raw.get("times")
        times = [str(t) for t in times_raw] if isinstance(times_raw, list) else []

        supply = _as_int(raw.get("currentSupply"))
        if supply is not None and supply < 0:
            supply = 0

        return cls(
            id=_require_id(raw),
            name=str(raw.get("name") or ""),
            times=times,
            start_date=str(raw.get("startDate") or ""),
            color=str(raw.get("color") or ""),
            reminder_enabled=_as_bool(raw.get("reminderEnabled")),
            completed=_as_bool(raw.get("completed")),
            current_supply=supply,
            energy_at=_as_int(raw.get("EnergyAt")),
            energy_reminder=_as_bool(raw.get("EnergyReminder")),
            extra={k: v for k, v in raw.items() if k not in _TASK_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "name": self.name,
                "times": list(self.times),
                "startDate": self.start_date,
                "color": self.color,
                "reminderEnabled": self.reminder_enabled,
                "completed": self.completed,
            }
        )
        if self.current_supply is not None:
            out["currentSupply"] = self.current_supply
        if self.energy_at is not None:
            out["EnergyAt"] = self.energy_at
        if self.energy_reminder:
            out["EnergyReminder"] = True
        return out

    def is_supply_low(self) -> bool:
        if self.current_supply is None or self.energy_at is None:
            return False
        return self.current_supply <= self.energy_at

    def started_on_or_before(self, day: date) -> bool:
        """True if the task is active on `day`. A missing/garbled startDate counts as active."""
        ts = parse_timestamp(self.start_date)
        if ts is None:
            return True
        return local_date_of(ts) <= day


@dataclass(slots=True)
class EffortHistory:
    id: str
    task_id: str
    timestamp: str
    completed: bool
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> EffortHistory:
        return cls(
            id=_require_id(raw),
            task_id=str(raw.get("taskId") or ""),
            timestamp=str(raw.get("timestamp") or ""),
            completed=_as_bool(raw.get("Completed")),
            extra={k: v for k, v in raw.items() if k not in _HISTORY_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "taskId": self.task_id,
                "timestamp": self.timestamp,
                "Completed": self.completed,
            }
        )
        return out


@dataclass(slots=True, frozen=True)
class EffortOutcome:
    """Result of TaskStore.record_effort()."""

    entry: EffortHistory
    # Set only when the task's supply was decremented and written back.
    updated_task: Task | None = None
