"""
Tool: Activity Models
Purpose: Activity, its completion ledger, and the derived aging states

Usage:
    from lastdone.activities.models import Activity, AgingState, CompletionRecord

    activity = Activity.create("Water Plants", target_interval_days=7)
    activity.append(CompletionRecord.create(note="Ferns too"))
    activity.days_since(datetime.now())  # 0

Invariants:
    - The ledger only grows. Records are frozen and never removed.
    - last_completed_at is max(ledger timestamps), computed on every read.
    - None means "never completed"; it is never coerced to 0 or to a big number.
"""

import bisect
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from lastdone.activities.errors import InvalidActivityError


class AgingState(str, Enum):
    """How overdue an activity is. Always derived, never stored."""

    FRESH = "fresh"
    AGING = "aging"
    STALE = "stale"


def elapsed_days(last_completed_at: datetime | None, now: datetime) -> int | None:
    if last_completed_at is None:
        return None
    return max((now - last_completed_at).days, 0)


def validate_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidActivityError("Activity name is required")
    return cleaned


def validate_interval(days: Any) -> int:
    """Target intervals are whole, positive day counts."""
    if isinstance(days, bool) or not isinstance(days, int):
        raise InvalidActivityError(f"Target interval must be a whole number of days, got {days!r}")
    if days <= 0:
        raise InvalidActivityError(f"Target interval must be positive, got {days}")
    return days


@dataclass(frozen=True)
class CompletionRecord:
    """One completion event. Immutable once created."""

    id: str
    completed_at: datetime
    note: str | None = None
    recorded_at: datetime = field(default_factory=datetime.now)
    was_backdated: bool = False

    @classmethod
    def create(
        cls,
        note: str | None = None,
        at: datetime | None = None,
        now: datetime | None = None,
    ) -> "CompletionRecord":
        recorded_at = now or datetime.now()
        return cls(
            id=cls.generate_id(),
            completed_at=at or recorded_at,
            note=note.strip() if note and note.strip() else None,
            recorded_at=recorded_at,
            was_backdated=at is not None and at != recorded_at,
        )

    @staticmethod
    def generate_id() -> str:
        return f"cmp_{uuid.uuid4().hex[:12]}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "completed_at": self.completed_at.isoformat(),
            "note": self.note,
            "recorded_at": self.recorded_at.isoformat(),
            "was_backdated": self.was_backdated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompletionRecord":
        data = data.copy()
        for field_name in ["completed_at", "recorded_at"]:
            if isinstance(data.get(field_name), str):
                data[field_name] = datetime.fromisoformat(data[field_name])
        data["was_backdated"] = bool(data.get("was_backdated", False))
        return cls(**data)


@dataclass
class Activity:
    """
    A recurring activity and its completion ledger.

    The completions list is kept in timestamp order. Use append() to add
    to it; nothing in the engine removes or rewrites entries.
    """

    id: str
    name: str
    target_interval_days: int

    notes: str | None = None
    emoji: str | None = None

    archived: bool = False
    reminders_enabled: bool = True
    created_at: datetime = field(default_factory=datetime.now)

    completions: list[CompletionRecord] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        name: str,
        target_interval_days: int,
        notes: str | None = None,
        emoji: str | None = None,
        created_at: datetime | None = None,
        reminders_enabled: bool = True,
    ) -> "Activity":
        return cls(
            id=cls.generate_id(),
            name=validate_name(name),
            target_interval_days=validate_interval(target_interval_days),
            notes=notes,
            emoji=emoji,
            reminders_enabled=bool(reminders_enabled),
            created_at=created_at or datetime.now(),
        )

    @staticmethod
    def generate_id() -> str:
        return f"act_{uuid.uuid4().hex[:12]}"

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    def append(self, record: CompletionRecord) -> None:
        # Stable for equal timestamps: later appends land after earlier ones
        bisect.insort_right(self.completions, record, key=lambda r: r.completed_at)

    @property
    def ledger(self) -> tuple[CompletionRecord, ...]:
        return tuple(self.completions)

    @property
    def last_completed_at(self) -> datetime | None:
        if not self.completions:
            return None
        return max(record.completed_at for record in self.completions)

    def days_since(self, now: datetime) -> int | None:
        """Whole days elapsed since the last completion, or None if never completed."""
        return elapsed_days(self.last_completed_at, now)

    def recent(self, limit: int) -> list[CompletionRecord]:
        return list(reversed(self.completions[-limit:])) if limit > 0 else []

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self, include_completions: bool = True) -> dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "target_interval_days": self.target_interval_days,
            "notes": self.notes,
            "emoji": self.emoji,
            "archived": self.archived,
            "reminders_enabled": self.reminders_enabled,
            "created_at": self.created_at.isoformat(),
            "last_completed_at": self.last_completed_at.isoformat() if self.last_completed_at else None,
        }
        if include_completions:
            data["completions"] = [record.to_dict() for record in self.completions]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Activity":
        data = data.copy()
        data.pop("last_completed_at", None)
        if isinstance(data.get("created_at"), str):
            data["created_at"] = datetime.fromisoformat(data["created_at"])
        data["archived"] = bool(data.get("archived", False))
        data["reminders_enabled"] = bool(data.get("reminders_enabled", True))
        records = [
            r if isinstance(r, CompletionRecord) else CompletionRecord.from_dict(r)
            for r in data.pop("completions", None) or []
        ]
        activity = cls(**data)
        for record in records:
            activity.append(record)
        return activity


__all__ = [
    "Activity",
    "AgingState",
    "CompletionRecord",
    "elapsed_days",
    "validate_interval",
    "validate_name",
]
