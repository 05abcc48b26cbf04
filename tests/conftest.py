"""Shared test fixtures for LastDone tests.

This module provides common fixtures used across all test modules:
- A controllable clock so aging and reminder times are deterministic
- Isolated SQLite stores in temporary directories
- A recording notification gateway that can be told to fail

Usage:
    def test_something(service, clock):
        created = service.create_activity("Water Plants", 7)
        clock.advance(days=3)
        ...
"""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from lastdone.activities.errors import SchedulingError
from lastdone.activities.service import ActivityService
from lastdone.activities.store import ActivityStore
from lastdone.logging_config import setup_logging
from lastdone.reminders.gateway import NotificationGateway
from lastdone.reminders.scheduler import ReminderScheduler


# ─────────────────────────────────────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True, scope="session")
def structured_logging():
    """Route structlog through stdlib to stderr so stdout stays clean for capsys."""
    setup_logging(level="WARNING")


# ─────────────────────────────────────────────────────────────────────────────
# Clock
# ─────────────────────────────────────────────────────────────────────────────


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 1, 9, 0, 0)


@pytest.fixture
def clock(fixed_now: datetime) -> FakeClock:
    return FakeClock(fixed_now)


# ─────────────────────────────────────────────────────────────────────────────
# Gateway
# ─────────────────────────────────────────────────────────────────────────────


class RecordingGateway(NotificationGateway):
    """In-memory gateway that records calls. Set fail_schedule to simulate denied permission."""

    def __init__(self):
        self.scheduled: dict[str, tuple[datetime, dict]] = {}
        self.schedule_calls: list[str] = []
        self.cancel_calls: list[str] = []
        self.fail_schedule = False
        self.fail_cancel = False

    def schedule(self, request_id, fire_at, payload):
        self.schedule_calls.append(request_id)
        if self.fail_schedule:
            raise SchedulingError("Notification permission denied")
        self.scheduled[request_id] = (fire_at, payload)
        return f"handle-{request_id}"

    def cancel(self, request_id):
        self.cancel_calls.append(request_id)
        if self.fail_cancel:
            raise SchedulingError("Gateway unavailable")
        self.scheduled.pop(request_id, None)


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


# ─────────────────────────────────────────────────────────────────────────────
# Engine Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    """Path to a not-yet-created SQLite database in a temp directory."""
    return tmp_path / "data" / "activities.db"


@pytest.fixture
def store(temp_db: Path) -> ActivityStore:
    return ActivityStore(temp_db)


@pytest.fixture
def scheduler(gateway: RecordingGateway, clock: FakeClock) -> ReminderScheduler:
    return ReminderScheduler(gateway, clock=clock)


@pytest.fixture
def service(store: ActivityStore, scheduler: ReminderScheduler, clock: FakeClock) -> ActivityService:
    return ActivityService(store, scheduler, clock=clock)


@pytest.fixture
def sample_activity() -> dict:
    """Sample activity fields for testing."""
    return {
        "name": "Water Plants",
        "target_interval_days": 7,
        "notes": "Balcony and kitchen",
        "emoji": "🪴",
    }
