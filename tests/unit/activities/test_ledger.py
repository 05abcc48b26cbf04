"""Tests for lastdone/activities/models.py

The completion ledger is the only source of truth for "last done":
- Records are appended, never removed or rewritten
- last_completed_at is the max timestamp, even for out-of-order appends
- "Never completed" is None, never 0 and never a huge number
"""

import dataclasses
from datetime import datetime, timedelta

import pytest

from lastdone.activities.errors import InvalidActivityError
from lastdone.activities.models import (
    Activity,
    CompletionRecord,
    validate_interval,
    validate_name,
)


def record_at(when: datetime, note: str | None = None) -> CompletionRecord:
    return CompletionRecord.create(note=note, at=when, now=when)


# ─────────────────────────────────────────────────────────────────────────────
# Ledger
# ─────────────────────────────────────────────────────────────────────────────


class TestLedger:
    def test_empty_ledger_has_no_last_completion(self, fixed_now):
        activity = Activity.create("Water Plants", 7, created_at=fixed_now)

        assert activity.last_completed_at is None
        assert activity.days_since(fixed_now) is None

    def test_last_completed_is_max_timestamp(self, fixed_now):
        activity = Activity.create("Water Plants", 7, created_at=fixed_now)
        newest = fixed_now - timedelta(days=1)
        activity.append(record_at(newest))
        # Backdated entry logged afterwards
        activity.append(record_at(fixed_now - timedelta(days=9)))

        assert activity.last_completed_at == newest
        assert [r.completed_at for r in activity.ledger] == sorted(r.completed_at for r in activity.ledger)

    def test_identical_timestamps_are_both_kept(self, fixed_now):
        activity = Activity.create("Water Plants", 7)
        first = record_at(fixed_now, note="first")
        second = record_at(fixed_now, note="second")
        activity.append(first)
        activity.append(second)

        assert [r.note for r in activity.ledger] == ["first", "second"]

    def test_days_since_counts_whole_days(self, fixed_now):
        activity = Activity.create("Water Plants", 7)
        activity.append(record_at(fixed_now - timedelta(days=3, hours=23)))

        assert activity.days_since(fixed_now) == 3

    def test_days_since_is_zero_right_after_completion(self, fixed_now):
        activity = Activity.create("Water Plants", 7)
        activity.append(record_at(fixed_now))

        assert activity.days_since(fixed_now) == 0

    def test_ledger_is_read_only_view(self, fixed_now):
        activity = Activity.create("Water Plants", 7)
        activity.append(record_at(fixed_now))

        assert isinstance(activity.ledger, tuple)

    def test_recent_returns_newest_first(self, fixed_now):
        activity = Activity.create("Water Plants", 7)
        for days_ago in (5, 3, 1):
            activity.append(record_at(fixed_now - timedelta(days=days_ago), note=str(days_ago)))

        assert [r.note for r in activity.recent(2)] == ["1", "3"]
        assert activity.recent(0) == []


# ─────────────────────────────────────────────────────────────────────────────
# Completion Records
# ─────────────────────────────────────────────────────────────────────────────


class TestCompletionRecord:
    def test_records_are_immutable(self, fixed_now):
        record = record_at(fixed_now)

        with pytest.raises(dataclasses.FrozenInstanceError):
            record.note = "changed"

    def test_defaults_to_now(self, fixed_now):
        record = CompletionRecord.create(now=fixed_now)

        assert record.completed_at == fixed_now
        assert record.was_backdated is False

    def test_explicit_earlier_time_is_backdated(self, fixed_now):
        record = CompletionRecord.create(at=fixed_now - timedelta(days=2), now=fixed_now)

        assert record.was_backdated is True
        assert record.recorded_at == fixed_now

    def test_blank_note_is_dropped(self, fixed_now):
        assert CompletionRecord.create(note="   ", now=fixed_now).note is None

    def test_unique_ids(self, fixed_now):
        assert record_at(fixed_now).id != record_at(fixed_now).id


# ─────────────────────────────────────────────────────────────────────────────
# Validation & Serialization
# ─────────────────────────────────────────────────────────────────────────────


class TestValidation:
    @pytest.mark.parametrize("days", [0, -1, 1.5, "7", True, None])
    def test_rejects_bad_intervals(self, days):
        with pytest.raises(InvalidActivityError):
            validate_interval(days)

    def test_accepts_positive_interval(self):
        assert validate_interval(1) == 1

    def test_rejects_blank_name(self):
        with pytest.raises(InvalidActivityError):
            validate_name("  ")

    def test_create_strips_name(self):
        assert Activity.create("  Yoga ", 3).name == "Yoga"

    def test_invalid_interval_is_a_value_error(self):
        with pytest.raises(ValueError):
            Activity.create("Yoga", 0)


class TestSerialization:
    def test_round_trip_keeps_ledger(self, fixed_now):
        activity = Activity.create("Yoga", 3, emoji="🧘", created_at=fixed_now)
        activity.append(record_at(fixed_now, note="sun salutations"))

        restored = Activity.from_dict(activity.to_dict())

        assert restored.id == activity.id
        assert restored.emoji == "🧘"
        assert restored.ledger == activity.ledger
        assert restored.last_completed_at == fixed_now
