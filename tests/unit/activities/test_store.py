"""Tests for lastdone/activities/store.py

Tests SQLite persistence:
- Activities and ledgers survive a fresh store instance
- Query pushdown by id set, archived flag and name substring
- Deleting an activity removes its ledger
- sqlite errors surface as PersistenceError
"""

import sqlite3
from datetime import timedelta
from unittest.mock import patch

import pytest

from lastdone.activities.errors import PersistenceError
from lastdone.activities.models import Activity, CompletionRecord
from lastdone.activities.store import ActivityStore, casefold_contains, fold


def make_activity(name, fixed_now, days=7, offset=0, archived=False):
    activity = Activity.create(name, days, created_at=fixed_now + timedelta(seconds=offset))
    activity.archived = archived
    return activity


class TestFold:
    def test_casefold_handles_non_ascii(self):
        assert fold("STRASSE") == fold("straße")

    def test_contains(self):
        assert casefold_contains("Morning Yoga", "YOGA") == 1
        assert casefold_contains("Morning Yoga", "run") == 0

    def test_none_is_empty(self):
        assert fold(None) == ""


class TestDatabaseInit:
    def test_creates_tables(self, store, temp_db):
        conn = store.get_connection()
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()

        assert {"activities", "completions"} <= tables
        assert temp_db.exists()


class TestSaveAndLoad:
    def test_round_trip(self, store, temp_db, fixed_now):
        activity = make_activity("Water Plants", fixed_now)
        activity.notes = "Balcony"
        activity.append(CompletionRecord.create(note="Ferns too", now=fixed_now))
        store.save(activity)

        loaded = ActivityStore(temp_db).get(activity.id)

        assert loaded.name == "Water Plants"
        assert loaded.notes == "Balcony"
        assert loaded.created_at == activity.created_at
        assert loaded.ledger == activity.ledger

    def test_reminders_enabled_round_trip(self, store, temp_db, fixed_now):
        activity = make_activity("Journal", fixed_now)
        activity.reminders_enabled = False
        store.save(activity)

        assert ActivityStore(temp_db).get(activity.id).reminders_enabled is False

        activity.reminders_enabled = True
        store.save(activity)

        assert store.get(activity.id).reminders_enabled is True

    def test_get_missing_returns_none(self, store):
        assert store.get("act_missing") is None

    def test_save_is_upsert(self, store, fixed_now):
        activity = make_activity("Water Plants", fixed_now)
        store.save(activity)
        activity.name = "Water Houseplants"
        activity.target_interval_days = 5
        store.save(activity)

        loaded = store.fetch_all()

        assert len(loaded) == 1
        assert loaded[0].name == "Water Houseplants"
        assert loaded[0].target_interval_days == 5

    def test_add_completion_appends(self, store, fixed_now):
        activity = make_activity("Water Plants", fixed_now)
        store.save(activity)
        store.add_completion(activity.id, CompletionRecord.create(now=fixed_now))
        store.add_completion(activity.id, CompletionRecord.create(now=fixed_now))

        assert len(store.get(activity.id).ledger) == 2

    def test_add_completion_for_unknown_activity_fails(self, store, fixed_now):
        with pytest.raises(PersistenceError):
            store.add_completion("act_missing", CompletionRecord.create(now=fixed_now))

    def test_completions_load_in_time_order(self, store, fixed_now):
        activity = make_activity("Water Plants", fixed_now)
        store.save(activity)
        for days_ago in (1, 9, 4):
            record = CompletionRecord.create(at=fixed_now - timedelta(days=days_ago), now=fixed_now)
            store.add_completion(activity.id, record)

        loaded = store.get(activity.id)
        times = [r.completed_at for r in loaded.ledger]

        assert times == sorted(times)
        assert loaded.last_completed_at == fixed_now - timedelta(days=1)


class TestQueries:
    @pytest.fixture
    def seeded(self, store, fixed_now):
        activities = {
            "a": make_activity("Water Plants", fixed_now, offset=0),
            "b": make_activity("Morning Yoga", fixed_now, offset=1),
            "c": make_activity("Call Grandma", fixed_now, offset=2),
            "d": make_activity("Evening Yoga", fixed_now, offset=3, archived=True),
        }
        for activity in activities.values():
            store.save(activity)
        return activities

    def test_fetch_by_ids(self, store, seeded):
        found = store.fetch_by_ids([seeded["a"].id, seeded["c"].id])

        assert {a.id for a in found} == {seeded["a"].id, seeded["c"].id}

    def test_fetch_by_ids_includes_archived(self, store, seeded):
        assert [a.id for a in store.fetch_by_ids([seeded["d"].id])] == [seeded["d"].id]

    def test_fetch_by_ids_empty(self, store, seeded):
        assert store.fetch_by_ids([]) == []

    def test_fetch_active_excludes_archived(self, store, seeded):
        names = [a.name for a in store.fetch_active()]

        assert names == ["Water Plants", "Morning Yoga", "Call Grandma"]

    def test_fetch_matching_is_case_insensitive(self, store, seeded):
        assert [a.name for a in store.fetch_matching("YOGA")] == ["Morning Yoga"]

    def test_fetch_matching_returns_every_match(self, store, seeded):
        assert len(store.fetch_matching("a")) == 3


class TestDelete:
    def test_delete_removes_ledger(self, store, fixed_now):
        activity = make_activity("Water Plants", fixed_now)
        store.save(activity)
        store.add_completion(activity.id, CompletionRecord.create(now=fixed_now))

        assert store.delete(activity.id) is True
        assert store.get(activity.id) is None

        conn = store.get_connection()
        remaining = conn.execute("SELECT COUNT(*) FROM completions").fetchone()[0]
        conn.close()
        assert remaining == 0

    def test_delete_missing(self, store):
        assert store.delete("act_missing") is False


class TestErrors:
    def test_unopenable_database(self, store):
        with patch.object(store, "get_connection", side_effect=sqlite3.OperationalError("disk I/O error")):
            with pytest.raises(PersistenceError):
                store.fetch_all()
