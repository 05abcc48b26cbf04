"""Tests for lastdone/activities/aging.py

Thresholds with the default policy:
- elapsed <= floor(T/2) is fresh
- floor(T/2) < elapsed <= T is aging
- elapsed > T is stale
- never completed is stale
"""

from datetime import timedelta

import pytest

from lastdone.activities.aging import AgingPolicy, classify, classify_activity
from lastdone.activities.models import Activity, AgingState, CompletionRecord
from lastdone.config_models import ActivitiesConfig


class TestClassify:
    @pytest.mark.parametrize(
        "days_ago,expected",
        [
            (0, AgingState.FRESH),
            (5, AgingState.FRESH),
            (6, AgingState.AGING),
            (10, AgingState.AGING),
            (11, AgingState.STALE),
            (400, AgingState.STALE),
        ],
    )
    def test_ten_day_interval(self, fixed_now, days_ago, expected):
        last = fixed_now - timedelta(days=days_ago)

        assert classify(10, last, fixed_now) == expected

    def test_never_completed_is_stale(self, fixed_now):
        assert classify(10, None, fixed_now) == AgingState.STALE

    def test_odd_interval_floors_fresh_limit(self, fixed_now):
        # floor(7 / 2) == 3
        assert classify(7, fixed_now - timedelta(days=3), fixed_now) == AgingState.FRESH
        assert classify(7, fixed_now - timedelta(days=4), fixed_now) == AgingState.AGING

    def test_one_day_interval(self, fixed_now):
        assert classify(1, fixed_now, fixed_now) == AgingState.FRESH
        assert classify(1, fixed_now - timedelta(days=1), fixed_now) == AgingState.AGING
        assert classify(1, fixed_now - timedelta(days=2), fixed_now) == AgingState.STALE

    def test_partial_days_do_not_count(self, fixed_now):
        last = fixed_now - timedelta(days=10, hours=23)

        assert classify(10, last, fixed_now) == AgingState.AGING

    def test_future_completion_counts_as_zero_days(self, fixed_now):
        assert classify(10, fixed_now + timedelta(days=2), fixed_now) == AgingState.FRESH

    def test_is_deterministic(self, fixed_now):
        last = fixed_now - timedelta(days=6)

        assert {classify(10, last, fixed_now) for _ in range(5)} == {AgingState.AGING}


class TestAgingPolicy:
    def test_custom_fractions(self, fixed_now):
        policy = AgingPolicy(fresh_fraction=0.25, stale_fraction=1.5)
        last = fixed_now - timedelta(days=3)

        assert classify(10, last, fixed_now, policy) == AgingState.AGING
        assert classify(10, fixed_now - timedelta(days=15), fixed_now, policy) == AgingState.AGING
        assert classify(10, fixed_now - timedelta(days=16), fixed_now, policy) == AgingState.STALE

    def test_from_config(self):
        config = ActivitiesConfig.model_validate({"aging": {"fresh_fraction": 0.3, "stale_fraction": 1.2}})

        policy = AgingPolicy.from_config(config)

        assert policy == AgingPolicy(fresh_fraction=0.3, stale_fraction=1.2)


class TestClassifyActivity:
    def test_uses_latest_ledger_entry(self, fixed_now):
        activity = Activity.create("Water Plants", 10, created_at=fixed_now - timedelta(days=30))
        activity.append(CompletionRecord.create(at=fixed_now - timedelta(days=20), now=fixed_now))
        assert classify_activity(activity, fixed_now) == AgingState.STALE

        activity.append(CompletionRecord.create(at=fixed_now - timedelta(days=2), now=fixed_now))
        assert classify_activity(activity, fixed_now) == AgingState.FRESH

    def test_new_activity_is_stale(self, fixed_now):
        activity = Activity.create("Water Plants", 10, created_at=fixed_now)

        assert classify_activity(activity, fixed_now) == AgingState.STALE
