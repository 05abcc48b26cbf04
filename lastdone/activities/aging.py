"""
Tool: Aging Classifier
Purpose: Turn (target interval, last completion, now) into fresh/aging/stale

This is a pure function. Same three inputs, same answer, every time. It is
re-evaluated on every read so the state shown can never lag the ledger.

Thresholds (defaults, configurable in args/activities.yaml):
    elapsed <= floor(interval * 0.5)          -> fresh
    floor(interval * 0.5) < elapsed <= interval -> aging
    elapsed > interval                          -> stale
    never completed                             -> stale

Usage:
    from lastdone.activities.aging import AgingPolicy, classify, classify_activity

    classify(10, last_completed_at, now)          # AgingState.FRESH
    classify_activity(activity, now, policy)
"""

import math
from dataclasses import dataclass
from datetime import datetime

from lastdone.activities.models import Activity, AgingState, elapsed_days


@dataclass(frozen=True)
class AgingPolicy:
    """Fractions of the target interval where fresh ends and stale begins."""

    fresh_fraction: float = 0.5
    stale_fraction: float = 1.0

    def fresh_limit(self, target_interval_days: int) -> int:
        return math.floor(target_interval_days * self.fresh_fraction)

    def aging_limit(self, target_interval_days: int) -> int:
        return math.floor(target_interval_days * self.stale_fraction)

    @classmethod
    def from_config(cls, config) -> "AgingPolicy":
        return cls(
            fresh_fraction=config.aging.fresh_fraction,
            stale_fraction=config.aging.stale_fraction,
        )


DEFAULT_POLICY = AgingPolicy()


def classify(
    target_interval_days: int,
    last_completed_at: datetime | None,
    now: datetime,
    policy: AgingPolicy = DEFAULT_POLICY,
) -> AgingState:
    """
    Classify how overdue an activity is.

    Assumes target_interval_days > 0; intervals are validated when they are
    set, not here.

    Args:
        target_interval_days: Expected days between completions
        last_completed_at: Latest ledger timestamp, None if never completed
        now: Point in time to classify at
        policy: Threshold fractions

    Returns:
        AgingState
    """
    if last_completed_at is None:
        # No history means most overdue
        return AgingState.STALE

    elapsed = elapsed_days(last_completed_at, now)

    if elapsed <= policy.fresh_limit(target_interval_days):
        return AgingState.FRESH
    if elapsed <= policy.aging_limit(target_interval_days):
        return AgingState.AGING
    return AgingState.STALE


def classify_activity(
    activity: Activity,
    now: datetime,
    policy: AgingPolicy = DEFAULT_POLICY,
) -> AgingState:
    return classify(activity.target_interval_days, activity.last_completed_at, now, policy)


__all__ = [
    "DEFAULT_POLICY",
    "AgingPolicy",
    "classify",
    "classify_activity",
    "elapsed_days",
]
