"""
Tool: Reminder Scheduler
Purpose: Keep at most one outstanding reminder per activity, derived from its ledger

reschedule(activity):
    1. Cancel whatever is outstanding for the activity (idempotent)
    2. Archived, or reminders turned off for the activity -> stop
    3. anchor = last completion, or creation time if never completed
    4. fire_at = anchor + target interval
    5. fire_at <= now -> stop (only future reminders are armed; overdue
       activities surface through the aging classifier instead)
    6. Schedule with the gateway and record the request

Gateway failures never raise out of reschedule(). The table records "no
outstanding request" and the result carries a warning for the caller.

The outstanding-request table lives here and nowhere else. Nothing else
talks to the gateway.

Usage:
    from lastdone.reminders.scheduler import ReminderScheduler

    scheduler = ReminderScheduler(gateway)
    result = scheduler.reschedule(activity)
    if result.warning:
        ...
"""

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from lastdone.activities.errors import SchedulingError
from lastdone.activities.models import Activity
from lastdone.logging_config import get_logger
from lastdone.reminders.gateway import NotificationGateway

logger = get_logger(__name__)

# reschedule() outcomes
SCHEDULED = "scheduled"
ARCHIVED = "archived"
REMINDERS_OFF = "reminders_off"
NOT_IN_FUTURE = "not_in_future"
DISABLED = "disabled"
FAILED = "failed"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class ReminderRequest:
    activity_id: str
    fire_at: datetime
    request_id: str
    handle: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "activity_id": self.activity_id,
            "fire_at": self.fire_at.isoformat(),
            "request_id": self.request_id,
            "handle": self.handle,
        }


@dataclass
class ScheduleResult:
    activity_id: str
    outcome: str
    request: ReminderRequest | None = None
    warning: str | None = None

    @property
    def armed(self) -> bool:
        return self.request is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "activity_id": self.activity_id,
            "outcome": self.outcome,
            "request": self.request.to_dict() if self.request else None,
            "warning": self.warning,
        }


def request_id_for(activity_id: str) -> str:
    """Stable per activity, so a restart can cancel what a previous run armed."""
    return f"reminder_{activity_id}"


def next_fire_time(activity: Activity) -> datetime:
    anchor = activity.last_completed_at or activity.created_at
    return anchor + timedelta(days=activity.target_interval_days)


class ReminderScheduler:
    """
    Sole owner of outstanding reminder requests.

    Args:
        gateway: Where requests are scheduled and cancelled
        clock: Returns "now"; injectable for tests
        enabled: False cancels on every reschedule and never arms
        title: Notification title
        category: Notification category carried in the payload
    """

    def __init__(
        self,
        gateway: NotificationGateway,
        clock: Callable[[], datetime] = datetime.now,
        enabled: bool = True,
        title: str = "A gentle nudge",
        category: str = "activity_reminder",
    ):
        self.gateway = gateway
        self.clock = clock
        self.enabled = enabled
        self.title = title
        self.category = category
        self._outstanding: dict[str, ReminderRequest] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, gateway: NotificationGateway, config, clock: Callable[[], datetime] = datetime.now) -> "ReminderScheduler":
        return cls(
            gateway,
            clock=clock,
            enabled=config.reminders.enabled,
            title=config.reminders.title,
            category=config.reminders.category,
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def outstanding(self, activity_id: str) -> ReminderRequest | None:
        with self._lock:
            return self._outstanding.get(activity_id)

    def outstanding_requests(self) -> dict[str, ReminderRequest]:
        with self._lock:
            return dict(self._outstanding)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def reschedule(self, activity: Activity, now: datetime | None = None) -> ScheduleResult:
        """Cancel and, if appropriate, re-arm the reminder for an activity."""
        now = now or self.clock()

        with self._lock:
            warning = self._cancel_locked(activity.id)

            if activity.archived:
                return ScheduleResult(activity.id, ARCHIVED, warning=warning)

            if not activity.reminders_enabled:
                return ScheduleResult(activity.id, REMINDERS_OFF, warning=warning)

            if not self.enabled:
                return ScheduleResult(activity.id, DISABLED, warning=warning)

            fire_at = next_fire_time(activity)
            if fire_at <= now:
                logger.debug("reminder_not_armed", activity_id=activity.id, fire_at=fire_at.isoformat())
                return ScheduleResult(activity.id, NOT_IN_FUTURE, warning=warning)

            request_id = request_id_for(activity.id)
            try:
                handle = self.gateway.schedule(request_id, fire_at, self._payload(activity))
            except SchedulingError as e:
                logger.warning("reminder_schedule_failed", activity_id=activity.id, error=str(e))
                return ScheduleResult(
                    activity.id,
                    FAILED,
                    warning=f"Couldn't set a reminder for {activity.name}: {e}",
                )

            request = ReminderRequest(activity.id, fire_at, request_id, handle)
            self._outstanding[activity.id] = request
            logger.debug("reminder_armed", activity_id=activity.id, fire_at=fire_at.isoformat())
            return ScheduleResult(activity.id, SCHEDULED, request=request, warning=warning)

    def cancel(self, activity_id: str) -> ScheduleResult:
        """Drop any outstanding reminder, e.g. when an activity is deleted."""
        with self._lock:
            warning = self._cancel_locked(activity_id)
        return ScheduleResult(activity_id, CANCELLED, warning=warning)

    def reconcile(self, activities: Iterable[Activity], now: datetime | None = None) -> dict[str, Any]:
        """
        Re-derive every reminder from persisted state.

        Safe to run any number of times; each activity ends up with the
        same single request (or none) regardless of what was there before.
        """
        now = now or self.clock()
        summary: dict[str, Any] = {
            "processed": 0,
            "scheduled": 0,
            "skipped": 0,
            "failed": 0,
            "warnings": [],
        }

        seen: set[str] = set()
        for activity in activities:
            seen.add(activity.id)
            result = self.reschedule(activity, now=now)
            summary["processed"] += 1
            if result.outcome == SCHEDULED:
                summary["scheduled"] += 1
            elif result.outcome == FAILED:
                summary["failed"] += 1
            else:
                summary["skipped"] += 1
            if result.warning:
                summary["warnings"].append(result.warning)

        # Requests for activities that no longer exist
        for activity_id in set(self.outstanding_requests()) - seen:
            result = self.cancel(activity_id)
            if result.warning:
                summary["warnings"].append(result.warning)

        logger.info(
            "reminders_reconciled",
            processed=summary["processed"],
            scheduled=summary["scheduled"],
            failed=summary["failed"],
        )
        return summary

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _cancel_locked(self, activity_id: str) -> str | None:
        self._outstanding.pop(activity_id, None)
        try:
            self.gateway.cancel(request_id_for(activity_id))
        except SchedulingError as e:
            logger.warning("reminder_cancel_failed", activity_id=activity_id, error=str(e))
            return f"Couldn't clear the previous reminder: {e}"
        return None

    def _payload(self, activity: Activity) -> dict[str, Any]:
        days = activity.target_interval_days
        span = "a day" if days == 1 else f"{days} days"
        return {
            "category": self.category,
            "title": self.title,
            "body": f"It's been about {span} since {activity.name}. Whenever you're ready.",
            "data": {"activity_id": activity.id},
        }


__all__ = [
    "ARCHIVED",
    "CANCELLED",
    "DISABLED",
    "FAILED",
    "NOT_IN_FUTURE",
    "REMINDERS_OFF",
    "SCHEDULED",
    "ReminderRequest",
    "ReminderScheduler",
    "ScheduleResult",
    "next_fire_time",
    "request_id_for",
]
