"""
Tool: Activity Service
Purpose: The query surface the voice layer, CLI and UI call into

Mutations (create, edit, archive, delete, mark completed) run one at a time
through a single lock and return result dicts:
    {"success": True, "data": {...}, "warnings": [...]}
    {"success": False, "error": "...", "error_type": "not_found" | "invalid" | "persistence"}

Reads (get_by_ids, get_active, get_matching, get_overdue) never take the
lock, never mutate, and degrade to empty results if the store fails.

Usage:
    from lastdone.activities.service import ActivityService

    service = ActivityService.default()
    result = service.create_activity("Water Plants", target_interval_days=7)
    service.mark_completed(result["data"]["id"], note="Ferns too")
    service.get_overdue()
"""

import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from lastdone.activities import DEFAULT_RECENT_LIMIT
from lastdone.activities.aging import DEFAULT_POLICY, AgingPolicy
from lastdone.activities.errors import (
    ActivityNotFoundError,
    InvalidActivityError,
    PersistenceError,
)
from lastdone.activities.lookup import ActivitySnapshot, LookupIndex
from lastdone.activities.models import Activity, validate_interval, validate_name
from lastdone.activities.recorder import CompletionRecorder
from lastdone.activities.store import ActivityStore
from lastdone.config_models import ActivitiesConfig, load_activities_config
from lastdone.logging_config import activity_context, get_logger
from lastdone.reminders.gateway import LocalNotificationGateway, NotificationGateway
from lastdone.reminders.scheduler import ReminderScheduler

logger = get_logger(__name__)


class ActivityService:
    """
    Args:
        store: Persistence collaborator
        scheduler: Reminder scheduler (owns the gateway)
        clock: Returns "now"; shared with every component
        policy: Aging thresholds
    """

    def __init__(
        self,
        store: ActivityStore,
        scheduler: ReminderScheduler,
        clock: Callable[[], datetime] = datetime.now,
        policy: AgingPolicy = DEFAULT_POLICY,
    ):
        self.store = store
        self.scheduler = scheduler
        self.clock = clock
        self.policy = policy
        self.recorder = CompletionRecorder(store, scheduler, clock)
        self.lookup = LookupIndex(store, clock, policy)
        self._lock = threading.RLock()

    @classmethod
    def default(
        cls,
        config: ActivitiesConfig | None = None,
        gateway: NotificationGateway | None = None,
        clock: Callable[[], datetime] = datetime.now,
        reconcile_on_start: bool = False,
    ) -> "ActivityService":
        """
        Build a service from the activities config.

        The outstanding-reminder table lives in memory, so a short-lived
        process (the CLI) passes reconcile_on_start=True to rebuild it from
        the persisted ledgers before answering anything.
        """
        config = config or load_activities_config()
        store = ActivityStore(config.storage.resolve(config.storage.db_path))
        gateway = gateway or LocalNotificationGateway(config.storage.resolve(config.storage.gateway_db_path))
        service = cls(
            store,
            ReminderScheduler.from_config(gateway, config, clock),
            clock=clock,
            policy=AgingPolicy.from_config(config),
        )
        if reconcile_on_start:
            service.reconcile()
        return service

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_activity(
        self,
        name: str,
        target_interval_days: int,
        notes: str | None = None,
        emoji: str | None = None,
        reminders_enabled: bool = True,
    ) -> dict[str, Any]:
        def run():
            activity = Activity.create(
                name,
                target_interval_days,
                notes=notes,
                emoji=emoji,
                created_at=self.clock(),
                reminders_enabled=reminders_enabled,
            )
            self.store.save(activity)
            logger.info("activity_created", activity_id=activity.id, interval=activity.target_interval_days)
            schedule = self.scheduler.reschedule(activity)
            return self._ok(activity, schedule.warning, reminder=schedule)

        return self._mutate("create", run)

    def rename_activity(self, activity_id: str, name: str) -> dict[str, Any]:
        def run():
            activity = self._require(activity_id)
            activity.name = validate_name(name)
            self.store.save(activity)
            # Reminder text carries the name
            schedule = self.scheduler.reschedule(activity)
            return self._ok(activity, schedule.warning, reminder=schedule)

        return self._mutate("rename", run, activity_id)

    def set_target_interval(self, activity_id: str, target_interval_days: int) -> dict[str, Any]:
        def run():
            days = validate_interval(target_interval_days)
            activity = self._require(activity_id)
            activity.target_interval_days = days
            self.store.save(activity)
            schedule = self.scheduler.reschedule(activity)
            return self._ok(activity, schedule.warning, reminder=schedule)

        return self._mutate("set_interval", run, activity_id)

    def set_archived(self, activity_id: str, archived: bool) -> dict[str, Any]:
        def run():
            activity = self._require(activity_id)
            activity.archived = bool(archived)
            self.store.save(activity)
            logger.info("activity_archive_toggled", activity_id=activity_id, archived=activity.archived)
            # Both directions: archiving cancels, un-archiving re-arms
            schedule = self.scheduler.reschedule(activity)
            return self._ok(activity, schedule.warning, reminder=schedule)

        return self._mutate("set_archived", run, activity_id)

    def set_reminders_enabled(self, activity_id: str, enabled: bool) -> dict[str, Any]:
        """Turn reminders on or off for one activity without archiving it."""

        def run():
            activity = self._require(activity_id)
            activity.reminders_enabled = bool(enabled)
            self.store.save(activity)
            logger.info("activity_reminders_toggled", activity_id=activity_id, enabled=activity.reminders_enabled)
            schedule = self.scheduler.reschedule(activity)
            return self._ok(activity, schedule.warning, reminder=schedule)

        return self._mutate("set_reminders_enabled", run, activity_id)

    def delete_activity(self, activity_id: str) -> dict[str, Any]:
        def run():
            if not self.store.delete(activity_id):
                raise ActivityNotFoundError(activity_id)
            logger.info("activity_deleted", activity_id=activity_id)
            schedule = self.scheduler.cancel(activity_id)
            return {
                "success": True,
                "data": {"id": activity_id, "deleted": True},
                "warnings": [schedule.warning] if schedule.warning else [],
            }

        return self._mutate("delete", run, activity_id)

    def mark_completed(
        self,
        activity_id: str,
        note: str | None = None,
        at: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Mark an activity as done.

        Args:
            activity_id: Activity to complete
            note: Optional note for this completion
            at: When it happened (default now)

        Returns:
            dict with success status, the new record, the armed reminder (if
            any) and any scheduling warnings
        """

        def run():
            activity = self._require(activity_id)
            outcome = self.recorder.mark_completed(activity, note=note, at=at)
            snapshot = ActivitySnapshot.of(activity, self.clock(), self.policy)
            return {
                "success": True,
                "data": {**outcome.to_dict(), "activity": snapshot.to_dict()},
                "warnings": outcome.warnings,
            }

        return self._mutate("mark_completed", run, activity_id)

    def reconcile(self) -> dict[str, Any]:
        """Rebuild every reminder from the persisted ledgers. Run once at startup."""
        with self._lock:
            try:
                activities = self.store.fetch_all()
            except PersistenceError as e:
                logger.error("reconcile_failed", error=str(e))
                return {"success": False, "error": str(e), "error_type": "persistence"}
            summary = self.scheduler.reconcile(activities)
        return {"success": True, "data": summary, "warnings": summary["warnings"]}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_activity(self, activity_id: str) -> dict[str, Any]:
        try:
            activity = self.store.get(activity_id)
        except PersistenceError as e:
            logger.warning("get_activity_failed", activity_id=activity_id, error=str(e))
            return {"success": False, "error": str(e), "error_type": "persistence"}
        if activity is None:
            return {"success": False, "error": f"Activity not found: {activity_id}", "error_type": "not_found"}

        data = activity.to_dict(include_completions=False)
        data.update(ActivitySnapshot.of(activity, self.clock(), self.policy).to_dict())
        reminder = self.scheduler.outstanding(activity_id)
        data["reminder"] = reminder.to_dict() if reminder else None
        return {"success": True, "data": data}

    def recent_completions(self, activity_id: str, limit: int = DEFAULT_RECENT_LIMIT) -> list[dict[str, Any]]:
        try:
            activity = self.store.get(activity_id)
        except PersistenceError as e:
            logger.warning("recent_completions_failed", activity_id=activity_id, error=str(e))
            return []
        if activity is None:
            return []
        return [record.to_dict() for record in activity.recent(limit)]

    def get_by_ids(self, ids: Iterable[str]) -> list[ActivitySnapshot]:
        return self.lookup.by_ids(ids)

    def get_active(self) -> list[ActivitySnapshot]:
        return self.lookup.active()

    def get_matching(self, text: str) -> list[ActivitySnapshot]:
        return self.lookup.matching(text)

    def get_overdue(self) -> list[ActivitySnapshot]:
        return self.lookup.overdue()

    def days_since_last_completed(self, activity_id: str) -> int | None:
        """
        Whole days since the activity was last done.

        Returns None when it has never been done or the store is unavailable.
        Raises ActivityNotFoundError when there is no such activity.
        """
        found = self.lookup.by_ids([activity_id])
        if not found:
            # Distinguish a missing activity from a failed read
            try:
                exists = self.store.get(activity_id) is not None
            except PersistenceError:
                return None
            if not exists:
                raise ActivityNotFoundError(activity_id)
            return None
        return found[0].days_since

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require(self, activity_id: str) -> Activity:
        activity = self.store.get(activity_id)
        if activity is None:
            raise ActivityNotFoundError(activity_id)
        return activity

    def _ok(self, activity: Activity, warning: str | None, reminder=None) -> dict[str, Any]:
        data = activity.to_dict(include_completions=False)
        if reminder is not None:
            data["reminder"] = reminder.request.to_dict() if reminder.request else None
        return {"success": True, "data": data, "warnings": [warning] if warning else []}

    def _mutate(self, action: str, run: Callable[[], dict[str, Any]], activity_id: str | None = None) -> dict[str, Any]:
        with self._lock, activity_context(activity_id):
            try:
                return run()
            except ActivityNotFoundError as e:
                return {"success": False, "error": str(e), "error_type": "not_found"}
            except InvalidActivityError as e:
                return {"success": False, "error": str(e), "error_type": "invalid"}
            except PersistenceError as e:
                logger.error("mutation_failed", action=action, error=str(e))
                return {"success": False, "error": f"Couldn't save: {e}", "error_type": "persistence"}


__all__ = ["ActivityService"]
