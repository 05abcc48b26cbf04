"""
Tool: Completion Recorder
Purpose: Log "I did it" against an activity and re-arm its reminder

Order matters:
    1. The new record is written to the store
    2. Only then is it appended to the in-memory ledger
    3. Only then is the reminder rescheduled

If the write fails nothing is appended and PersistenceError propagates, so
a record never exists only in memory. If the reminder fails the completion
still stands and the outcome carries a warning. A crash between 1 and 3 is
repaired by reconciliation on the next start.

Completions are events, not a set: recording twice, even with the same
timestamp, gives two ledger entries.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from lastdone.activities.errors import InvalidActivityError
from lastdone.activities.models import Activity, CompletionRecord
from lastdone.activities.store import ActivityStore
from lastdone.logging_config import get_logger
from lastdone.reminders.scheduler import ReminderScheduler, ScheduleResult

logger = get_logger(__name__)


@dataclass
class CompletionOutcome:
    activity: Activity
    record: CompletionRecord
    schedule: ScheduleResult
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "activity_id": self.activity.id,
            "record": self.record.to_dict(),
            "ledger_size": len(self.activity.completions),
            "reminder": self.schedule.request.to_dict() if self.schedule.request else None,
        }


class CompletionRecorder:
    def __init__(
        self,
        store: ActivityStore,
        scheduler: ReminderScheduler,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.scheduler = scheduler
        self.clock = clock

    def mark_completed(
        self,
        activity: Activity,
        note: str | None = None,
        at: datetime | None = None,
    ) -> CompletionOutcome:
        """
        Record a completion.

        Args:
            activity: The activity that was done
            note: Optional free-text note for this completion
            at: When it was done (default now); earlier times backdate it.
                Timezone-aware values are converted to local time.

        Returns:
            CompletionOutcome with the new record and the reminder result

        Raises:
            InvalidActivityError: at is in the future
            PersistenceError: the record could not be saved
        """
        now = self.clock()
        if at is not None and at.tzinfo is not None:
            # Ledger timestamps are naive local time
            at = at.astimezone().replace(tzinfo=None)
        if at is not None and at > now:
            raise InvalidActivityError("Completions can't be recorded in the future")

        record = CompletionRecord.create(note=note, at=at, now=now)
        self.store.add_completion(activity.id, record)
        activity.append(record)

        logger.info(
            "completion_recorded",
            activity_id=activity.id,
            completion_id=record.id,
            backdated=record.was_backdated,
        )

        schedule = self.scheduler.reschedule(activity, now=now)
        warnings = [schedule.warning] if schedule.warning else []
        return CompletionOutcome(activity, record, schedule, warnings)


__all__ = ["CompletionOutcome", "CompletionRecorder"]
