"""
Tool: Lookup Index
Purpose: Read-only queries over the activity collection for voice and search

Every call goes to the store; nothing is cached between calls. Each result
is a point-in-time snapshot carrying days-since and aging state, so a voice
answer can be phrased without touching the live activity again.

Store failures degrade to an empty result (logged), so a storage hiccup
never turns into a crash in a conversational reply.

Usage:
    from lastdone.activities.lookup import LookupIndex

    index = LookupIndex(store)
    index.matching("yoga")
    index.overdue()
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from lastdone.activities.aging import DEFAULT_POLICY, AgingPolicy, classify_activity
from lastdone.activities.errors import PersistenceError
from lastdone.activities.models import Activity, AgingState
from lastdone.activities.store import ActivityStore
from lastdone.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ActivitySnapshot:
    id: str
    name: str
    target_interval_days: int
    archived: bool
    last_completed_at: datetime | None
    days_since: int | None
    aging_state: AgingState
    emoji: str | None = None

    @classmethod
    def of(cls, activity: Activity, now: datetime, policy: AgingPolicy = DEFAULT_POLICY) -> "ActivitySnapshot":
        return cls(
            id=activity.id,
            name=activity.name,
            target_interval_days=activity.target_interval_days,
            archived=activity.archived,
            last_completed_at=activity.last_completed_at,
            days_since=activity.days_since(now),
            aging_state=classify_activity(activity, now, policy),
            emoji=activity.emoji,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "target_interval_days": self.target_interval_days,
            "archived": self.archived,
            "last_completed_at": self.last_completed_at.isoformat() if self.last_completed_at else None,
            "days_since": self.days_since,
            "aging_state": self.aging_state.value,
        }


class LookupIndex:
    def __init__(
        self,
        store: ActivityStore,
        clock: Callable[[], datetime] = datetime.now,
        policy: AgingPolicy = DEFAULT_POLICY,
    ):
        self.store = store
        self.clock = clock
        self.policy = policy

    def by_ids(self, ids: Iterable[str]) -> list[ActivitySnapshot]:
        ids = list(ids)
        return self._snapshot("by_ids", lambda: self.store.fetch_by_ids(ids))

    def active(self) -> list[ActivitySnapshot]:
        return self._snapshot("active", self.store.fetch_active)

    def matching(self, text: str) -> list[ActivitySnapshot]:
        """Non-archived activities whose name contains text, case-insensitively."""
        text = (text or "").strip()
        if not text:
            return []
        return self._snapshot("matching", lambda: self.store.fetch_matching(text))

    def overdue(self) -> list[ActivitySnapshot]:
        return [s for s in self.active() if s.aging_state == AgingState.STALE]

    def _snapshot(self, query: str, fetch: Callable[[], list[Activity]]) -> list[ActivitySnapshot]:
        try:
            activities = fetch()
        except PersistenceError as e:
            logger.warning("lookup_failed", query=query, error=str(e))
            return []
        now = self.clock()
        return [ActivitySnapshot.of(activity, now, self.policy) for activity in activities]


__all__ = ["ActivitySnapshot", "LookupIndex"]
