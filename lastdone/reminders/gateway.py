"""
Tool: Notification Gateway
Purpose: Hand reminder requests to whatever actually delivers notifications

The gateway owns delivery: timezones, precision, delivery while the app is
in the background. The engine only says "fire this at T" and "forget it".

Usage:
    from lastdone.reminders.gateway import LocalNotificationGateway

    gateway = LocalNotificationGateway()
    handle = gateway.schedule("reminder_act_123", fire_at, {"title": "..."})
    gateway.cancel("reminder_act_123")   # safe to repeat
"""

import json
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

from lastdone.activities.errors import SchedulingError
from lastdone.logging_config import get_logger
from lastdone.reminders import DB_PATH, NOTIFICATION_STATUSES

logger = get_logger(__name__)

_STATUS_CHECK = ", ".join(f"'{status}'" for status in NOTIFICATION_STATUSES)


class NotificationGateway(ABC):
    """
    Abstract notification gateway.

    schedule() returns a handle or raises SchedulingError. cancel() must be
    idempotent: cancelling an unknown request is a no-op.
    """

    @abstractmethod
    def schedule(self, request_id: str, fire_at: datetime, payload: dict[str, Any]) -> str:
        pass

    @abstractmethod
    def cancel(self, request_id: str) -> None:
        pass


class LocalNotificationGateway(NotificationGateway):
    """
    Gateway backed by a local SQLite table.

    A delivery worker (or the CLI `reminders` command) reads due rows with
    due() and marks them delivered. Scheduling under an existing request id
    replaces that request.

    Args:
        db_path: SQLite file for scheduled notifications
        enabled: False behaves like a host that denied notification permission
    """

    def __init__(self, db_path: Path | str = DB_PATH, enabled: bool = True):
        self.db_path = Path(db_path)
        self.enabled = enabled

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row

        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS scheduled_notifications (
                id TEXT PRIMARY KEY,
                category TEXT,
                title TEXT NOT NULL,
                body TEXT,
                data TEXT,
                scheduled_for DATETIME NOT NULL,
                status TEXT DEFAULT 'scheduled' CHECK(status IN ({_STATUS_CHECK})),
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                delivered_at DATETIME
            )
        """)
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_scheduled_status_time "
            "ON scheduled_notifications(status, scheduled_for)"
        )
        conn.commit()
        return conn

    def schedule(self, request_id: str, fire_at: datetime, payload: dict[str, Any]) -> str:
        if not self.enabled:
            raise SchedulingError("Notification permission denied")

        try:
            conn = self.get_connection()
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT OR REPLACE INTO scheduled_notifications
                        (id, category, title, body, data, scheduled_for, status, created_at)
                        VALUES (?, ?, ?, ?, ?, ?, 'scheduled', ?)
                        """,
                        (
                            request_id,
                            payload.get("category"),
                            payload.get("title") or "Reminder",
                            payload.get("body"),
                            json.dumps(payload.get("data") or {}),
                            fire_at.isoformat(),
                            datetime.now().isoformat(),
                        ),
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise SchedulingError(f"Could not schedule {request_id}: {e}") from e

        return request_id

    def cancel(self, request_id: str) -> None:
        try:
            conn = self.get_connection()
            try:
                with conn:
                    cursor = conn.execute(
                        """
                        UPDATE scheduled_notifications
                        SET status = 'cancelled'
                        WHERE id = ? AND status = 'scheduled'
                        """,
                        (request_id,),
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise SchedulingError(f"Could not cancel {request_id}: {e}") from e

        if cursor.rowcount:
            logger.debug("notification_cancelled", request_id=request_id)

    def pending(self) -> list[dict[str, Any]]:
        """All notifications still waiting to fire, soonest first."""
        conn = self.get_connection()
        try:
            rows = conn.execute(
                """
                SELECT * FROM scheduled_notifications
                WHERE status = 'scheduled'
                ORDER BY scheduled_for ASC
                """
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_dict(row) for row in rows]

    def due(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Scheduled notifications whose fire time has arrived."""
        now = now or datetime.now()
        return [n for n in self.pending() if n["scheduled_for"] <= now]

    def mark_delivered(self, request_id: str) -> bool:
        conn = self.get_connection()
        try:
            with conn:
                cursor = conn.execute(
                    """
                    UPDATE scheduled_notifications
                    SET status = 'delivered', delivered_at = ?
                    WHERE id = ? AND status = 'scheduled'
                    """,
                    (datetime.now().isoformat(), request_id),
                )
        finally:
            conn.close()
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
        data = dict(row)
        data["data"] = json.loads(data["data"]) if data.get("data") else {}
        data["scheduled_for"] = datetime.fromisoformat(data["scheduled_for"])
        return data


__all__ = ["LocalNotificationGateway", "NotificationGateway"]
