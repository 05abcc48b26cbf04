"""
Tool: Activity Store
Purpose: SQLite persistence for activities and their completion ledgers

Filtering happens in SQL, not by loading everything and scanning:
- by id set: WHERE id IN (...)
- by archived flag: indexed column
- by name substring: casefold_contains(), a Python function registered on
  the connection so matching is Unicode case-insensitive (str.casefold)

Usage:
    from lastdone.activities.store import ActivityStore

    store = ActivityStore()
    store.save(activity)
    store.fetch_matching("yoga")

Dependencies:
    - sqlite3 (stdlib)

Every sqlite3.Error is re-raised as PersistenceError.
"""

import sqlite3
import unicodedata
from collections.abc import Iterable
from contextlib import contextmanager
from pathlib import Path

from lastdone.activities import DB_PATH
from lastdone.activities.errors import PersistenceError
from lastdone.activities.models import Activity, CompletionRecord
from lastdone.logging_config import get_logger

logger = get_logger(__name__)


def fold(text: str | None) -> str:
    """Normalize for case-insensitive comparison across scripts."""
    return unicodedata.normalize("NFKC", text or "").casefold()


def casefold_contains(haystack: str | None, needle: str | None) -> int:
    return int(fold(needle) in fold(haystack))


class ActivityStore:
    """Persistence collaborator for the activity engine."""

    def __init__(self, db_path: Path | str = DB_PATH):
        self.db_path = Path(db_path)

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.create_function("casefold_contains", 2, casefold_contains, deterministic=True)

        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS activities (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                target_interval_days INTEGER NOT NULL CHECK(target_interval_days > 0),
                notes TEXT,
                emoji TEXT,
                archived INTEGER DEFAULT 0,
                reminders_enabled INTEGER DEFAULT 1,
                created_at DATETIME NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS completions (
                id TEXT PRIMARY KEY,
                activity_id TEXT NOT NULL,
                completed_at DATETIME NOT NULL,
                recorded_at DATETIME NOT NULL,
                note TEXT,
                was_backdated INTEGER DEFAULT 0,
                FOREIGN KEY(activity_id) REFERENCES activities(id) ON DELETE CASCADE
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_activities_archived ON activities(archived)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_completions_activity ON completions(activity_id)")
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_completions_activity_time ON completions(activity_id, completed_at)"
        )

        conn.commit()
        return conn

    @contextmanager
    def _connect(self):
        try:
            conn = self.get_connection()
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open activity store: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _load(self, conn: sqlite3.Connection, where: str = "", params: Iterable = ()) -> list[Activity]:
        sql = "SELECT * FROM activities"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY created_at, id"

        rows = conn.execute(sql, list(params)).fetchall()
        if not rows:
            return []

        activities = {row["id"]: Activity.from_dict(dict(row)) for row in rows}
        placeholders = ",".join("?" for _ in activities)
        completion_rows = conn.execute(
            f"""
            SELECT id, activity_id, completed_at, recorded_at, note, was_backdated
            FROM completions
            WHERE activity_id IN ({placeholders})
            ORDER BY completed_at, rowid
            """,
            list(activities),
        ).fetchall()

        for row in completion_rows:
            data = dict(row)
            activity_id = data.pop("activity_id")
            activities[activity_id].append(CompletionRecord.from_dict(data))

        return list(activities.values())

    def fetch_all(self) -> list[Activity]:
        with self._connect() as conn:
            return self._load(conn)

    def get(self, activity_id: str) -> Activity | None:
        with self._connect() as conn:
            found = self._load(conn, "id = ?", [activity_id])
        return found[0] if found else None

    def fetch_by_ids(self, ids: Iterable[str]) -> list[Activity]:
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return []
        placeholders = ",".join("?" for _ in id_list)
        with self._connect() as conn:
            return self._load(conn, f"id IN ({placeholders})", id_list)

    def fetch_active(self) -> list[Activity]:
        with self._connect() as conn:
            return self._load(conn, "archived = 0")

    def fetch_matching(self, text: str) -> list[Activity]:
        """Non-archived activities whose name contains text, ignoring case."""
        with self._connect() as conn:
            return self._load(conn, "archived = 0 AND casefold_contains(name, ?)", [text])

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def save(self, activity: Activity) -> None:
        """Upsert the activity and any ledger records not yet stored, atomically."""
        with self._connect() as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO activities
                        (id, name, target_interval_days, notes, emoji, archived, reminders_enabled, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name = excluded.name,
                        target_interval_days = excluded.target_interval_days,
                        notes = excluded.notes,
                        emoji = excluded.emoji,
                        archived = excluded.archived,
                        reminders_enabled = excluded.reminders_enabled
                    """,
                    (
                        activity.id,
                        activity.name,
                        activity.target_interval_days,
                        activity.notes,
                        activity.emoji,
                        int(activity.archived),
                        int(activity.reminders_enabled),
                        activity.created_at.isoformat(),
                    ),
                )
                # Records are immutable, so existing rows are left alone
                conn.executemany(
                    """
                    INSERT OR IGNORE INTO completions
                    (id, activity_id, completed_at, recorded_at, note, was_backdated)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [self._completion_params(activity.id, record) for record in activity.completions],
                )
        logger.debug("activity_saved", activity_id=activity.id, ledger_size=len(activity.completions))

    def add_completion(self, activity_id: str, record: CompletionRecord) -> None:
        with self._connect() as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO completions
                    (id, activity_id, completed_at, recorded_at, note, was_backdated)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    self._completion_params(activity_id, record),
                )

    def delete(self, activity_id: str) -> bool:
        with self._connect() as conn:
            with conn:
                cursor = conn.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
        return cursor.rowcount > 0

    @staticmethod
    def _completion_params(activity_id: str, record: CompletionRecord) -> tuple:
        return (
            record.id,
            activity_id,
            record.completed_at.isoformat(),
            record.recorded_at.isoformat(),
            record.note,
            int(record.was_backdated),
        )


__all__ = ["ActivityStore", "casefold_contains", "fold"]
