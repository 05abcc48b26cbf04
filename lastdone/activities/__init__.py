"""Activity Engine - staleness tracking for recurring activities

Philosophy:
    The ledger of completions is the only truth. "Last done", "days since"
    and fresh/aging/stale are always derived from it on read, never stored,
    so they cannot drift out of sync with what actually happened.

Components:
    models.py: Activity, CompletionRecord (the ledger), AgingState
    aging.py: Pure classifier (interval, last completion, now) -> AgingState
    store.py: SQLite persistence with query pushdown
    recorder.py: Append completions and re-arm reminders
    lookup.py: Read-only queries by id set, archived flag, name substring
    service.py: Query surface used by the voice layer, CLI and UI
"""


from lastdone import DATA_DIR

# Path constants
DB_PATH = DATA_DIR / "activities.db"

# Records per activity returned by recent_completions() unless asked otherwise
DEFAULT_RECENT_LIMIT = 10

__all__ = [
    "DB_PATH",
    "DEFAULT_RECENT_LIMIT",
]
