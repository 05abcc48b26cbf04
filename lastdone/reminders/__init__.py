"""Reminders - one gentle nudge per activity, armed before it goes stale

Philosophy:
    A reminder is a consequence of the ledger, never a fact of its own.
    It can always be thrown away and re-derived from the activity, which
    is exactly what startup reconciliation does.

Components:
    gateway.py: NotificationGateway interface + SQLite-backed local gateway
    scheduler.py: ReminderScheduler, sole owner of outstanding requests

Database: data/notifications.db
    - scheduled_notifications: requests handed to the local gateway
"""

from lastdone import DATA_DIR

# Path constants
DB_PATH = DATA_DIR / "notifications.db"

# Statuses in the local gateway's table
NOTIFICATION_STATUSES = ("scheduled", "delivered", "cancelled")

__all__ = ["DB_PATH", "NOTIFICATION_STATUSES"]
