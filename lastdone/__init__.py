"""LastDone - gentle tracking of the things you do every so often

Philosophy:
    "When did I last water the plants?" is a memory question, not a
    productivity question. Nothing here is a streak to lose. Activities
    age quietly from fresh to stale, and a single reminder is armed
    before one becomes overdue.

Components:
    activities/: Activity model, completion ledger, aging classifier,
                 completion recorder, lookup index, query surface
    reminders/: Reminder scheduler and notification gateways
    voice/: Thin assistant adapter (mark done, what's overdue, when did I last)

Usage:
    from lastdone.activities.service import ActivityService

    service = ActivityService.default()
    created = service.create_activity("Water Plants", target_interval_days=7)
    service.mark_completed(created["data"]["id"], note="All of them")
"""

from pathlib import Path

__version__ = "0.1.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"
DATA_DIR = PROJECT_ROOT / "data"

__all__ = ["ARGS_DIR", "DATA_DIR", "PROJECT_ROOT", "__version__"]
