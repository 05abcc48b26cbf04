"""LastDone Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - activities/: Ledger, aging classifier, store, recorder, lookup, service
  - reminders/: Reminder scheduler and notification gateway
  - voice/: Intent parser and command handlers
- integration/: Full lifecycle flows against real SQLite files

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/reminders/
"""
