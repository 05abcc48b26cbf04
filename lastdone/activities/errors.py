"""Error taxonomy for the activity engine.

NotFound and validation errors are the caller's problem, PersistenceError
means the store could not be read or written, SchedulingError means the
notification gateway refused a request. Only the first three ever fail a
mutation; a SchedulingError is downgraded to a warning once a completion
is committed.
"""


class ActivityError(Exception):
    """Base class for activity engine errors."""


class ActivityNotFoundError(ActivityError, LookupError):
    def __init__(self, activity_id: str):
        super().__init__(f"Activity not found: {activity_id}")
        self.activity_id = activity_id


class InvalidActivityError(ActivityError, ValueError):
    """Rejected at the edit boundary (empty name, non-positive interval, future timestamp)."""


class PersistenceError(ActivityError):
    """The store failed to read or write."""


class SchedulingError(ActivityError):
    """The notification gateway rejected or failed a request."""


__all__ = [
    "ActivityError",
    "ActivityNotFoundError",
    "InvalidActivityError",
    "PersistenceError",
    "SchedulingError",
]
