"""Voice command handlers.

Each handler resolves the spoken activity through the lookup surface,
calls the activity service, and turns the answer into a short, friendly
sentence. Failures become "couldn't find that" style replies, never
exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from lastdone.activities.errors import ActivityNotFoundError
from lastdone.activities.lookup import ActivitySnapshot
from lastdone.activities.service import ActivityService
from lastdone.activities.store import fold
from lastdone.voice.models import CommandResult, IntentType, ParsedCommand
from lastdone.voice.parser import AVAILABLE_COMMANDS

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Couldn't find that activity."

HandlerFn = Callable[[ParsedCommand, str | None], Awaitable[CommandResult]]


def join_names(snapshots: list[ActivitySnapshot], max_names: int) -> str:
    return ", ".join(s.name for s in snapshots[:max_names])


class CommandRouter:
    """Routes parsed voice commands to handlers bound to one ActivityService."""

    def __init__(self, service: ActivityService, max_names: int = 5):
        self.service = service
        self.max_names = max_names
        self._handlers: dict[IntentType, HandlerFn] = {
            IntentType.MARK_COMPLETED: self.handle_mark_completed,
            IntentType.GET_OVERDUE: self.handle_get_overdue,
            IntentType.WHEN_DID_I_LAST: self.handle_when_did_i_last,
        }

    async def route_command(self, command: ParsedCommand, activity_id: str | None = None) -> CommandResult:
        """
        Dispatch a command.

        activity_id, when given, skips name matching (shortcut callers
        already hold the entity).
        """
        if command.intent == IntentType.HELP:
            return CommandResult(
                success=True,
                message="Here's what you can say:",
                intent=IntentType.HELP,
                data={"commands": AVAILABLE_COMMANDS},
            )

        handler = self._handlers.get(command.intent)
        if handler is None:
            return CommandResult(
                success=False,
                message='Say "help" to see what I can do.',
                intent=command.intent,
                error="unrecognized_command",
            )

        result = await handler(command, activity_id)
        result.intent = command.intent
        return result

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def handle_mark_completed(self, command: ParsedCommand, activity_id: str | None = None) -> CommandResult:
        snapshot, failure = self._resolve(command, activity_id)
        if failure:
            return failure

        result = self.service.mark_completed(snapshot.id, note=command.note)
        if not result["success"]:
            if result.get("error_type") == "not_found":
                return CommandResult(success=False, message=NOT_FOUND_MESSAGE, error=result["error"])
            return CommandResult(
                success=False,
                message="Couldn't save that just now. Try again?",
                error=result["error"],
            )

        return CommandResult(
            success=True,
            message=f"Done! Marked {snapshot.name} as completed.",
            data=result["data"],
            warnings=result["warnings"],
        )

    async def handle_get_overdue(self, command: ParsedCommand, activity_id: str | None = None) -> CommandResult:
        overdue = self.service.get_overdue()
        count = len(overdue)
        data = {"count": count, "activities": [s.to_dict() for s in overdue]}

        if count == 0:
            return CommandResult(success=True, message="You're all caught up! No overdue activities.", data=data)

        names = join_names(overdue, self.max_names)
        if count == 1:
            message = f"You have 1 overdue activity: {names}"
        elif count <= self.max_names:
            message = f"You have {count} overdue activities: {names}"
        else:
            message = f"You have {count} overdue activities including: {names}"
        return CommandResult(success=True, message=message, data=data)

    async def handle_when_did_i_last(self, command: ParsedCommand, activity_id: str | None = None) -> CommandResult:
        snapshot, failure = self._resolve(command, activity_id)
        if failure:
            return failure

        try:
            days = self.service.days_since_last_completed(snapshot.id)
        except ActivityNotFoundError as e:
            return CommandResult(success=False, message=NOT_FOUND_MESSAGE, error=str(e))

        name = snapshot.name
        data = {"activity_id": snapshot.id, "days_since": days}
        if days is None or snapshot.last_completed_at is None:
            return CommandResult(success=True, message=f"You haven't completed {name} yet.", data=data)
        if days == 0:
            return CommandResult(success=True, message=f"You did {name} today!", data=data)
        if days == 1:
            return CommandResult(success=True, message=f"You did {name} yesterday.", data=data)

        last = snapshot.last_completed_at
        on_date = f"{last:%b} {last.day}, {last.year}"
        return CommandResult(success=True, message=f"You last did {name} {days} days ago, on {on_date}.", data=data)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def _resolve(
        self,
        command: ParsedCommand,
        activity_id: str | None,
    ) -> tuple[ActivitySnapshot | None, CommandResult | None]:
        if activity_id:
            found = self.service.get_by_ids([activity_id])
            if not found:
                return None, CommandResult(success=False, message=NOT_FOUND_MESSAGE, error="not_found")
            return found[0], None

        if not command.activity_text:
            return None, CommandResult(
                success=False,
                message="Which activity?",
                follow_up_prompt="Which activity?",
                error="missing_activity",
            )

        matches = self.service.get_matching(command.activity_text)
        if not matches:
            logger.info(f"No activity matched '{command.activity_text}'")
            return None, CommandResult(success=False, message=NOT_FOUND_MESSAGE, error="not_found")

        wanted = fold(command.activity_text)
        exact = [m for m in matches if fold(m.name) == wanted]
        if len(exact) == 1:
            return exact[0], None
        if len(matches) == 1:
            return matches[0], None

        names = join_names(matches, self.max_names)
        return None, CommandResult(
            success=False,
            message=f"Did you mean one of these: {names}?",
            follow_up_prompt="Which one?",
            data={"candidates": [m.to_dict() for m in matches]},
            error="ambiguous",
        )


__all__ = ["NOT_FOUND_MESSAGE", "CommandRouter", "join_names"]
