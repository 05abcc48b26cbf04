"""Voice interface data models.

Transcript -> ParsedCommand -> CommandResult
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class IntentType(str, Enum):
    MARK_COMPLETED = "mark_completed"
    GET_OVERDUE = "get_overdue"
    WHEN_DID_I_LAST = "when_did_i_last"
    HELP = "help"
    UNKNOWN = "unknown"


@dataclass
class ParsedCommand:
    """A parsed voice command. activity_text is the spoken activity name, if any."""

    intent: IntentType
    confidence: float = 0.0
    activity_text: str | None = None
    note: str | None = None
    raw_transcript: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent.value,
            "confidence": self.confidence,
            "activity_text": self.activity_text,
            "note": self.note,
            "raw_transcript": self.raw_transcript,
        }


@dataclass
class CommandResult:
    """Result from executing a voice command."""

    success: bool
    message: str
    intent: IntentType = IntentType.UNKNOWN
    data: dict[str, Any] = field(default_factory=dict)
    follow_up_prompt: str | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "intent": self.intent.value,
            "data": self.data,
            "follow_up_prompt": self.follow_up_prompt,
            "warnings": self.warnings,
            "error": self.error,
        }
