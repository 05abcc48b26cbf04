"""Intent parsing for voice commands.

Priority-sorted regex patterns, same phrasing the shortcuts offer:
    "mark <activity> as done", "I just did <activity>", "log <activity>"
    "what's overdue", "what needs attention"
    "when did I last <activity>", "when was <activity> last done"
"""

from __future__ import annotations

import re

from lastdone.voice.models import IntentType, ParsedCommand

# (pattern, intent, priority). Group 1 captures the activity, group 2 an optional note.
INTENT_PATTERNS: list[tuple[str, IntentType, int]] = [
    (r"^when\s+did\s+i\s+last\s+(.+?)\??$", IntentType.WHEN_DID_I_LAST, 90),
    (r"^when\s+was\s+(.+?)\s+last\s+done\??$", IntentType.WHEN_DID_I_LAST, 89),
    (r"^mark\s+(.+?)\s+as\s+(?:done|complete|completed)(?:(?:\s*[,:]|\s+-)\s+(.+))?$", IntentType.MARK_COMPLETED, 80),
    (r"^i\s+(?:just\s+)?did\s+(?:the\s+)?(.+?)(?:(?:\s*[,:]|\s+-)\s+(.+))?$", IntentType.MARK_COMPLETED, 79),
    (r"^(?:complete|log)\s+(.+?)(?:(?:\s*[,:]|\s+-)\s+(.+))?$", IntentType.MARK_COMPLETED, 78),
    (r"(?:what(?:'s|\s+is)\s+overdue|show\s+overdue(?:\s+activities)?|what\s+needs\s+attention)", IntentType.GET_OVERDUE, 70),
    (r"(?:help|what\s+can\s+(?:i\s+say|you\s+do))", IntentType.HELP, 40),
]

AVAILABLE_COMMANDS = [
    "Mark <activity> as done",
    "I just did <activity>",
    "What's overdue?",
    "When did I last <activity>?",
]

_compiled_patterns: list[tuple[re.Pattern, IntentType, int]] | None = None


def _get_patterns() -> list[tuple[re.Pattern, IntentType, int]]:
    global _compiled_patterns
    if _compiled_patterns is None:
        _compiled_patterns = sorted(
            [(re.compile(p, re.IGNORECASE), intent, pri) for p, intent, pri in INTENT_PATTERNS],
            key=lambda x: x[2],
            reverse=True,
        )
    return _compiled_patterns


def parse_command(text: str) -> ParsedCommand:
    """Parse a transcript into a command. Unrecognized input yields UNKNOWN."""
    text = (text or "").strip()
    if not text:
        return ParsedCommand(IntentType.UNKNOWN, raw_transcript=text)

    for pattern, intent, priority in _get_patterns():
        match = pattern.search(text)
        if not match:
            continue
        groups = match.groups()
        activity_text = groups[0].strip() if groups and groups[0] else None
        note = groups[1].strip() if len(groups) > 1 and groups[1] else None
        return ParsedCommand(
            intent=intent,
            confidence=min(0.95, 0.6 + (priority / 200)),
            activity_text=activity_text,
            note=note,
            raw_transcript=text,
        )

    return ParsedCommand(IntentType.UNKNOWN, raw_transcript=text)


__all__ = ["AVAILABLE_COMMANDS", "INTENT_PATTERNS", "parse_command"]
