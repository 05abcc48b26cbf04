"""Voice Interface - "I just watered the plants", "what's overdue?"

A thin adapter between spoken phrases and the activity service. It looks
activities up by name and calls into the engine; all staleness and
reminder rules live in lastdone.activities and lastdone.reminders.

Components:
    models.py: IntentType, ParsedCommand, CommandResult
    parser.py: Regex intent parsing
    commands.py: Async intent handlers and the CommandRouter

Usage:
    from lastdone.voice.parser import parse_command
    from lastdone.voice.commands import CommandRouter

    router = CommandRouter(service)
    result = await router.route_command(parse_command("what's overdue"))
    print(result.message)
"""
