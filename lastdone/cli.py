#!/usr/bin/env python3
"""
LastDone Command Line Interface

Main entry point for the `lastdone` command. Every command prints JSON.

Usage:
    lastdone create "Water Plants" --every 7
    lastdone complete act_123abc --note "Ferns too"
    lastdone complete act_123abc --at 2026-10-15T09:00
    lastdone list
    lastdone overdue
    lastdone search yoga
    lastdone show act_123abc
    lastdone interval act_123abc 10
    lastdone archive act_123abc
    lastdone mute act_123abc
    lastdone reconcile
    lastdone reminders --due
    lastdone say "when did I last water plants"
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime

from lastdone import __version__
from lastdone.logging_config import setup_logging_from_config


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _service(reconcile: bool = True):
    from lastdone.activities.service import ActivityService

    # Each invocation is a new process; rebuild the reminder table first
    return ActivityService.default(reconcile_on_start=reconcile)


def _parse_at(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not an ISO date/time: {value}")


def cmd_create(args):
    result = _service().create_activity(
        args.name,
        args.every,
        notes=args.notes,
        emoji=args.emoji,
        reminders_enabled=not args.no_reminder,
    )
    _print(result)
    return 0 if result["success"] else 1


def cmd_complete(args):
    result = _service().mark_completed(args.activity_id, note=args.note, at=_parse_at(args.at))
    _print(result)
    return 0 if result["success"] else 1


def cmd_show(args):
    service = _service()
    result = service.get_activity(args.activity_id)
    if result["success"]:
        result["data"]["recent_completions"] = service.recent_completions(args.activity_id, args.recent)
    _print(result)
    return 0 if result["success"] else 1


def cmd_list(args):
    service = _service()
    snapshots = service.get_overdue() if args.command == "overdue" else service.get_active()
    _print({"success": True, "data": [s.to_dict() for s in snapshots]})
    return 0


def cmd_search(args):
    snapshots = _service().get_matching(args.text)
    _print({"success": True, "data": [s.to_dict() for s in snapshots]})
    return 0


def cmd_archive(args):
    result = _service().set_archived(args.activity_id, args.command == "archive")
    _print(result)
    return 0 if result["success"] else 1


def cmd_reminders_toggle(args):
    result = _service().set_reminders_enabled(args.activity_id, args.command == "unmute")
    _print(result)
    return 0 if result["success"] else 1


def cmd_interval(args):
    result = _service().set_target_interval(args.activity_id, args.days)
    _print(result)
    return 0 if result["success"] else 1


def cmd_rename(args):
    result = _service().rename_activity(args.activity_id, args.name)
    _print(result)
    return 0 if result["success"] else 1


def cmd_delete(args):
    result = _service().delete_activity(args.activity_id)
    _print(result)
    return 0 if result["success"] else 1


def cmd_reconcile(args):
    result = _service(reconcile=False).reconcile()
    _print(result)
    return 0 if result["success"] else 1


def cmd_reminders(args):
    service = _service()
    gateway = service.scheduler.gateway
    if not hasattr(gateway, "pending"):
        _print({"success": False, "error": "This gateway can't list its notifications"})
        return 1
    notifications = gateway.due() if args.due else gateway.pending()
    _print({"success": True, "data": notifications})
    return 0


def cmd_say(args):
    from lastdone.config_models import load_activities_config
    from lastdone.voice.commands import CommandRouter
    from lastdone.voice.parser import parse_command

    config = load_activities_config()
    router = CommandRouter(_service(), max_names=config.voice.max_names)
    result = asyncio.run(router.route_command(parse_command(args.transcript)))
    _print(result.to_dict())
    return 0 if result.success else 1


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="lastdone",
        description="LastDone - when did I last...?",
    )
    parser.add_argument("--version", "-V", action="version", version=f"lastdone {__version__}")
    parser.add_argument("--log-level", default=None, help="Log level (default: $LASTDONE_LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    create_parser = subparsers.add_parser("create", help="Create an activity")
    create_parser.add_argument("name", help="Activity name")
    create_parser.add_argument("--every", type=int, required=True, help="Target interval in days")
    create_parser.add_argument("--notes", default=None)
    create_parser.add_argument("--emoji", default=None)
    create_parser.add_argument("--no-reminder", action="store_true", help="Never send reminders for this activity")
    create_parser.set_defaults(func=cmd_create)

    complete_parser = subparsers.add_parser("complete", help="Mark an activity as done")
    complete_parser.add_argument("activity_id")
    complete_parser.add_argument("--note", default=None, help="Note for this completion")
    complete_parser.add_argument("--at", default=None, help="When it was done (ISO format, default now)")
    complete_parser.set_defaults(func=cmd_complete)

    show_parser = subparsers.add_parser("show", help="Show one activity")
    show_parser.add_argument("activity_id")
    show_parser.add_argument("--recent", type=int, default=5, help="Recent completions to include")
    show_parser.set_defaults(func=cmd_show)

    subparsers.add_parser("list", help="List active activities").set_defaults(func=cmd_list)
    subparsers.add_parser("overdue", help="List overdue activities").set_defaults(func=cmd_list)

    search_parser = subparsers.add_parser("search", help="Find activities by name")
    search_parser.add_argument("text")
    search_parser.set_defaults(func=cmd_search)

    for name, help_text in (("archive", "Archive an activity"), ("unarchive", "Restore an archived activity")):
        archive_parser = subparsers.add_parser(name, help=help_text)
        archive_parser.add_argument("activity_id")
        archive_parser.set_defaults(func=cmd_archive)

    for name, help_text in (("mute", "Stop reminders for an activity"), ("unmute", "Resume reminders for an activity")):
        mute_parser = subparsers.add_parser(name, help=help_text)
        mute_parser.add_argument("activity_id")
        mute_parser.set_defaults(func=cmd_reminders_toggle)

    interval_parser = subparsers.add_parser("interval", help="Change the target interval")
    interval_parser.add_argument("activity_id")
    interval_parser.add_argument("days", type=int)
    interval_parser.set_defaults(func=cmd_interval)

    rename_parser = subparsers.add_parser("rename", help="Rename an activity")
    rename_parser.add_argument("activity_id")
    rename_parser.add_argument("name")
    rename_parser.set_defaults(func=cmd_rename)

    delete_parser = subparsers.add_parser("delete", help="Delete an activity and its history")
    delete_parser.add_argument("activity_id")
    delete_parser.set_defaults(func=cmd_delete)

    subparsers.add_parser("reconcile", help="Rebuild all reminders from history").set_defaults(func=cmd_reconcile)

    reminders_parser = subparsers.add_parser("reminders", help="List scheduled reminders")
    reminders_parser.add_argument("--due", action="store_true", help="Only reminders whose time has come")
    reminders_parser.set_defaults(func=cmd_reminders)

    say_parser = subparsers.add_parser("say", help="Run a voice-style command")
    say_parser.add_argument("transcript")
    say_parser.set_defaults(func=cmd_say)

    args = parser.parse_args()

    setup_logging_from_config(level=args.log_level)

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())
