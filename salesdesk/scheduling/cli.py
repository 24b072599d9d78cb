"""
Tool: Scheduling CLI
Purpose: Run scheduler operations by hand against the configured organizer

Usage:
    salesdesk-schedule --parse "next Tuesday at 2pm"
    salesdesk-schedule --check "2026-10-20T14:00" --duration 30
    salesdesk-schedule --slots 2026-10-20
    salesdesk-schedule --alternatives "2026-10-20T14:00"
    salesdesk-schedule --book "2026-10-20T14:00" --name "Jane Smith" --email jane@school.org
    salesdesk-schedule --resolve "tomorrow at 3pm" --name "Jane Smith" --email jane@school.org
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date, datetime

from salesdesk.logging_config import setup_logging
from salesdesk.scheduling.errors import ConfigurationError
from salesdesk.scheduling.models import MeetingKind
from salesdesk.scheduling.service import SchedulingService


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Natural-language meeting scheduler (Microsoft Graph)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resolve a phrase without touching the calendar
  salesdesk-schedule --parse "9th February at 2pm"

  # Free slots on a day
  salesdesk-schedule --slots 2026-10-20 --duration 60

  # Book an in-person meeting
  salesdesk-schedule --book "2026-10-20T14:00" --in-person --location "Head office" \\
      --name "Jane Smith" --email jane@school.org
        """,
    )

    actions = parser.add_mutually_exclusive_group(required=True)
    actions.add_argument("--parse", metavar="TEXT", help="Resolve a time phrase")
    actions.add_argument("--check", metavar="START", help="Check availability (ISO start)")
    actions.add_argument("--slots", metavar="DAY", help="List free slots on a day (YYYY-MM-DD)")
    actions.add_argument("--alternatives", metavar="START", help="Suggest alternatives (ISO start)")
    actions.add_argument("--book", metavar="START", help="Book a meeting (ISO start)")
    actions.add_argument("--resolve", metavar="TEXT", help="Parse, check, then book or suggest")
    actions.add_argument("--phrase", metavar="CATEGORY", help="Random status phrase")

    parser.add_argument("--duration", type=int, help="Duration in minutes")
    parser.add_argument("--name", help="Attendee name")
    parser.add_argument("--email", help="Attendee email")
    parser.add_argument("--in-person", action="store_true", help="In-person instead of video")
    parser.add_argument("--location", help="Location for in-person meetings")
    parser.add_argument("--subject", help="Subject override")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    return parser


async def _run(args: argparse.Namespace, service: SchedulingService) -> dict:
    duration = args.duration or service.config.default_duration_minutes

    if args.parse:
        resolved = service.parse_time_request(args.parse)
        return {"resolved": resolved.isoformat() if resolved else None}

    if args.check:
        result = await service.check_availability(datetime.fromisoformat(args.check), duration)
        return result.to_dict()

    if args.slots:
        slots = await service.find_available_slots(date.fromisoformat(args.slots), duration)
        return {"slots": [s.to_dict() for s in slots]}

    if args.alternatives:
        alternatives = await service.suggest_alternatives(
            datetime.fromisoformat(args.alternatives), duration
        )
        return {"alternatives": [a.to_dict() for a in alternatives]}

    if args.phrase:
        return {"phrase": service.random_phrase(args.phrase)}

    kind = MeetingKind.IN_PERSON if args.in_person else MeetingKind.VIDEO

    if args.book:
        common = {
            "start_time": datetime.fromisoformat(args.book),
            "attendee_name": args.name,
            "attendee_email": args.email,
            "duration_minutes": args.duration,
            "subject": args.subject,
        }
        if kind == MeetingKind.IN_PERSON:
            result = await service.create_in_person_meeting(location=args.location or "", **common)
        else:
            result = await service.create_video_meeting(**common)
        return result.to_dict()

    outcome = await service.resolve(
        args.resolve,
        args.name,
        args.email,
        kind=kind,
        location=args.location,
        subject=args.subject,
        duration_minutes=args.duration,
    )
    return outcome.to_dict()


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    setup_logging(level="DEBUG" if args.verbose else None)

    if (args.book or args.resolve) and not all([args.name, args.email]):
        print("Error: --name and --email are required for --book and --resolve")
        sys.exit(1)

    try:
        result = asyncio.run(_run(args, SchedulingService()))
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(2)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(json.dumps(result, indent=2, default=str))
    if result.get("success") is False or result.get("state") == "rejected":
        sys.exit(1)


if __name__ == "__main__":
    main()
