"""Fetch courses, buildings, weekly lessons or room availability from UniVR.

Standalone CLI script over UniVRClient. Prints JSON (or a table) on stdout;
diagnostics go to stderr.

Run with: python scripts/fetch_timetable.py courses --search informatica
Buildings: python scripts/fetch_timetable.py buildings
Lessons:   python scripts/fetch_timetable.py lessons 0100L --year 2 --week 2026-10-19
Rooms:     python scripts/fetch_timetable.py rooms --date 2026-10-19 --building 12 --free-only
Search:    python scripts/fetch_timetable.py rooms --search "aula t"
Table:     python scripts/fetch_timetable.py --table lessons 0100L  (or: lessons 0100L --table)

Exit codes:
  0 = success (JSON or table on stdout)
  1 = error (message on stderr)
"""

import argparse
import asyncio
import json
import os
import sys
from datetime import date

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.orari.client import UniVRClient  # noqa: E402
from src.orari.config import get_config  # noqa: E402
from src.orari.dates import (  # noqa: E402
    academic_year_label,
    current_academic_year,
    default_week_start,
    monday,
    today,
)
from src.orari.lessons import group_lessons_by_day  # noqa: E402
from src.orari.logging import setup_logging  # noqa: E402
from src.orari.rooms import all_room_names  # noqa: E402
from src.orari.search import filter_buildings, filter_courses, filter_room_names  # noqa: E402


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Fetch timetable data from the UniVR student portal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--table",
        action="store_true",
        help="Output a human-readable table instead of JSON.",
    )
    # --table also after the sub-command; SUPPRESS keeps a leading --table intact
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--table",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Output a human-readable table instead of JSON.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    courses = subparsers.add_parser("courses", parents=[common], help="List study courses.")
    courses.add_argument(
        "--search",
        type=str,
        default="",
        help="Accent-insensitive filter on course name.",
    )

    buildings = subparsers.add_parser("buildings", parents=[common], help="List buildings.")
    buildings.add_argument(
        "--search",
        type=str,
        default="",
        help="Accent-insensitive filter on building name.",
    )

    lessons = subparsers.add_parser(
        "lessons", parents=[common], help="Weekly lessons of a course."
    )
    lessons.add_argument("course_id", help="Course id as listed by 'courses'.")
    lessons.add_argument("--year", type=int, default=1, help="Course year (default: 1).")
    lessons.add_argument(
        "--academic-year",
        type=int,
        default=0,
        help="Academic year start, e.g. 2026 (default: year the course is listed in).",
    )
    lessons.add_argument(
        "--week",
        type=_parse_date,
        default=None,
        help="Any day of the target week (default: this week).",
    )

    rooms = subparsers.add_parser(
        "rooms", parents=[common], help="Room occupancy and free slots."
    )
    rooms.add_argument(
        "--date",
        type=_parse_date,
        default=None,
        help="Day to inspect (default: today).",
    )
    rooms.add_argument("--building", type=str, default=None, help="Building id.")
    rooms.add_argument(
        "--search",
        type=str,
        default="",
        help="Accent-insensitive filter on room name.",
    )
    rooms.add_argument(
        "--free-only",
        action="store_true",
        help="Only output free slots.",
    )

    return parser.parse_args(argv)


def _format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format rows as a column-aligned text table."""
    if not rows:
        return "(no results)"

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    header_line = " | ".join(h.ljust(widths[i]) for i, h in enumerate(headers))
    separator = "-+-".join("-" * w for w in widths)
    row_lines = [
        " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)) for row in rows
    ]
    return "\n".join([header_line, separator, *row_lines])


async def main(args: argparse.Namespace) -> None:
    config = get_config()
    setup_logging(config)

    async with UniVRClient(config) as client:
        if args.command == "courses":
            courses = filter_courses(await client.fetch_courses(), args.search)
            _log(f"  {len(courses)} courses")
            headers = ["Id", "Name", "Years"]
            rows = [[c.id, c.name, str(c.max_year)] for c in courses]
            output = [c.model_dump(mode="json") for c in courses]

        elif args.command == "buildings":
            buildings = filter_buildings(await client.fetch_buildings(), args.search)
            _log(f"  {len(buildings)} buildings")
            headers = ["Id", "Name"]
            rows = [[b.id, b.name] for b in buildings]
            output = [b.model_dump(mode="json") for b in buildings]

        elif args.command == "lessons":
            if args.week:
                week_start = monday(args.week)
            elif args.academic_year > 0:
                week_start = default_week_start(args.academic_year)
            else:
                week_start = monday(today())
            label = academic_year_label(
                args.academic_year if args.academic_year > 0 else current_academic_year()
            )
            _log(
                f"  Fetching {args.course_id} year {args.year}, week of {week_start} "
                f"(academic year {label})"
            )
            lessons = await client.fetch_weekly_lessons(
                args.course_id, args.year, args.academic_year, week_start
            )
            headers = ["Date", "Time", "Title", "Room", "Professor"]
            rows = []
            output = []
            for day, day_lessons in group_lessons_by_day(lessons):
                output.append(
                    {
                        "date": day.isoformat(),
                        "lessons": [lesson.model_dump(mode="json") for lesson in day_lessons],
                    }
                )
                rows.extend(
                    [
                        day.isoformat(),
                        f"{lesson.start_time}-{lesson.end_time}",
                        lesson.title,
                        lesson.room,
                        lesson.professor,
                    ]
                    for lesson in day_lessons
                )

        else:
            day = args.date or today()
            agendas, free_slots = await client.fetch_room_agenda(day, args.building)
            if args.search:
                wanted = set(filter_room_names(all_room_names(agendas, free_slots), args.search))
                agendas = [a for a in agendas if a.room_name in wanted]
                free_slots = [s for s in free_slots if s.room_name in wanted]
            _log(f"  {len(agendas)} occupied rooms, {len(free_slots)} free slots on {day}")
            headers = ["Room", "From", "To", "Status"]
            rows = [[s.room_name, s.from_time, s.to_time, "free"] for s in free_slots]
            output = {"free_slots": [s.model_dump(mode="json") for s in free_slots]}
            if not args.free_only:
                for agenda in agendas:
                    rows.extend(
                        [agenda.room_name, lesson.from_time, lesson.to_time, lesson.subject]
                        for lesson in agenda.lessons
                    )
                output["agendas"] = [a.model_dump(mode="json") for a in agendas]
            rows.sort(key=lambda row: (row[0].casefold(), row[1]))

    if args.table:
        print(_format_table(headers, rows))
    else:
        print(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    args = _parse_args()
    try:
        asyncio.run(main(args))
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
