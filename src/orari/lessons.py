"""Weekly lesson normalization for grid_call.php responses.

The grid endpoint returns a JSON object whose lessons live under "celle"
(current portal), "events" or "lessons" (older shapes). Each record is a
loose map; field names vary between shapes, so every attribute is resolved
through an alias chain. Records missing a title, a date or a time range
are dropped silently: the portal routinely mixes holidays and blank cells
into the list.
"""

import uuid
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from typing import Any
from zoneinfo import ZoneInfo

from src.orari.dates import format_api_date, parse_lesson_date
from src.orari.fields import extract_objects, pick, resolve_professor, resolve_time_range
from src.orari.logging import get_logger
from src.orari.models import Lesson
from src.orari.text import first_non_empty, normalize_time

log = get_logger(__name__)

LESSON_CONTAINER_KEYS = ("celle", "events", "lessons")

TITLE_KEYS = ("nome_insegnamento", "name", "nome", "subject", "insegnamento")
DATE_KEYS = ("data", "date", "giorno")
ROOM_KEYS = ("aula", "room", "NomeAula")
RAW_ID_KEYS = ("id", "identifier_cell")
COMBINED_TIME_KEYS = ("orario", "time")

UNKNOWN_ROOM = "Aula non disponibile"
UNKNOWN_BUILDING = "Edificio non specificato"
UNKNOWN_PROFESSOR = "Docente non disponibile"

_BUILDING_SEPARATORS = (" - ", " – ", ", ")


def extract_building(room: str) -> str | None:
    """Guess the building from a room label.

    "Aula 1.1 [Ca' Vignal 2]" -> "Ca' Vignal 2"; "Aula B - Polo Zanotto"
    -> "Polo Zanotto".
    """
    opening = room.rfind("[")
    if opening != -1:
        closing = room.find("]", opening)
        if closing != -1:
            building = room[opening + 1 : closing].strip()
            if building:
                return building

    normalized = room.replace("  ", " ")
    for separator in _BUILDING_SEPARATORS:
        position = normalized.rfind(separator)
        if position != -1:
            building = normalized[position + len(separator) :].strip()
            if building:
                return building

    return None


def collect_lesson_records(root: dict[str, Any]) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    for key in LESSON_CONTAINER_KEYS:
        records.extend(extract_objects(root.get(key)))
    return records


def parse_lesson(record: dict[str, Any], tz: ZoneInfo | None = None) -> Lesson | None:
    """Build a Lesson from one grid record, or None if it is unusable."""
    title = pick(record, *TITLE_KEYS)
    if title is None:
        return None

    day = parse_lesson_date(pick(record, *DATE_KEYS), tz)
    if day is None:
        return None

    time_range = resolve_time_range(record, *COMBINED_TIME_KEYS)
    if time_range is None:
        return None

    start_time = normalize_time(time_range[0])
    end_time = normalize_time(time_range[1])
    room = pick(record, *ROOM_KEYS) or UNKNOWN_ROOM
    building = (
        first_non_empty(pick(record, "NomeSede"), extract_building(room))
        or UNKNOWN_BUILDING
    )
    professor = resolve_professor(record) or UNKNOWN_PROFESSOR

    raw_id = pick(record, *RAW_ID_KEYS) or str(uuid.uuid4())
    lesson_id = f"{raw_id}-{format_api_date(day)}-{start_time}-{end_time}-{room}"

    return Lesson(
        id=lesson_id,
        title=title,
        professor=professor,
        room=room,
        building=building,
        date=day,
        start_time=start_time,
        end_time=end_time,
    )


def normalize_lessons(root: dict[str, Any], tz: ZoneInfo | None = None) -> list[Lesson]:
    """All usable lessons of a grid response, deduplicated and sorted.

    Duplicates share the same id; the first one wins. Ordering is
    (date, start_time).
    """
    records = collect_lesson_records(root)
    lessons: list[Lesson] = []
    seen: set[str] = set()

    for record in records:
        lesson = parse_lesson(record, tz)
        if lesson is None or lesson.id in seen:
            continue
        seen.add(lesson.id)
        lessons.append(lesson)

    lessons.sort(key=lambda lesson: (lesson.date, lesson.start_time))
    log.debug("lessons_normalized", records=len(records), kept=len(lessons))
    return lessons


def group_lessons_by_day(lessons: Iterable[Lesson]) -> list[tuple[date, list[Lesson]]]:
    """Lessons bucketed per day, days ascending, each day by start time."""
    by_day: dict[date, list[Lesson]] = defaultdict(list)
    for lesson in lessons:
        by_day[lesson.date].append(lesson)
    return [
        (day, sorted(by_day[day], key=lambda lesson: lesson.start_time))
        for day in sorted(by_day)
    ]
