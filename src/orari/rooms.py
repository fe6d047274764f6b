"""Room occupancy and free-slot derivation for rooms_call.php responses.

The response describes one day of one building (or of all buildings):

    all_rooms   {code: {"room_name": ..., "room_code": ..., "id": ...}}
    fasce       [{"label": "08:00"}, {"label": "08:30"}, ...]   slot starts
    table       {code: [cell, cell, ...]}                         one cell per slot
    events      [{...}]                                           bookings (optional)
    aule_libere [{"aula": ..., "from": ..., "to": ...}]           legacy free list

A table cell is empty (null, [], {}, "") when the room is free in that slot
and a booking object otherwise. Free intervals are not sent by the current
portal: they are derived here by run-length encoding each room's cells.
"""

import uuid
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from src.orari.config import get_config
from src.orari.fields import (
    extract_objects,
    joined_string,
    pick,
    resolve_professor,
    resolve_time_range,
)
from src.orari.logging import get_logger
from src.orari.models import FreeRoomSlot, RoomAgenda, RoomAvailability, RoomLesson
from src.orari.text import add_minutes, first_non_empty, normalize_time

log = get_logger(__name__)

UNKNOWN_ROOM = "Aula sconosciuta"
DEFAULT_SUBJECT = "Lezione"
UNKNOWN_PROFESSOR = "Docente non disponibile"
UNKNOWN_COURSE = "Corso non specificato"

SUBJECT_KEYS = ("name", "nome", "nome_insegnamento", "subject", "insegnamento")
COURSE_KEYS = ("nome_corso", "corso", "faculty")
ROOM_CODE_KEYS = ("CodiceAula", "codice_aula", "room_code")
ROOM_NAME_KEYS = ("NomeAula", "aula", "room_name")
CELL_ID_KEYS = ("id", "identifier_cell", "name", "nome")


def is_free_slot(cell: Any) -> bool:
    """True for an empty table cell; numbers and booleans count as occupied."""
    if cell is None:
        return True
    if isinstance(cell, (list, dict)):
        return not cell
    if isinstance(cell, str):
        return not cell.strip()
    return False


def parse_room_names_by_code(raw: Any) -> dict[str, str]:
    """Map every known identifier of a room (key, code, id) to its name."""
    if not isinstance(raw, dict):
        return {}

    names: dict[str, str] = {}
    for key, room in raw.items():
        if not isinstance(room, dict):
            continue
        name = pick(room, "room_name", "nome", "name") or key
        names[key] = name

        code = pick(room, "room_code", "CodiceAula")
        if code is not None:
            names[code] = name

        room_id = pick(room, "id")
        if room_id is not None:
            names[room_id] = name

    return names


def parse_fasce_labels(raw: Any) -> list[str]:
    labels = []
    for slot in extract_objects(raw):
        label = pick(slot, "label", "nome", "value")
        if label is not None:
            labels.append(label)
    return labels


def extract_table_rows(raw: Any) -> dict[str, list[Any]]:
    if not isinstance(raw, dict):
        return {}
    return {code: cells for code, cells in raw.items() if isinstance(cells, list)}


def extract_events_from_table(
    table_rows: dict[str, list[Any]],
) -> list[tuple[str | None, dict[str, Any]]]:
    """Occupied cells as (room_code, payload) pairs.

    A booking spanning several slots is repeated in each of them; copies
    are collapsed on room code, identifier and time range.
    """
    collected: list[tuple[str | None, dict[str, Any]]] = []
    seen: set[str] = set()

    for room_code, cells in table_rows.items():
        for cell in cells:
            if not isinstance(cell, dict) or not cell:
                continue
            from_time = normalize_time(pick(cell, "from", "from_time", "ora_inizio") or "")
            to_time = normalize_time(pick(cell, "to", "to_time", "ora_fine") or "")
            identifier = pick(cell, *CELL_ID_KEYS) or str(uuid.uuid4())

            key = f"{room_code}-{identifier}-{from_time}-{to_time}"
            if key in seen:
                continue
            seen.add(key)
            collected.append((room_code, cell))

    return collected


def parse_room_lesson(
    payload: dict[str, Any],
    fallback_room_code: str | None,
    room_names_by_code: dict[str, str],
) -> tuple[str, RoomLesson] | None:
    """Resolve one booking to (room_name, RoomLesson); None without a time range."""
    time_range = resolve_time_range(payload, "orario")
    if time_range is None:
        return None

    room_code = first_non_empty(pick(payload, *ROOM_CODE_KEYS), fallback_room_code)
    room_ref = pick(payload, "room")
    room_name = (
        first_non_empty(
            pick(payload, *ROOM_NAME_KEYS),
            room_names_by_code.get(room_code) if room_code else None,
            room_names_by_code.get(room_ref) if room_ref else None,
        )
        or UNKNOWN_ROOM
    )

    subject = pick(payload, *SUBJECT_KEYS) or DEFAULT_SUBJECT
    professor = resolve_professor(payload) or UNKNOWN_PROFESSOR
    course_name = (
        first_non_empty(joined_string(payload.get("insegnamenti")), pick(payload, *COURSE_KEYS))
        or UNKNOWN_COURSE
    )

    from_time = normalize_time(time_range[0])
    to_time = normalize_time(time_range[1])
    raw_id = pick(payload, "id", "identifier_cell") or str(uuid.uuid4())

    return room_name, RoomLesson(
        id=f"{raw_id}-{room_name}-{from_time}-{to_time}-{subject}",
        subject=subject,
        professor=professor,
        course_name=course_name,
        from_time=from_time,
        to_time=to_time,
    )


def build_room_agendas(
    raw_events: Iterable[tuple[str | None, dict[str, Any]]],
    room_names_by_code: dict[str, str],
) -> list[RoomAgenda]:
    """Group bookings per room; rooms by name, lessons by start time."""
    by_room: dict[str, list[RoomLesson]] = {}
    seen: set[str] = set()

    for room_code, payload in raw_events:
        parsed = parse_room_lesson(payload, room_code, room_names_by_code)
        if parsed is None:
            continue
        room_name, lesson = parsed
        if lesson.id in seen:
            continue
        seen.add(lesson.id)
        by_room.setdefault(room_name, []).append(lesson)

    agendas = [
        RoomAgenda(
            id=room_name,
            room_name=room_name,
            lessons=tuple(sorted(lessons, key=lambda lesson: lesson.from_time)),
        )
        for room_name, lessons in by_room.items()
    ]
    return sorted(agendas, key=lambda agenda: agenda.room_name.casefold())


def free_runs(cells: Sequence[Any]) -> Iterator[tuple[int, int]]:
    """Maximal runs of free cells as half-open (start, end) index pairs.

    Two states: outside a run, or inside one that opened at run_start.
    A free cell opens a run, an occupied cell closes it, and the end of
    the sequence closes any run still open with end == len(cells).
    """
    run_start: int | None = None
    for index, cell in enumerate(cells):
        if is_free_slot(cell):
            if run_start is None:
                run_start = index
        elif run_start is not None:
            yield run_start, index
            run_start = None

    if run_start is not None:
        yield run_start, len(cells)


def extract_free_slots(
    table_rows: dict[str, list[Any]],
    fasce_labels: Sequence[str],
    room_names_by_code: dict[str, str],
    tail_minutes: int | None = None,
) -> list[FreeRoomSlot]:
    """Free intervals of every room, bounded by the fasce labels.

    A run that reaches the last scanned slot ends tail_minutes after the
    last label (the nominal length of the final slot).
    """
    if not table_rows or not fasce_labels:
        return []
    if tail_minutes is None:
        tail_minutes = get_config().free_slot_tail_minutes

    last_label = normalize_time(fasce_labels[-1])
    closing_time = add_minutes(tail_minutes, last_label) or last_label

    slots: list[FreeRoomSlot] = []
    for room_code, cells in table_rows.items():
        bound = min(len(cells), len(fasce_labels))
        if bound == 0:
            continue
        room_name = room_names_by_code.get(room_code, f"Aula {room_code}")

        for start, end in free_runs(cells[:bound]):
            from_time = normalize_time(fasce_labels[start])
            if end < len(fasce_labels):
                to_time = normalize_time(fasce_labels[end])
            else:
                to_time = closing_time
            if from_time == to_time:
                continue
            slots.append(
                FreeRoomSlot(
                    id=f"{room_name}-{from_time}-{to_time}",
                    room_name=room_name,
                    from_time=from_time,
                    to_time=to_time,
                )
            )

    return slots


def parse_legacy_free_slots(raw: Any) -> list[FreeRoomSlot]:
    """Explicit free intervals from the older "aule_libere" list."""
    slots = []
    for record in extract_objects(raw):
        room_name = pick(record, "room_name", "aula", "room")
        from_time = pick(record, "from_time", "from", "inizio")
        to_time = pick(record, "to_time", "to", "fine")
        if room_name is None or from_time is None or to_time is None:
            continue
        slots.append(
            FreeRoomSlot(
                id=f"{room_name}-{from_time}-{to_time}",
                room_name=room_name,
                from_time=normalize_time(from_time),
                to_time=normalize_time(to_time),
            )
        )
    return slots


def build_room_availability(root: dict[str, Any]) -> RoomAvailability:
    """Agendas and free slots for one rooms_call.php response."""
    room_names_by_code = parse_room_names_by_code(root.get("all_rooms"))
    table_rows = extract_table_rows(root.get("table"))
    fasce_labels = parse_fasce_labels(root.get("fasce"))

    raw_events: list[tuple[str | None, dict[str, Any]]] = [
        (None, payload) for payload in extract_objects(root.get("events"))
    ]
    if not raw_events:
        raw_events = extract_events_from_table(table_rows)

    agendas = build_room_agendas(raw_events, room_names_by_code)

    free_slots = extract_free_slots(table_rows, fasce_labels, room_names_by_code)
    if not free_slots:
        free_slots = parse_legacy_free_slots(root.get("aule_libere"))
    free_slots.sort(key=lambda slot: (slot.room_name.casefold(), slot.from_time))

    log.debug(
        "room_availability_built",
        rooms=len(table_rows),
        slots=len(fasce_labels),
        agendas=len(agendas),
        free_slots=len(free_slots),
    )
    return RoomAvailability(agendas=agendas, free_slots=free_slots)


def all_room_names(
    agendas: Iterable[RoomAgenda], free_slots: Iterable[FreeRoomSlot]
) -> list[str]:
    """Every room mentioned by either list, sorted case-insensitively."""
    names: dict[str, None] = {}
    for agenda in agendas:
        names.setdefault(agenda.room_name)
    for slot in free_slots:
        names.setdefault(slot.room_name)
    return sorted(names, key=str.casefold)
