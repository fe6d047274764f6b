"""Alias-chain lookups over loosely-typed JSON payloads.

The portal names the same field differently depending on the endpoint
("aula", "room", "NomeAula", ...). Payloads are kept as plain decoded JSON
(dict/list/str/int/float/bool/None) and read through these helpers, which
never raise: a missing or oddly-typed value is simply None.
"""

from typing import Any

from src.orari.text import first_non_empty

JSONValue = Any
Payload = dict[str, Any]

TIME_RANGE_SEPARATORS = ("-", "–", "—")

START_TIME_KEYS = ("ora_inizio", "from_time", "from", "inizio")
END_TIME_KEYS = ("ora_fine", "to_time", "to", "fine")
PROFESSOR_KEYS = ("docente", "prof", "nome_docente")


def string_value(raw: JSONValue) -> str | None:
    """Stringify JSON scalars the way the portal means them.

    Booleans are not treated as text; integral floats lose the ".0".
    """
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, float):
        return str(int(raw)) if raw.is_integer() else str(raw)
    return None


def pick(payload: Payload, *keys: str) -> str | None:
    """Resolve the first non-empty value among keys, in order."""
    return first_non_empty(*(string_value(payload.get(key)) for key in keys))


def joined_string(raw: JSONValue) -> str | None:
    """Flatten a scalar or a list of names/objects into "A, B".

    Duplicates are dropped, keeping first-seen order.
    """
    single = first_non_empty(string_value(raw))
    if single is not None:
        return single

    if not isinstance(raw, list) or not raw:
        return None

    pieces: list[str] = []
    for item in raw:
        label = first_non_empty(string_value(item))
        if label is None and isinstance(item, dict):
            label = pick(item, "label", "nome", "name", "value")
        if label is not None and label not in pieces:
            pieces.append(label)

    return ", ".join(pieces) if pieces else None


def extract_objects(raw: JSONValue) -> list[Payload]:
    """Collect the JSON objects held by a list, or by the values of a map."""
    if isinstance(raw, list):
        return [item for item in raw if isinstance(item, dict)]
    if isinstance(raw, dict):
        return [item for item in raw.values() if isinstance(item, dict)]
    return []


def time_range_from_payload(payload: Payload) -> tuple[str, str] | None:
    start = pick(payload, *START_TIME_KEYS)
    end = pick(payload, *END_TIME_KEYS)
    if start is not None and end is not None:
        return start, end
    return None


def parse_time_range(raw: JSONValue) -> tuple[str, str] | None:
    """Read a time range from "08:30-10:30", ["08:30", "10:30"] or a map.

    Strings are split once on "-", en-dash or em-dash, tried in that order.
    """
    if isinstance(raw, str):
        sanitized = raw.replace(" - ", "-")
        for separator in TIME_RANGE_SEPARATORS:
            parts = [part.strip() for part in sanitized.split(separator, 1)]
            if len(parts) == 2 and parts[0] and parts[1]:
                return parts[0], parts[1]

    if isinstance(raw, list) and len(raw) >= 2:
        start = string_value(raw[0]) or ""
        end = string_value(raw[1]) or ""
        if start and end:
            return start, end

    if isinstance(raw, dict):
        return time_range_from_payload(raw)

    return None


def resolve_time_range(payload: Payload, *combined_keys: str) -> tuple[str, str] | None:
    """Explicit start/end fields first, then each combined field in order."""
    found = time_range_from_payload(payload)
    for key in combined_keys:
        if found is not None:
            break
        found = parse_time_range(payload.get(key))
    return found


def resolve_professor(payload: Payload) -> str | None:
    return first_non_empty(
        joined_string(payload.get("docenti")),
        pick(payload, *PROFESSOR_KEYS),
    )
