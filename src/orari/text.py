"""String helpers shared by the portal parsers."""

import re
import unicodedata

MISSING_TIME = "--:--"

_HTML_ENTITIES: dict[str, str] = {
    "&amp;": "&",
    "&quot;": '"',
    "&#39;": "'",
    "&apos;": "'",
    "&lt;": "<",
    "&gt;": ">",
    "&nbsp;": " ",
}


def strip_accents(text: str) -> str:
    """Remove diacritics (e.g. 'Università' -> 'Universita')."""
    nfkd = unicodedata.normalize("NFKD", text)
    return "".join(c for c in nfkd if not unicodedata.combining(c))


def normalize_search_key(text: str) -> str:
    """Fold accents and case and drop everything that is not alphanumeric.

    >>> normalize_search_key("Informàtica - L.M.")
    'informaticalm'
    """
    folded = strip_accents(text).casefold()
    return "".join(c for c in folded if c.isalnum())


def decode_html_entities(text: str) -> str:
    for entity, replacement in _HTML_ENTITIES.items():
        text = text.replace(entity, replacement)
    return text


def normalize_time(raw: str) -> str:
    """Normalize a portal time to HH:MM.

    "8:30" -> "08:30", "08:30:00" -> "08:30". Anything that does not look
    like hours:minutes is returned trimmed; empty input gives "--:--".
    """
    trimmed = raw.strip()
    if not trimmed:
        return MISSING_TIME

    parts = trimmed[:8].split(":", 1)
    if len(parts) == 2:
        hour = parts[0].strip()
        minute = parts[1][:2].strip()
        if hour and len(minute) == 2 and hour.isdecimal() and minute.isdecimal():
            return f"{int(hour):02d}:{minute}"

    return trimmed


def add_minutes(minutes: int, time_str: str) -> str | None:
    """Shift an HH:MM string, wrapping past midnight.

    Returns None when time_str is not two integer components.
    """
    parts = time_str.split(":")
    if len(parts) != 2:
        return None
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        return None

    total = hour * 60 + minute + minutes
    if total < 0:
        return None
    return f"{(total // 60) % 24:02d}:{total % 60:02d}"


def first_non_empty(*values: str | None) -> str | None:
    """Return the first value with visible content, trimmed and entity-decoded."""
    for value in values:
        if value is None:
            continue
        trimmed = value.strip()
        if trimmed:
            return decode_html_entities(trimmed)
    return None


def first_integer(text: str) -> int | None:
    match = re.search(r"\d+", text)
    return int(match.group(0)) if match else None
