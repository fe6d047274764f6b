"""Extraction of JSON literals assigned to `var` statements in portal scripts.

combo.php answers with a JavaScript snippet rather than JSON, e.g.

    var elenco_corsi = [{"label": "Informatica", "valore": "0100L", ...}];
    var elenco_sedi = [...];

The literal is isolated with a small bracket scanner (string-aware, so a
label such as "Lab {A}" does not unbalance it) and handed to json.loads.
"""

import json
import re
from typing import Any

from src.orari.logging import get_logger

log = get_logger(__name__)

_CLOSING = {"[": "]", "{": "}"}


def find_balanced_end(source: str, start: int) -> int | None:
    """Index of the bracket closing the one at source[start], or None.

    Brackets inside double-quoted strings (with backslash escapes) are ignored.
    """
    opening = source[start]
    closing = _CLOSING[opening]
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(source)):
        char = source[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == opening:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return index

    return None


def parse_javascript_variable(source: str, name: str) -> Any | None:
    """Decode the value assigned by the first `var <name> = ...;` in source.

    Returns None when the variable is missing, its brackets never balance,
    or the literal is not valid JSON.
    """
    pattern = re.compile(rf"var\s+{re.escape(name)}\s*=", re.IGNORECASE)
    match = pattern.search(source)
    if match is None:
        log.debug("js_variable_missing", name=name)
        return None

    start = match.end()
    while start < len(source) and source[start].isspace():
        start += 1
    if start >= len(source):
        return None

    if source[start] in _CLOSING:
        end = find_balanced_end(source, start)
        if end is None:
            log.debug("js_variable_unbalanced", name=name)
            return None
        literal = source[start : end + 1]
    else:
        semicolon = source.find(";", start)
        if semicolon == -1:
            return None
        literal = source[start:semicolon].strip()

    try:
        return json.loads(literal)
    except ValueError:
        log.debug("js_variable_invalid_json", name=name, length=len(literal))
        return None
