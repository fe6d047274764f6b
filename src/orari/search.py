"""Accent- and case-insensitive filtering of fetched catalogs."""

from collections.abc import Iterable

from src.orari.models import Building, StudyCourse
from src.orari.text import normalize_search_key


def matches(query: str, *candidates: str) -> bool:
    """True when the folded query is contained in any folded candidate.

    A blank query matches everything.
    """
    key = normalize_search_key(query)
    if not key:
        return True
    return any(key in normalize_search_key(candidate) for candidate in candidates)


def filter_courses(
    courses: Iterable[StudyCourse], query: str, limit: int | None = None
) -> list[StudyCourse]:
    """Courses whose name or faculty contains query.

    limit only applies to a blank query, where it caps the unfiltered list.
    """
    courses = list(courses)
    if not query.strip():
        return courses[:limit] if limit is not None else courses
    return [
        course for course in courses if matches(query, course.name, course.faculty_name)
    ]


def filter_buildings(buildings: Iterable[Building], query: str) -> list[Building]:
    return [building for building in buildings if matches(query, building.name)]


def filter_room_names(room_names: Iterable[str], query: str) -> list[str]:
    return [name for name in room_names if matches(query, name)]
