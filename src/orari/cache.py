"""In-memory per-course caches filled as a side effect of catalog fetches.

Only the year options (needed to build grid_call.php queries) and the
academic year a course was last seen in are kept. Entries are never
evicted; a stale entry at worst produces a query the portal answers
with no lessons.
"""

from collections.abc import Iterable

from src.orari.models import CourseYearOption


def merge_course_year_options(
    existing: Iterable[CourseYearOption], incoming: Iterable[CourseYearOption]
) -> list[CourseYearOption]:
    """Union keyed by parameter_value, incoming winning, sorted by year."""
    by_value: dict[str, CourseYearOption] = {}
    for option in existing:
        by_value[option.parameter_value] = option
    for option in incoming:
        by_value[option.parameter_value] = option
    return sorted(by_value.values(), key=lambda option: option.year)


class CourseOptionCache:
    """course_id -> year options and course_id -> academic year."""

    def __init__(self) -> None:
        self._options: dict[str, list[CourseYearOption]] = {}
        self._academic_years: dict[str, int] = {}

    def __contains__(self, course_id: str) -> bool:
        return course_id in self._options

    def get_options(self, course_id: str) -> list[CourseYearOption] | None:
        options = self._options.get(course_id)
        return list(options) if options is not None else None

    def get_academic_year(self, course_id: str) -> int | None:
        return self._academic_years.get(course_id)

    def merge(
        self,
        options_by_course: dict[str, list[CourseYearOption]],
        academic_years: dict[str, int],
    ) -> None:
        for course_id, options in options_by_course.items():
            self._options[course_id] = merge_course_year_options(
                self._options.get(course_id, []), options
            )
        self._academic_years.update(academic_years)

    def clear(self) -> None:
        self._options.clear()
        self._academic_years.clear()
