"""Course and building catalogs from combo.php.

combo.php?sw=ec_ embeds `var elenco_corsi = [...]`, one object per course:

    {"label": "Informatica", "valore": "0100L",
     "elenco_anni": [{"label": "1° anno", "valore": "GEN|1"}, ...]}

combo.php?sw=rooms_ embeds `var elenco_sedi = [...]` with the same
label/valore shape. Both lists open with placeholder rows ("Seleziona ...",
"-") that are dropped here.
"""

from dataclasses import dataclass, field
from typing import Any

from src.orari.cache import merge_course_year_options
from src.orari.config import get_config
from src.orari.embedded import parse_javascript_variable
from src.orari.fields import pick
from src.orari.logging import get_logger
from src.orari.models import Building, CourseYearOption, StudyCourse
from src.orari.text import first_integer

log = get_logger(__name__)

COURSES_VARIABLE = "elenco_corsi"
BUILDINGS_VARIABLE = "elenco_sedi"

ID_KEYS = ("valore", "value", "id")
LABEL_KEYS = ("label", "name")

_PLACEHOLDER_MARKERS = ("seleziona", "select")


@dataclass
class CourseCatalog:
    """Result of parsing one course list.

    year_options and academic_years are keyed by course id and feed the
    client's CourseOptionCache.
    """

    courses: list[StudyCourse] = field(default_factory=list)
    year_options: dict[str, list[CourseYearOption]] = field(default_factory=dict)
    academic_years: dict[str, int] = field(default_factory=dict)


def is_useful_option(value: str, label: str) -> bool:
    """False for blank entries and for dropdown placeholders."""
    label = label.strip()
    value = value.strip()
    if not label or not value:
        return False

    lower = label.lower()
    if lower == "-" or any(marker in lower for marker in _PLACEHOLDER_MARKERS):
        return False
    return True


def _id_and_label(raw: dict[str, Any]) -> tuple[str, str] | None:
    option_id = pick(raw, *ID_KEYS)
    label = pick(raw, *LABEL_KEYS)
    if option_id is None or label is None or not is_useful_option(option_id, label):
        return None
    return option_id, label


def parse_course_year(label: str, parameter_value: str) -> int:
    """Year number of an option: the integer after the last "|" of the token,
    else the first integer in the label, else 1.
    """
    if "|" in parameter_value:
        tail = parameter_value.rsplit("|", 1)[1]
        try:
            return max(int(tail), 1)
        except ValueError:
            pass

    from_label = first_integer(label)
    if from_label is not None:
        return max(from_label, 1)
    return 1


def parse_course_year_options(raw: Any) -> list[CourseYearOption]:
    if not isinstance(raw, list):
        return []

    options: list[CourseYearOption] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        resolved = _id_and_label(item)
        if resolved is None or resolved[0] in seen:
            continue
        parameter_value, label = resolved
        seen.add(parameter_value)
        options.append(
            CourseYearOption(
                year=parse_course_year(label, parameter_value),
                parameter_value=parameter_value,
                label=label,
            )
        )

    return sorted(options, key=lambda option: option.year)


def parse_courses(text: str, academic_year: int) -> CourseCatalog:
    """Parse `elenco_corsi` into courses sorted case-insensitively by name.

    A course listed twice keeps its last entry; the year options of both
    entries are merged.
    """
    raw_courses = parse_javascript_variable(text, COURSES_VARIABLE)
    catalog = CourseCatalog()
    if not isinstance(raw_courses, list):
        return catalog

    faculty_name = get_config().faculty_name
    unique: dict[str, StudyCourse] = {}

    for item in raw_courses:
        if not isinstance(item, dict):
            continue
        resolved = _id_and_label(item)
        if resolved is None:
            continue
        course_id, name = resolved

        options = parse_course_year_options(item.get("elenco_anni"))
        catalog.year_options[course_id] = merge_course_year_options(
            catalog.year_options.get(course_id, []), options
        )
        catalog.academic_years[course_id] = academic_year

        max_year = max((option.year for option in options), default=0)
        unique[course_id] = StudyCourse(
            id=course_id,
            name=name,
            faculty_name=faculty_name,
            max_year=max_year or StudyCourse.detect_max_year(name),
        )

    catalog.courses = sorted(unique.values(), key=lambda course: course.name.casefold())
    log.debug(
        "courses_parsed",
        academic_year=academic_year,
        raw=len(raw_courses),
        kept=len(catalog.courses),
    )
    return catalog


def parse_buildings(text: str) -> list[Building]:
    """Parse `elenco_sedi`, first occurrence of each id kept, source order."""
    raw_buildings = parse_javascript_variable(text, BUILDINGS_VARIABLE)
    if not isinstance(raw_buildings, list):
        return []

    buildings: list[Building] = []
    seen: set[str] = set()
    for item in raw_buildings:
        if not isinstance(item, dict):
            continue
        resolved = _id_and_label(item)
        if resolved is None or resolved[0] in seen:
            continue
        seen.add(resolved[0])
        buildings.append(Building(id=resolved[0], name=resolved[1]))

    return buildings
