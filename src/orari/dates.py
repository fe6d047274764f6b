"""Calendar helpers for the portal's Italian academic calendar."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from src.orari.config import get_config

API_DATE_FORMAT = "%Y-%m-%d"

# Tried in order; "dd-MM-yyyy" wins over "yyyy-MM-dd" for ambiguous input.
LESSON_DATE_FORMATS = ("%d-%m-%Y", "%Y-%m-%d", "%d/%m/%Y", "%Y/%m/%d", "%d.%m.%Y")

# The academic year N runs from August N to July N+1.
ACADEMIC_YEAR_START_MONTH = 8


def portal_timezone() -> ZoneInfo:
    return ZoneInfo(get_config().timezone)


def today(tz: ZoneInfo | None = None) -> date:
    return datetime.now(tz or portal_timezone()).date()


def to_day(value: date | datetime, tz: ZoneInfo | None = None) -> date:
    """Reduce a date or datetime to its calendar day in the portal time zone.

    Naive datetimes are taken to be already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz or portal_timezone())
        return value.date()
    return value


def format_api_date(value: date | datetime) -> str:
    return to_day(value).strftime(API_DATE_FORMAT)


def parse_lesson_date(raw: str | None, tz: ZoneInfo | None = None) -> date | None:
    """Parse a lesson date in any of the portal's formats.

    Falls back to reading a numeric string as a Unix timestamp in seconds.
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None

    for fmt in LESSON_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).date()
        except ValueError:
            continue

    try:
        timestamp = float(raw)
    except ValueError:
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz or portal_timezone()).date()
    except (OverflowError, OSError, ValueError):
        return None


def monday(value: date) -> date:
    """Monday of the week containing value."""
    return value - timedelta(days=value.weekday())


def current_academic_year(reference: date | None = None) -> int:
    reference = reference or today()
    if reference.month >= ACADEMIC_YEAR_START_MONTH:
        return reference.year
    return reference.year - 1


def academic_year_label(academic_year: int) -> str:
    """2025 -> "2025/26"."""
    return f"{academic_year}/{(academic_year + 1) % 100:02d}"


def academic_year_week_bounds(academic_year: int) -> tuple[date, date]:
    """Mondays of the first and last weeks of an academic year."""
    start = date(academic_year, ACADEMIC_YEAR_START_MONTH, 1)
    end = date(academic_year + 1, ACADEMIC_YEAR_START_MONTH - 1, 31)
    return monday(start), monday(end)


def default_week_start(academic_year: int, reference: date | None = None) -> date:
    """This week's Monday inside the academic year, else its first Monday."""
    reference = reference or today()
    start = date(academic_year, ACADEMIC_YEAR_START_MONTH, 1)
    end = date(academic_year + 1, ACADEMIC_YEAR_START_MONTH - 1, 31)
    if start <= reference <= end:
        return monday(reference)
    return monday(start)
