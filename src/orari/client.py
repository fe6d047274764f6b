"""Async client for the UniVR student timetable portal.

UniVRClient fetches the four portal resources the application needs and
runs them through the parsers:

    fetch_courses()          combo.php?sw=ec_      -> list[StudyCourse]
    fetch_buildings()        combo.php?sw=rooms_   -> list[Building]
    fetch_weekly_lessons()   grid_call.php          -> list[Lesson]
    fetch_room_agenda()      rooms_call.php         -> RoomAvailability

The portal sets its session cookies on index.php, so the first request of a
client is preceded by a best-effort warmup GET. Course catalogs are published
per academic year and a year may be empty before enrolment opens, hence the
candidate-year loop in fetch_courses().
"""

import json
from datetime import date, datetime
from typing import Any
from urllib.parse import urlencode, urljoin
from zoneinfo import ZoneInfo

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.orari.cache import CourseOptionCache
from src.orari.catalog import parse_buildings, parse_courses
from src.orari.config import OrariConfig, get_config
from src.orari.dates import current_academic_year, format_api_date
from src.orari.errors import (
    HTTPStatusError,
    InvalidEncodingError,
    InvalidResponseError,
    InvalidURLError,
    NetworkError,
    NoDataError,
    OrariError,
    TransientError,
)
from src.orari.lessons import normalize_lessons
from src.orari.logging import get_logger
from src.orari.models import Building, CourseYearOption, Lesson, RoomAvailability, StudyCourse
from src.orari.rooms import build_room_availability

logger = get_logger(__name__)

TEXT_ENCODINGS = ("utf-8", "iso-8859-1", "cp1252")

WARMUP_PATH = "index.php"
COMBO_PATH = "combo.php"
GRID_PATH = "grid_call.php"
ROOMS_PATH = "rooms_call.php"


def candidate_academic_years(current: int | None = None) -> list[int]:
    """Academic years to try, in order: current, previous, next, two back."""
    if current is None:
        current = current_academic_year()
    return [current, current - 1, current + 1, current - 2]


def decode_text(data: bytes) -> str:
    """Decode a response body, trying UTF-8 then the Latin-1 family."""
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise InvalidEncodingError()


def decode_root_object(data: bytes) -> dict[str, Any]:
    """Decode a JSON body whose root must be an object."""
    try:
        root = json.loads(decode_text(data))
    except (ValueError, InvalidEncodingError) as e:
        raise InvalidResponseError() from e
    if not isinstance(root, dict):
        raise InvalidResponseError()
    return root


def build_query(query: dict[str, str]) -> str:
    """URL-encode parameters sorted by key so identical requests share a URL."""
    return urlencode(sorted(query.items()))


def select_year_option(
    options: list[CourseYearOption], requested_year: int
) -> CourseYearOption | None:
    """Exact year, else a token ending in "|<year>", else the lowest year."""
    if not options:
        return None
    for option in options:
        if option.year == requested_year:
            return option
    suffix = f"|{requested_year}"
    for option in options:
        if option.parameter_value.endswith(suffix):
            return option
    return min(options, key=lambda option: option.year)


class UniVRClient:
    """Portal client holding the per-course option cache and warmup state.

    Not meant to be shared by overlapping fetches of the same course; the
    parsers themselves are pure and safe to call from anywhere.
    """

    def __init__(
        self,
        config: OrariConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Settings; defaults to the get_config() singleton.
            http_client: Externally-owned httpx client (tests pass one with a
                MockTransport). When omitted the client creates and owns one.
        """
        self.config = config or get_config()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(follow_redirects=True)
        self._did_warmup = False
        self.cache = CourseOptionCache()
        self._tz = ZoneInfo(self.config.timezone)

    async def __aenter__(self) -> "UniVRClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Public fetches
    # ------------------------------------------------------------------

    async def fetch_courses(self) -> list[StudyCourse]:
        """Courses of the first candidate academic year that lists any.

        Raises:
            OrariError: The last per-year error when every year failed.
            NoDataError: When every year answered but none listed courses.
        """
        last_error: OrariError | None = None

        for academic_year in candidate_academic_years():
            try:
                courses = await self._fetch_courses_for_year(academic_year)
            except OrariError as e:
                logger.info(
                    "academic_year_failed",
                    academic_year=academic_year,
                    error=str(e),
                    type=type(e).__name__,
                )
                last_error = e
                continue
            if courses:
                logger.info(
                    "courses_fetched", academic_year=academic_year, count=len(courses)
                )
                return courses

        if last_error is not None:
            raise last_error
        raise NoDataError()

    async def fetch_buildings(self) -> list[Building]:
        data = await self._get(COMBO_PATH, {"sw": "rooms_", "_lang": "it"})
        buildings = parse_buildings(decode_text(data))
        if not buildings:
            raise NoDataError()

        logger.info("buildings_fetched", count=len(buildings))
        return sorted(buildings, key=lambda building: building.name.casefold())

    async def fetch_weekly_lessons(
        self,
        course_id: str,
        course_year: int,
        academic_year: int,
        week_start: date | datetime,
    ) -> list[Lesson]:
        """Lessons of one course year for the week starting at week_start.

        An academic_year <= 0 means "whatever year the course was last listed
        in", falling back to the current academic year.
        """
        effective_course_year = max(course_year, 1)
        option = await self.resolve_course_year_option(course_id, effective_course_year)
        if academic_year <= 0:
            academic_year = (
                self.cache.get_academic_year(course_id) or current_academic_year()
            )

        query = {
            "view": "easycourse",
            "include": "corso",
            "_lang": "it",
            "all_events": "0",
            "anno": str(academic_year),
            "corso": course_id,
            "date": format_api_date(week_start),
            "txtcurr": option.label if option else f"Anno {effective_course_year}",
            "anno2[]": option.parameter_value if option else f"999|{effective_course_year}",
        }

        data = await self._get(GRID_PATH, query)
        lessons = normalize_lessons(decode_root_object(data), self._tz)
        logger.info(
            "lessons_fetched",
            course_id=course_id,
            course_year=effective_course_year,
            academic_year=academic_year,
            week_start=query["date"],
            count=len(lessons),
        )
        return lessons

    async def fetch_room_agenda(
        self, day: date | datetime, building_id: str | None = None
    ) -> RoomAvailability:
        query = {
            "all_events": "true",
            "view": "easyroom",
            "include": "occupazione",
            "_lang": "it",
            "date": format_api_date(day),
        }
        if building_id:
            query["sede"] = building_id

        data = await self._get(ROOMS_PATH, query)
        availability = build_room_availability(decode_root_object(data))
        logger.info(
            "room_agenda_fetched",
            date=query["date"],
            building_id=building_id,
            agendas=len(availability.agendas),
            free_slots=len(availability.free_slots),
        )
        return availability

    async def resolve_course_year_option(
        self, course_id: str, requested_year: int
    ) -> CourseYearOption | None:
        """Year option for a course, loading catalogs until the course appears."""
        if course_id not in self.cache:
            for academic_year in candidate_academic_years():
                try:
                    await self._fetch_courses_for_year(academic_year)
                except OrariError as e:
                    logger.debug(
                        "year_option_bootstrap_failed",
                        academic_year=academic_year,
                        error=str(e),
                    )
                if course_id in self.cache:
                    break

        return select_year_option(self.cache.get_options(course_id) or [], requested_year)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _fetch_courses_for_year(self, academic_year: int) -> list[StudyCourse]:
        data = await self._get(
            COMBO_PATH,
            {"sw": "ec_", "aa": str(academic_year), "page": "corsi", "_lang": "it"},
        )
        catalog = parse_courses(decode_text(data), academic_year)
        self.cache.merge(catalog.year_options, catalog.academic_years)
        if not catalog.courses:
            raise NoDataError()
        return catalog.courses

    def build_url(self, path: str, query: dict[str, str]) -> str:
        base = self.config.base_url
        if not base.endswith("/"):
            base += "/"
        url = urljoin(base, path)
        if not url.startswith(("http://", "https://")):
            raise InvalidURLError(f"Invalid portal URL: {url!r}")
        return f"{url}?{build_query(query)}" if query else url

    async def _get(self, path: str, query: dict[str, str], *, skip_warmup: bool = False) -> bytes:
        """GET a portal path, retrying transient failures per config."""
        if not skip_warmup:
            await self._warmup_if_needed()

        url = self.build_url(path, query)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.request_attempts),
            wait=wait_fixed(self.config.retry_wait_seconds),
            retry=retry_if_exception_type(TransientError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._send(url)
        raise NetworkError()  # unreachable: reraise=True propagates the last error

    async def _send(self, url: str) -> bytes:
        headers = {
            "Accept-Language": self.config.accept_language,
            "User-Agent": self.config.user_agent,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }
        try:
            response = await self._http.get(
                url, headers=headers, timeout=self.config.request_timeout
            )
        except httpx.TimeoutException as e:
            logger.warning("request_timeout", url=url, error=str(e))
            raise NetworkError(f"Timeout contacting UniVR: {e}") from e
        except httpx.InvalidURL as e:
            raise InvalidURLError(str(e)) from e
        except httpx.HTTPError as e:
            logger.warning("request_failed", url=url, error=str(e), type=type(e).__name__)
            raise NetworkError(f"Request to UniVR failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.warning("http_error", url=url, status=response.status_code)
            raise HTTPStatusError(status_code=response.status_code)

        logger.debug("response_received", url=url, bytes=len(response.content))
        return response.content

    async def _warmup_if_needed(self) -> None:
        if self._did_warmup:
            return
        try:
            await self._get(
                WARMUP_PATH,
                {"view": "easycourse", "_lang": "it", "include": "corso"},
                skip_warmup=True,
            )
        except OrariError as e:
            logger.debug("warmup_failed", error=str(e), type=type(e).__name__)
        self._did_warmup = True
