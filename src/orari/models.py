"""Pydantic models for timetable data.

All entities are frozen Pydantic v2 models: they are value snapshots built
fresh on every fetch and never mutated afterwards.
"""

from datetime import date
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True)


class StudyCourse(_Snapshot):
    """A degree course offered on the portal's course dropdown.

    max_year comes from the course's year options when the portal lists any;
    otherwise it is guessed from the course name.
    """

    id: str  # opaque portal value, e.g. "0100L"
    name: str
    faculty_name: str = "UniVR"
    max_year: int = Field(ge=1)

    @model_validator(mode="before")
    @classmethod
    def _infer_max_year(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("max_year"):
            data = {**data, "max_year": cls.detect_max_year(str(data.get("name", "")))}
        return data

    @staticmethod
    def detect_max_year(name: str) -> int:
        lower = name.lower()
        if "magistrale" in lower:
            return 2
        if "ciclo unico" in lower:
            return 5
        return 3


class Building(_Snapshot):
    id: str
    name: str


class CourseYearOption(_Snapshot):
    """One entry of a course's "elenco_anni" list.

    parameter_value is the token the grid endpoint expects in anno2[]
    (e.g. "GEN|2"); label is sent back verbatim as txtcurr.
    """

    year: int = Field(ge=1)
    parameter_value: str
    label: str


class Lesson(_Snapshot):
    id: str  # "<rawID>-<yyyy-mm-dd>-<start>-<end>-<room>"
    title: str
    professor: str
    room: str
    building: str
    date: date
    start_time: str  # "HH:MM", or "--:--" when the portal sent nothing usable
    end_time: str


class RoomLesson(_Snapshot):
    id: str
    subject: str
    professor: str
    course_name: str
    from_time: str
    to_time: str


class RoomAgenda(_Snapshot):
    id: str  # same as room_name
    room_name: str
    lessons: tuple[RoomLesson, ...] = ()


class FreeRoomSlot(_Snapshot):
    id: str  # "<room>-<from>-<to>"
    room_name: str
    from_time: str
    to_time: str


class RoomAvailability(NamedTuple):
    """Occupied agendas and free intervals for one day."""

    agendas: list[RoomAgenda]
    free_slots: list[FreeRoomSlot]
