"""UniVR timetable portal ingestion.

Fetches the student portal's course catalog, weekly lesson grid and room
occupancy, and normalizes them into typed, deduplicated, sorted models.
"""

from src.orari.client import UniVRClient
from src.orari.errors import OrariError
from src.orari.models import (
    Building,
    FreeRoomSlot,
    Lesson,
    RoomAgenda,
    RoomAvailability,
    RoomLesson,
    StudyCourse,
)

__all__ = [
    "UniVRClient",
    "OrariError",
    "StudyCourse",
    "Building",
    "Lesson",
    "RoomLesson",
    "RoomAgenda",
    "FreeRoomSlot",
    "RoomAvailability",
]
