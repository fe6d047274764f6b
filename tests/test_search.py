"""Tests for search.py."""
from src.orari.models import Building, StudyCourse
from src.orari.search import filter_buildings, filter_courses, filter_room_names, matches

COURSES = [
    StudyCourse(id="1", name="Informatica"),
    StudyCourse(id="2", name="Scienze dell'Educazione"),
    StudyCourse(id="3", name="Lingue e Letterature Straniere", faculty_name="Università"),
]


class TestMatches:
    def test_accent_and_case_insensitive(self):
        assert matches("UNIVERSITA", "Università di Verona")
        assert matches("éducazione", "Scienze dell'Educazione")

    def test_punctuation_ignored(self):
        assert matches("dell educazione", "Scienze dell'Educazione")

    def test_blank_query_matches(self):
        assert matches("   ", "anything")

    def test_no_match(self):
        assert not matches("medicina", "Informatica", "UniVR")


class TestFilterCourses:
    def test_by_name(self):
        assert [c.id for c in filter_courses(COURSES, "info")] == ["1"]

    def test_by_faculty(self):
        assert [c.id for c in filter_courses(COURSES, "universita")] == ["3"]

    def test_blank_query_with_limit(self):
        assert [c.id for c in filter_courses(COURSES, "", limit=2)] == ["1", "2"]
        assert len(filter_courses(COURSES, "")) == 3

    def test_limit_ignored_for_real_query(self):
        assert len(filter_courses(COURSES, "a", limit=1)) == 3


class TestFilterOthers:
    def test_buildings(self):
        buildings = [Building(id="1", name="Ca' Vignal 2"), Building(id="2", name="Borgo Roma")]
        assert [b.id for b in filter_buildings(buildings, "vignal")] == ["1"]

    def test_room_names(self):
        assert filter_room_names(["Aula T.1", "Laboratorio Delta"], "t1") == ["Aula T.1"]
