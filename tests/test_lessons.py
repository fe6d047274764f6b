"""Tests for lessons.py – grid_call.php lesson normalization."""
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from src.orari.dates import parse_lesson_date
from src.orari.lessons import (
    extract_building,
    group_lessons_by_day,
    normalize_lessons,
    parse_lesson,
)

ROME = ZoneInfo("Europe/Rome")


def _cell(**fields):
    base = {
        "id": "c1",
        "nome_insegnamento": "Algoritmi",
        "data": "13-10-2025",
        "ora_inizio": "8:30",
        "ora_fine": "10:30",
        "aula": "Aula T.1 [Ca' Vignal 2]",
        "docente": "Rossi Mario",
    }
    base.update(fields)
    return base


class TestParseLessonDate:
    @pytest.mark.parametrize(
        "raw",
        ["13-10-2025", "2025-10-13", "13/10/2025", "2025/10/13", "13.10.2025", " 13-10-2025 "],
    )
    def test_formats(self, raw):
        assert parse_lesson_date(raw, ROME) == date(2025, 10, 13)

    def test_unix_timestamp_in_local_day(self):
        # 2025-10-12 23:30 UTC is already 13 October in Rome
        ts = datetime(2025, 10, 12, 23, 30, tzinfo=timezone.utc).timestamp()
        assert parse_lesson_date(str(int(ts)), ROME) == date(2025, 10, 13)

    def test_invalid(self):
        assert parse_lesson_date("lunedì", ROME) is None
        assert parse_lesson_date("", ROME) is None
        assert parse_lesson_date(None, ROME) is None


class TestExtractBuilding:
    def test_bracket_suffix(self):
        assert extract_building("Aula T.1 [Ca' Vignal 2]") == "Ca' Vignal 2"

    def test_dash_separator(self):
        assert extract_building("Aula B - Polo Zanotto") == "Polo Zanotto"

    def test_en_dash_separator(self):
        assert extract_building("Aula 1 – Borgo Roma") == "Borgo Roma"

    def test_comma_separator_last_occurrence(self):
        assert extract_building("Lab A, piano 1, Ca' Vignal 1") == "Ca' Vignal 1"

    def test_empty_brackets_fall_through(self):
        assert extract_building("Aula [] - Santa Marta") == "Santa Marta"

    def test_nothing_to_extract(self):
        assert extract_building("Aula Magna") is None


class TestParseLesson:
    def test_full_record(self):
        lesson = parse_lesson(_cell(), ROME)
        assert lesson is not None
        assert lesson.title == "Algoritmi"
        assert lesson.date == date(2025, 10, 13)
        assert lesson.start_time == "08:30"
        assert lesson.end_time == "10:30"
        assert lesson.room == "Aula T.1 [Ca' Vignal 2]"
        assert lesson.building == "Ca' Vignal 2"
        assert lesson.professor == "Rossi Mario"
        assert lesson.id == "c1-2025-10-13-08:30-10:30-Aula T.1 [Ca' Vignal 2]"

    def test_alias_fields(self):
        record = {
            "identifier_cell": "x9",
            "subject": "Basi di Dati",
            "giorno": "2025-10-14",
            "orario": "14:00 – 16:00",
            "NomeAula": "Aula G",
            "NomeSede": "Borgo Roma",
            "docenti": ["Bianchi", {"nome": "Verdi"}],
        }
        lesson = parse_lesson(record, ROME)
        assert lesson.title == "Basi di Dati"
        assert lesson.start_time == "14:00"
        assert lesson.end_time == "16:00"
        assert lesson.room == "Aula G"
        assert lesson.building == "Borgo Roma"
        assert lesson.professor == "Bianchi, Verdi"
        assert lesson.id.startswith("x9-2025-10-14-")

    def test_time_field_fallback(self):
        record = {"name": "Fisica", "date": "14/10/2025", "time": "9:00-11:00"}
        lesson = parse_lesson(record, ROME)
        assert (lesson.start_time, lesson.end_time) == ("09:00", "11:00")

    def test_fallback_strings(self):
        record = {"name": "Fisica", "date": "14/10/2025", "from": "9:00", "to": "11:00"}
        lesson = parse_lesson(record, ROME)
        assert lesson.room == "Aula non disponibile"
        assert lesson.building == "Edificio non specificato"
        assert lesson.professor == "Docente non disponibile"

    def test_generated_id_when_missing(self):
        record = {"name": "Fisica", "date": "14/10/2025", "from": "9:00", "to": "11:00"}
        first = parse_lesson(record, ROME)
        second = parse_lesson(record, ROME)
        assert first.id != second.id

    @pytest.mark.parametrize(
        "overrides",
        [
            {"nome_insegnamento": "  "},
            {"data": "domani"},
            {"ora_fine": ""},
        ],
    )
    def test_incomplete_records_dropped(self, overrides):
        assert parse_lesson(_cell(**overrides), ROME) is None


class TestNormalizeLessons:
    def test_duplicate_composite_keeps_first(self):
        root = {
            "celle": [
                _cell(nome_insegnamento="Primo titolo"),
                _cell(nome_insegnamento="Secondo titolo"),
            ]
        }
        lessons = normalize_lessons(root, ROME)
        assert len(lessons) == 1
        assert lessons[0].title == "Primo titolo"

    def test_sorted_by_date_then_start(self):
        root = {
            "celle": [
                _cell(id="a", data="14-10-2025", ora_inizio="8:30", ora_fine="10:30"),
                _cell(id="b", data="13-10-2025", ora_inizio="14:00", ora_fine="16:00"),
                _cell(id="c", data="13-10-2025", ora_inizio="9:00", ora_fine="11:00"),
            ]
        }
        lessons = normalize_lessons(root, ROME)
        assert [lesson.id.split("-")[0] for lesson in lessons] == ["c", "b", "a"]

    def test_all_container_keys_and_noise(self):
        root = {
            "celle": {"0": _cell(id="a"), "1": "rubbish"},
            "events": [_cell(id="b", data="15-10-2025"), {"nome": "Festa", "data": "x"}],
            "lessons": [_cell(id="c", data="16-10-2025")],
            "other": [_cell(id="d")],
        }
        lessons = normalize_lessons(root, ROME)
        assert [lesson.id.split("-")[0] for lesson in lessons] == ["a", "b", "c"]

    def test_empty_root(self):
        assert normalize_lessons({}, ROME) == []

    def test_superscript_digit_time_does_not_break_the_week(self):
        root = {
            "celle": [
                _cell(id="a", ora_inizio="²:30", ora_fine="10:00"),
                _cell(id="b", data="14-10-2025"),
            ]
        }
        lessons = normalize_lessons(root, ROME)
        assert [lesson.id.split("-")[0] for lesson in lessons] == ["a", "b"]
        assert lessons[0].start_time == "²:30"
        assert lessons[1].start_time == "08:30"


class TestGroupLessonsByDay:
    def test_grouping(self):
        root = {
            "celle": [
                _cell(id="a", data="14-10-2025"),
                _cell(id="b", data="13-10-2025", ora_inizio="11:00", ora_fine="12:00"),
                _cell(id="c", data="13-10-2025", ora_inizio="9:00", ora_fine="10:00"),
            ]
        }
        grouped = group_lessons_by_day(normalize_lessons(root, ROME))
        assert [day for day, _ in grouped] == [date(2025, 10, 13), date(2025, 10, 14)]
        assert [lesson.start_time for lesson in grouped[0][1]] == ["09:00", "11:00"]
