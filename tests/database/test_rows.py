import logging
from datetime import date, datetime

from tutoring_center.attendance.model import AttendanceRecord
from tutoring_center.attendance.repository import AttendanceRepository
from tutoring_center.core.enums import AttendanceStatus, StudentStatus
from tutoring_center.database.bootstrap import _iter_sql_statements, _strip_create_db_and_use
from tutoring_center.database.memory_store import InMemoryEntityStore
from tutoring_center.database.rows import decode_exception, decode_rows, decode_student
from tutoring_center.schedules.model import UNSET
from tutoring_center.schedules.repository import ScheduleRepository
from tutoring_center.students.repository import StudentRepository


def test_student_defaults_fill_missing_optional_fields():
    student = decode_student({"id": "s1", "name": None, "balance": None, "group_ids": '["g1", "g2"]'})

    assert student.name == ""
    assert student.balance == 0
    assert student.status == StudentStatus.ACTIVE
    assert student.group_ids == ("g1", "g2")
    assert student.parent_email == ""


def test_rows_without_identity_are_dropped_and_logged(caplog):
    rows = [{"id": "s1", "name": "Anna"}, {"name": "No id"}, None, {"id": "s3", "status": "frozen"}]

    with caplog.at_level(logging.WARNING):
        students = decode_rows("students", rows, decode_student)

    assert [s.student_id for s in students] == ["s1"]
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 3


def test_repository_skips_malformed_stored_rows():
    store = InMemoryEntityStore(
        {
            "students": [{"id": "s1", "name": "Anna", "group_ids": None}, {"id": "", "name": "Ghost"}],
            "attendance": [
                {"student_id": "s1", "date": "2024-09-02", "status": "present"},
                {"student_id": "s1", "date": "not-a-date", "status": "present"},
            ],
            "schedule_events": [
                {"id": "ev1", "title": "Math", "start": "2024-09-02T18:00:00Z", "end": "2024-09-02T19:00:00Z"},
                {"id": "ev2", "title": "Broken", "start": None, "end": "2024-09-02T19:00:00"},
            ],
        }
    )

    assert [s.student_id for s in StudentRepository(store).list_all()] == ["s1"]
    events = ScheduleRepository(store).list_events()
    assert [e.event_id for e in events] == ["ev1"]
    assert events[0].end - events[0].start == datetime(2024, 1, 1, 19) - datetime(2024, 1, 1, 18)


def test_exception_group_override_is_distinguished_from_absent():
    explicit_none = decode_exception(
        {"original_event_id": "ev", "original_start_time": "2024-09-09T18:00", "new_group_id": None, "overrides_group": 1}
    )
    absent = decode_exception(
        {"original_event_id": "ev", "original_start_time": "2024-09-09T18:00", "new_group_id": None, "overrides_group": 0}
    )

    assert explicit_none.overrides_group and explicit_none.new_group_id is None
    assert not absent.overrides_group and absent.new_group_id is UNSET


def test_memory_store_attendance_key_is_student_and_date():
    repo = AttendanceRepository(InMemoryEntityStore())
    repo.upsert(AttendanceRecord(student_id="s1", lesson_date=date(2024, 9, 2), status=AttendanceStatus.PRESENT))
    repo.upsert(AttendanceRecord(student_id="s1", lesson_date=date(2024, 9, 2), status=AttendanceStatus.ABSENT))

    records = repo.list_all()
    assert len(records) == 1
    assert records[0].status == AttendanceStatus.ABSENT


def test_schema_splitter_ignores_semicolons_in_quotes():
    sql = "CREATE DATABASE x;\nUSE x;\nCREATE TABLE a (b VARCHAR(5) DEFAULT ';');\nINSERT INTO a VALUES ('x;y');"

    statements = list(_iter_sql_statements(_strip_create_db_and_use(sql)))

    assert statements == ["CREATE TABLE a (b VARCHAR(5) DEFAULT ';')", "INSERT INTO a VALUES ('x;y')"]
