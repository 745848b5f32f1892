from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.classroom_attendance.classroom_attendance.attendance.service import AttendanceService
from src.classroom_attendance.classroom_attendance.attendance.session_manager import AttendanceSessionManager
from src.classroom_attendance.classroom_attendance.core.enums import Role
from src.classroom_attendance.classroom_attendance.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

DAY = date(2025, 3, 10)
LOCATION = {"latitude": 24.7577, "longitude": 92.7923}


@pytest.fixture
def sessions(store):
    return AttendanceSessionManager(store)


@pytest.fixture
def service(subjects, users, sessions):
    return AttendanceService(subjects, users, sessions)


@pytest.fixture
def enrolled(subjects, subject, student_a, student_b):
    subjects.enroll_student(subject.subject_id, student_a.user_id)
    subjects.enroll_student(subject.subject_id, student_b.user_id)
    return subjects.get(subject.subject_id)


def test_start_creates_record_with_roster_absent(service, subjects, enrolled, faculty, student_a, student_b):
    result = service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)

    assert result.record_created is True
    record = subjects.get_record("CS101-A", DAY)
    assert {e.student_id: e.present for e in record.entries} == {
        student_a.user_id: False,
        student_b.user_id: False,
    }
    assert service.faculty_location("CS101-A") == LOCATION


def test_same_day_restart_reuses_record_and_next_day_creates_new(service, subjects, enrolled, faculty):
    service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)
    again = service.start_attendance(
        email=faculty.email, subject_id="CS101-A", location={"latitude": 0, "longitude": 0}, today=DAY
    )

    assert again.record_created is False
    assert len(subjects.list_records("CS101-A")) == 1
    assert service.faculty_location("CS101-A") == {"latitude": 0, "longitude": 0}

    nxt = service.start_attendance(
        email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY + timedelta(days=1)
    )
    records = subjects.list_records("CS101-A")
    assert nxt.record_created is True
    assert [r.record_date for r in records] == [DAY, DAY + timedelta(days=1)]
    assert all(not e.present for e in records[-1].entries)
    assert len(records[-1].entries) == 2


def test_start_unknown_subject(service, faculty):
    with pytest.raises(NotFoundError, match="Subject not found"):
        service.start_attendance(email=faculty.email, subject_id="NOPE", location=LOCATION, today=DAY)


def test_start_by_unassigned_faculty_is_rejected(service, users, subject, subjects):
    other = users.add(name="Dr. Iyer", email="iyer@example.com", role=Role.FACULTY)

    with pytest.raises(AuthorizationError):
        service.start_attendance(email=other.email, subject_id="CS101-A", location=LOCATION, today=DAY)
    assert subjects.list_records("CS101-A") == []


def test_start_by_unknown_faculty(service, subject):
    with pytest.raises(NotFoundError, match="Faculty not found"):
        service.start_attendance(email="ghost@example.com", subject_id="CS101-A", location=LOCATION, today=DAY)


def test_mark_attendance_flips_entry_once(service, subjects, enrolled, faculty, student_a, student_b):
    service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)

    service.mark_attendance(student_email=student_a.email, subject_id="CS101-A", today=DAY)

    record = subjects.get_record("CS101-A", DAY)
    assert record.entry_for(student_a.user_id).present is True
    assert record.entry_for(student_b.user_id).present is False

    with pytest.raises(ConflictError, match="already marked"):
        service.mark_attendance(student_email=student_a.email, subject_id="CS101-A", today=DAY)


def test_mark_attendance_without_todays_record(service, enrolled, student_a):
    with pytest.raises(NotFoundError):
        service.mark_attendance(student_email=student_a.email, subject_id="CS101-A", today=DAY)


def test_mark_attendance_for_student_not_in_roster(service, users, enrolled, faculty):
    late = users.add(name="Chen", email="chen@example.com", role=Role.STUDENT, registration_number="2112003")
    service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)

    with pytest.raises(ValidationError, match="not listed"):
        service.mark_attendance(student_email=late.email, subject_id="CS101-A", today=DAY)


def test_mark_requires_open_session_when_configured(subjects, users, sessions, enrolled, faculty, student_a):
    strict = AttendanceService(subjects, users, sessions, mark_requires_open_session=True)
    strict.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)
    strict.stop_attendance(email=faculty.email, subject_id="CS101-A")

    with pytest.raises(NotFoundError, match="Attendance not started yet"):
        strict.mark_attendance(student_email=student_a.email, subject_id="CS101-A", today=DAY)


def test_stop_then_location_not_found(service, enrolled, faculty):
    service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)
    service.stop_attendance(email=faculty.email, subject_id="CS101-A")

    with pytest.raises(NotFoundError):
        service.faculty_location("CS101-A")


def test_get_update_delete_attendance_by_date(service, subjects, enrolled, faculty, student_a, student_b):
    service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)

    matched = service.update_attendance(
        email=faculty.email,
        subject_id="CS101-A",
        day="2025-03-10T08:00:00.000Z",
        updated_attendance=[
            {"_id": student_b.user_id, "present": True},
            {"_id": 999, "present": True},
        ],
    )
    assert matched == 1

    view = service.get_attendance("CS101-A", "2025-03-10", email=faculty.email)
    assert view["date"] == "2025-03-10"
    assert view["subjectCode"] == "CS101"
    by_name = {s["name"]: s["present"] for s in view["Students"]}
    assert by_name == {"Asha": False, "Bilal": True}

    service.delete_attendance(email=faculty.email, subject_id="CS101-A", day="2025-03-10")
    assert subjects.list_records("CS101-A") == []
    with pytest.raises(NotFoundError):
        service.get_attendance("CS101-A", "2025-03-10", email=faculty.email)


def test_update_attendance_validates_input(service, enrolled, faculty):
    service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)

    with pytest.raises(ValidationError):
        service.update_attendance(email=faculty.email, subject_id="CS101-A", day="2025-03-10", updated_attendance=None)
    with pytest.raises(ValidationError):
        service.update_attendance(email=faculty.email, subject_id="CS101-A", day="not-a-date", updated_attendance=[])
    with pytest.raises(ValidationError):
        service.update_attendance(email=faculty.email, subject_id="CS101-A", day="2025-03-10", updated_attendance=[{"present": True}])


def test_delete_missing_record_is_not_found(service, subject, faculty):
    with pytest.raises(NotFoundError):
        service.delete_attendance(email=faculty.email, subject_id="CS101-A", day="2025-03-11")


def test_ledger_edits_require_assigned_faculty(service, users, subjects, enrolled, faculty):
    service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)
    outsider = users.add(name="Dr. Iyer", email="iyer@example.com", role=Role.FACULTY)

    with pytest.raises(AuthorizationError):
        service.get_attendance("CS101-A", "2025-03-10", email=outsider.email)
    with pytest.raises(AuthorizationError):
        service.update_attendance(
            email=outsider.email, subject_id="CS101-A", day="2025-03-10", updated_attendance=[]
        )
    with pytest.raises(AuthorizationError):
        service.delete_attendance(email=outsider.email, subject_id="CS101-A", day="2025-03-10")

    assert len(subjects.list_records("CS101-A")) == 1


def test_faculty_account_cannot_mark_as_student(service, enrolled, faculty):
    service.start_attendance(email=faculty.email, subject_id="CS101-A", location=LOCATION, today=DAY)

    with pytest.raises(NotFoundError, match="Student not found"):
        service.mark_attendance(student_email=faculty.email, subject_id="CS101-A", today=DAY)
