from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from ..common.datetime_utils import parse_iso_date, today_utc
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..subjects.model import Subject
from ..subjects.repository import SubjectRepository
from ..subjects.views import render_record
from ..users.model import User
from ..users.repository import UserRepository
from .session_manager import AttendanceSessionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartResult:
    record_created: bool
    record_date: date


class AttendanceService:
    """Ties the ephemeral session window to the durable daily ledger."""

    def __init__(
        self,
        subjects: SubjectRepository,
        users: UserRepository,
        sessions: AttendanceSessionManager,
        *,
        mark_requires_open_session: bool = False,
    ):
        self._subjects = subjects
        self._users = users
        self._sessions = sessions
        self._mark_requires_open_session = bool(mark_requires_open_session)

    def _get_subject(self, subject_id: str) -> Subject:
        subject = self._subjects.get(subject_id)
        if not subject:
            raise NotFoundError("Subject not found")
        return subject

    def _get_faculty(self, email: str, subject: Subject) -> User:
        faculty = self._users.get_by_email(email, role=Role.FACULTY)
        if not faculty:
            raise NotFoundError("Faculty not found")
        if not subject.has_faculty(faculty.user_id):
            raise AuthorizationError("Faculty is not assigned to this subject")
        return faculty

    # -------- Session window --------
    def start_attendance(self, *, email: str, subject_id: str, location: Any, today: Optional[date] = None) -> StartResult:
        """Ensure today's record exists, then open/extend the session for ``email``.

        Safe to retry: a repeated start the same day reuses the record and only
        overwrites the actor's location and the window's TTL.
        """
        subject = self._get_subject(subject_id)
        self._get_faculty(email, subject)
        record_date = today or today_utc()

        created = self._subjects.create_record_if_absent(subject.subject_id, record_date)
        if created:
            logger.info("Ledger record created: subject=%s date=%s", subject.subject_id, record_date)
        self._sessions.start_session(subject.subject_id, email, location)
        return StartResult(record_created=created, record_date=record_date)

    def update_location(self, *, email: str, subject_id: str, location: Any) -> None:
        self._sessions.update_location(subject_id, email, location)

    def stop_attendance(self, *, email: str, subject_id: str) -> None:
        self._sessions.stop_session(subject_id, email)

    def faculty_location(self, subject_id: str) -> Any:
        return self._sessions.get_active_location(subject_id)

    # -------- Ledger --------
    def mark_attendance(self, *, student_email: str, subject_id: str, today: Optional[date] = None) -> None:
        subject = self._get_subject(subject_id)
        student = self._users.get_by_email(student_email, role=Role.STUDENT)
        if not student:
            raise NotFoundError("Student not found")

        if self._mark_requires_open_session and not self._sessions.is_open(subject.subject_id):
            raise NotFoundError("Attendance not started yet")

        record = self._subjects.get_record(subject.subject_id, today or today_utc())
        if not record:
            raise NotFoundError("No attendance record for today")

        entry = record.entry_for(student.user_id)
        if entry is None:
            raise ValidationError("Student not listed in attendance")
        if entry.present or not self._subjects.mark_present(record.record_id, student.user_id):
            raise ConflictError("Attendance already marked for today")
        logger.info("Marked present: subject=%s student=%s date=%s", subject.subject_id, student.email, record.day_key)

    def get_attendance(self, subject_id: str, day: str, *, email: str) -> dict:
        subject = self._get_subject(subject_id)
        self._get_faculty(email, subject)
        record = self._subjects.get_record(subject.subject_id, self._parse_day(day))
        if not record:
            raise NotFoundError("Attendance record not found for the given date")

        users_by_id = {u.user_id: u for u in self._users.get_many([e.student_id for e in record.entries])}
        rendered = render_record(record, users_by_id)
        return {
            "subjectID": subject.subject_id,
            "subjectCode": subject.subject_code,
            "subjectName": subject.subject_name,
            "date": rendered["date"],
            "Students": rendered["Students"],
        }

    def update_attendance(
        self, *, email: str, subject_id: str, day: str, updated_attendance: Iterable[Mapping[str, Any]]
    ) -> int:
        """Apply ``[{_id, present}, ...]`` to one day; unknown students are ignored."""
        if not subject_id or not day or updated_attendance is None:
            raise ValidationError("Missing required fields")
        subject = self._get_subject(subject_id)
        self._get_faculty(email, subject)
        record = self._subjects.get_record(subject.subject_id, self._parse_day(day))
        if not record:
            raise NotFoundError("Attendance record not found for this date")

        updates: dict[int, bool] = {}
        for item in updated_attendance:
            try:
                updates[int(item["_id"])] = bool(item["present"])
            except (KeyError, TypeError, ValueError):
                raise ValidationError("Each update needs _id and present")
        return self._subjects.set_presence(record.record_id, updates)

    def delete_attendance(self, *, email: str, subject_id: str, day: str) -> None:
        if not subject_id or not day:
            raise ValidationError("Subject code and date are required")
        subject = self._get_subject(subject_id)
        self._get_faculty(email, subject)
        if not self._subjects.delete_record(subject.subject_id, self._parse_day(day)):
            raise NotFoundError("Attendance record not found for this date")

    @staticmethod
    def _parse_day(day: str) -> date:
        try:
            return parse_iso_date(day)
        except (TypeError, ValueError):
            raise ValidationError("Invalid date (YYYY-MM-DD)")
