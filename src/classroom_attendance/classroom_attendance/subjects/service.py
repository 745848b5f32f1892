from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from ..common.validators import require_fields
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..users.model import User
from ..users.repository import UserRepository
from .model import AttendanceRecord, NewSubject, Subject
from .repository import SubjectRepository
from .views import render_record, render_student

logger = logging.getLogger(__name__)

NO_CLASSES_YET = "No classes yet"


class SubjectService:
    """Use cases around the subject aggregate: creation, dashboards, roster, archive."""

    def __init__(self, subjects: SubjectRepository, users: UserRepository):
        self._subjects = subjects
        self._users = users

    # -------- helpers --------
    def _faculty(self, email: str) -> User:
        faculty = self._users.get_by_email(email or "", role=Role.FACULTY)
        if not faculty:
            raise NotFoundError("Faculty not found")
        return faculty

    def _subject(self, subject_id: str, *, archived: Optional[bool] = False) -> Subject:
        subject = self._subjects.get(subject_id, archived=archived)
        if not subject:
            raise NotFoundError("Archived subject not found" if archived else "Subject not found")
        return subject

    def _users_by_id(self, subject: Subject, records: Sequence[AttendanceRecord]) -> Dict[int, User]:
        ids = set(subject.student_ids)
        for r in records:
            ids.update(e.student_id for e in r.entries)
        return {u.user_id: u for u in self._users.get_many(sorted(ids))}

    # -------- creation --------
    def add_subject(self, data: dict) -> None:
        require_fields(
            data,
            "subjectID",
            "subjectCode",
            "subjectName",
            "programme",
            "department",
            "section",
            "semester",
            "facultyEmail",
        )
        faculty = self._faculty(data["facultyEmail"])
        subject = NewSubject(
            subject_id=str(data["subjectID"]).strip(),
            subject_code=str(data["subjectCode"]).strip(),
            subject_name=str(data["subjectName"]).strip(),
            department=str(data["department"]).strip(),
            section=str(data["section"]).strip(),
            programme=str(data["programme"]).strip(),
            semester=str(data["semester"]).strip(),
        )
        if not self._subjects.create(subject, faculty_id=faculty.user_id):
            raise ConflictError("Subject already exists for this course and semester")
        logger.info("Subject %s created by %s", subject.subject_id, faculty.email)

    # -------- dashboards --------
    def faculty_dashboard(self, email: str) -> list[dict]:
        faculty = self._faculty(email)
        out: list[dict] = []
        for subject in self._subjects.list_for_faculty(faculty.user_id):
            records = self._subjects.list_records(subject.subject_id)
            users_by_id = self._users_by_id(subject, records)

            total_students = len(subject.student_ids)
            percentages = [
                (r.present_count / total_students) * 100 if total_students > 0 else 0 for r in records
            ]
            average = sum(percentages) / len(percentages) if percentages else 0

            out.append(
                {
                    **subject.summary(),
                    "numberOfStudents": total_students,
                    "numberOfClassesTaken": len(records),
                    "averageAttendance": average,
                    "lastClassDate": records[-1].day_key if records else NO_CLASSES_YET,
                    "students": [render_student(sid, users_by_id) for sid in subject.student_ids],
                    "attendanceRecords": [render_record(r, users_by_id) for r in records],
                }
            )
        return out

    def attendance_records(self, subject_id: str) -> dict:
        subject = self._subject(subject_id)
        records = self._subjects.list_records(subject.subject_id)
        users_by_id = self._users_by_id(subject, records)
        return {
            "subjectID": subject.subject_id,
            "subjectCode": subject.subject_code,
            "subjectName": subject.subject_name,
            "attendanceRecords": [render_record(r, users_by_id) for r in records],
        }

    def catalog(self) -> dict:
        """Active subject ids grouped programme -> department -> semester."""
        grouped: dict = {}
        for s in self._subjects.list_all():
            grouped.setdefault(s.programme, {}).setdefault(s.department, {}).setdefault(s.semester, []).append(s.subject_id)
        return grouped

    def student_dashboard(self, email: str) -> list[dict]:
        student = self._users.get_by_email(email or "")
        if not student:
            raise NotFoundError("Student not found")

        out: list[dict] = []
        for subject in self._subjects.list_for_student(student.user_id):
            records = self._subjects.list_records(subject.subject_id)
            users_by_id = self._users_by_id(subject, records)
            faculty = self._users.get_many(subject.faculty_ids)

            present_count = 0
            cumulative: list[dict] = []
            for index, record in enumerate(records):
                entry = record.entry_for(student.user_id)
                if entry is not None and entry.present:
                    present_count += 1
                cumulative.append(
                    {
                        "value": round((present_count / (index + 1)) * 100),
                        "label": f"{record.record_date.strftime('%b')} {record.record_date.day}",
                    }
                )

            out.append(
                {
                    **subject.summary(),
                    "faculties": [{"name": f.name, "email": f.email} for f in faculty],
                    "totalClasses": len(records),
                    "attendedClasses": present_count,
                    "lastClassDate": records[-1].day_key if records else NO_CLASSES_YET,
                    "cumulativeAttendance": cumulative,
                    "attendanceRecords": [render_record(r, users_by_id) for r in records],
                }
            )
        return out

    # -------- roster --------
    def unenroll(self, *, subject_id: str, email: str) -> bool:
        subject = self._subject(subject_id)
        student = self._users.get_by_email(email or "")
        if not student:
            raise NotFoundError("Student not found")
        removed = self._subjects.remove_student(subject.subject_id, student.user_id)
        if removed:
            logger.info("Student %s removed from %s", student.email, subject.subject_id)
        return removed

    # -------- archive --------
    def archive_subject(self, *, subject_id: str, email: str) -> None:
        if not subject_id or not email:
            raise ValidationError("SubjectID and Email are required")
        faculty = self._faculty(email)
        subject = self._subject(subject_id)
        if not subject.has_faculty(faculty.user_id):
            raise AuthorizationError("Faculty is not assigned to this subject")
        if not self._subjects.set_archived(subject.subject_id, True):
            raise NotFoundError("Subject not found")
        logger.info("Subject %s archived by %s", subject.subject_id, faculty.email)

    def unarchive_subject(self, *, subject_id: str, email: str) -> None:
        if not subject_id or not email:
            raise ValidationError("SubjectID and Email are required")
        faculty = self._faculty(email)
        subject = self._subject(subject_id, archived=True)
        if not subject.has_faculty(faculty.user_id):
            raise AuthorizationError("Faculty is not assigned to this subject")
        if not self._subjects.set_archived(subject.subject_id, False):
            raise NotFoundError("Archived subject not found")

    def list_archived(self, email: str) -> list[dict]:
        faculty = self._faculty(email)
        return [s.summary() for s in self._subjects.list_for_faculty(faculty.user_id, archived=True)]

    def delete_archived_subject(self, subject_id: str, *, email: str) -> None:
        """Only archived subjects can be deleted; active ones must be archived first."""
        faculty = self._faculty(email)
        subject = self._subject(subject_id, archived=True)
        if not subject.has_faculty(faculty.user_id):
            raise AuthorizationError("Faculty is not assigned to this subject")
        if not self._subjects.delete(subject.subject_id):
            raise NotFoundError("Subject not found")
        logger.info("Archived subject %s deleted", subject.subject_id)
