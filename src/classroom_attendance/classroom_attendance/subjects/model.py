from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class AttendanceEntry:
    student_id: int
    present: bool = False


@dataclass(frozen=True)
class AttendanceRecord:
    """One ledger day for a subject: a roster snapshot of presence booleans."""

    record_id: int
    subject_id: str
    record_date: date
    entries: Tuple[AttendanceEntry, ...] = ()

    @property
    def day_key(self) -> str:
        return self.record_date.strftime("%Y-%m-%d")

    def entry_for(self, student_id: int) -> Optional[AttendanceEntry]:
        for e in self.entries:
            if e.student_id == student_id:
                return e
        return None

    @property
    def present_count(self) -> int:
        return sum(1 for e in self.entries if e.present)


@dataclass(frozen=True)
class Subject:
    """Domain entity: a taught subject with its faculty and enrolled students."""

    subject_id: str
    subject_code: str
    subject_name: str
    department: str
    section: str
    programme: str
    semester: str
    faculty_ids: Tuple[int, ...] = ()
    student_ids: Tuple[int, ...] = ()
    created_at: Optional[datetime] = None
    is_archived: bool = False

    def has_faculty(self, user_id: int) -> bool:
        return user_id in self.faculty_ids

    def has_student(self, user_id: int) -> bool:
        return user_id in self.student_ids

    def summary(self) -> dict:
        return {
            "subjectID": self.subject_id,
            "subjectCode": self.subject_code,
            "subjectName": self.subject_name,
            "department": self.department,
            "section": self.section,
            "programme": self.programme,
            "semester": self.semester,
        }


@dataclass(frozen=True)
class NewSubject:
    subject_id: str
    subject_code: str
    subject_name: str
    department: str
    section: str
    programme: str
    semester: str
