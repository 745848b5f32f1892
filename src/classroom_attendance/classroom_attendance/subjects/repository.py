from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Protocol, Sequence

from .model import AttendanceRecord, NewSubject, Subject


class SubjectRepository(Protocol):
    """Durable subject aggregate: roster, faculty assignments and the attendance ledger.

    Each method is a single atomic write at the storage level; services never
    rely on a read followed by an unguarded write for invariants.
    """

    # Subjects
    def get(self, subject_id: str, *, archived: Optional[bool] = False) -> Optional[Subject]:
        """``archived=None`` looks up the subject regardless of archive state."""

        raise NotImplementedError

    def create(self, subject: NewSubject, *, faculty_id: int) -> bool:
        """Insert the subject with its creator as first faculty; False if the id is taken."""

        raise NotImplementedError

    def list_all(self) -> Sequence[Subject]:
        raise NotImplementedError

    def list_for_faculty(self, faculty_id: int, *, archived: bool = False) -> Sequence[Subject]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[Subject]:
        raise NotImplementedError

    def set_archived(self, subject_id: str, archived: bool) -> bool:
        raise NotImplementedError

    def delete(self, subject_id: str) -> bool:
        raise NotImplementedError

    # Membership
    def add_faculty(self, subject_id: str, faculty_id: int) -> bool:
        raise NotImplementedError

    def enroll_student(self, subject_id: str, student_id: int) -> bool:
        """Add to the roster and append an absent entry to every existing record.

        Returns False (and changes nothing) if the student is already enrolled.
        """

        raise NotImplementedError

    def remove_student(self, subject_id: str, student_id: int) -> bool:
        """Drop from the roster and strike the student's entries from all records."""

        raise NotImplementedError

    # Ledger
    def create_record_if_absent(self, subject_id: str, record_date: date) -> bool:
        """Insert-if-absent for the day's record, snapshotting the roster as absent.

        Returns True when a record was created, False when one already existed.
        """

        raise NotImplementedError

    def get_record(self, subject_id: str, record_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_records(self, subject_id: str) -> Sequence[AttendanceRecord]:
        """All records for the subject, oldest first."""

        raise NotImplementedError

    def mark_present(self, record_id: int, student_id: int) -> bool:
        """Flip one entry from absent to present; False if it was already present or missing."""

        raise NotImplementedError

    def set_presence(self, record_id: int, updates: Mapping[int, bool]) -> int:
        """Update existing entries only; returns how many entries matched."""

        raise NotImplementedError

    def delete_record(self, subject_id: str, record_date: date) -> bool:
        raise NotImplementedError
