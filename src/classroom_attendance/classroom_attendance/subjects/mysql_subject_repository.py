from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import AttendanceEntry, AttendanceRecord, NewSubject, Subject
from .repository import SubjectRepository

_SUBJECT_COLUMNS = """
    s.subject_id, s.subject_code, s.subject_name, s.department, s.section,
    s.programme, s.semester, s.is_archived, s.created_at
"""


class MySQLSubjectRepository(SubjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Subjects --------
    @staticmethod
    def _hydrate(cur, rows: List[dict]) -> List[Subject]:
        if not rows:
            return []
        ids = [r["subject_id"] for r in rows]
        marks = placeholders(len(ids))

        faculty: Dict[str, List[int]] = defaultdict(list)
        cur.execute(
            f"SELECT subject_id, user_id FROM subject_faculty WHERE subject_id IN ({marks}) ORDER BY assigned_at, user_id",
            tuple(ids),
        )
        for r in fetchall(cur):
            faculty[r["subject_id"]].append(int(r["user_id"]))

        students: Dict[str, List[int]] = defaultdict(list)
        cur.execute(
            f"SELECT subject_id, user_id FROM subject_students WHERE subject_id IN ({marks}) ORDER BY enrolled_at, user_id",
            tuple(ids),
        )
        for r in fetchall(cur):
            students[r["subject_id"]].append(int(r["user_id"]))

        return [
            Subject(
                subject_id=r["subject_id"],
                subject_code=r["subject_code"],
                subject_name=r["subject_name"],
                department=r["department"],
                section=r["section"],
                programme=r["programme"],
                semester=r["semester"],
                faculty_ids=tuple(faculty.get(r["subject_id"], ())),
                student_ids=tuple(students.get(r["subject_id"], ())),
                created_at=r.get("created_at"),
                is_archived=bool(r.get("is_archived")),
            )
            for r in rows
        ]

    def get(self, subject_id: str, *, archived: Optional[bool] = False) -> Optional[Subject]:
        sql = f"SELECT {_SUBJECT_COLUMNS} FROM subjects s WHERE s.subject_id=%s"
        params: list[object] = [subject_id]
        if archived is not None:
            sql += " AND s.is_archived=%s"
            params.append(int(archived))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            if not row:
                return None
            return self._hydrate(cur, [row])[0]

    def create(self, subject: NewSubject, *, faculty_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO subjects(
                    subject_id, subject_code, subject_name, department, section, programme, semester
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    subject.subject_id,
                    subject.subject_code,
                    subject.subject_name,
                    subject.department,
                    subject.section,
                    subject.programme,
                    subject.semester,
                ),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                "INSERT INTO subject_faculty(subject_id, user_id) VALUES(%s,%s)",
                (subject.subject_id, int(faculty_id)),
            )
            return True

    def list_all(self) -> Sequence[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SUBJECT_COLUMNS} FROM subjects s WHERE s.is_archived=0 ORDER BY s.created_at")
            return self._hydrate(cur, fetchall(cur))

    def list_for_faculty(self, faculty_id: int, *, archived: bool = False) -> Sequence[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SUBJECT_COLUMNS}
                FROM subjects s
                JOIN subject_faculty f ON f.subject_id = s.subject_id
                WHERE f.user_id=%s AND s.is_archived=%s
                ORDER BY s.created_at
                """,
                (int(faculty_id), int(archived)),
            )
            return self._hydrate(cur, fetchall(cur))

    def list_for_student(self, student_id: int) -> Sequence[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SUBJECT_COLUMNS}
                FROM subjects s
                JOIN subject_students st ON st.subject_id = s.subject_id
                WHERE st.user_id=%s AND s.is_archived=0
                ORDER BY s.created_at
                """,
                (int(student_id),),
            )
            return self._hydrate(cur, fetchall(cur))

    def set_archived(self, subject_id: str, archived: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE subjects SET is_archived=%s WHERE subject_id=%s AND is_archived=%s",
                (int(archived), subject_id, int(not archived)),
            )
            return cur.rowcount > 0

    def delete(self, subject_id: str) -> bool:
        # Faculty/roster/ledger rows go with it (ON DELETE CASCADE).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM subjects WHERE subject_id=%s", (subject_id,))
            return cur.rowcount > 0

    # -------- Membership --------
    def add_faculty(self, subject_id: str, faculty_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO subject_faculty(subject_id, user_id) VALUES(%s,%s)",
                (subject_id, int(faculty_id)),
            )
            return cur.rowcount > 0

    def enroll_student(self, subject_id: str, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO subject_students(subject_id, user_id) VALUES(%s,%s)",
                (subject_id, int(student_id)),
            )
            if cur.rowcount == 0:
                return False
            # Backfill: new enrollees are absent for every past session.
            cur.execute(
                """
                INSERT IGNORE INTO attendance_entries(record_id, user_id, present)
                SELECT record_id, %s, 0 FROM attendance_records WHERE subject_id=%s
                """,
                (int(student_id), subject_id),
            )
            return True

    def remove_student(self, subject_id: str, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE e FROM attendance_entries e
                JOIN attendance_records r ON r.record_id = e.record_id
                WHERE r.subject_id=%s AND e.user_id=%s
                """,
                (subject_id, int(student_id)),
            )
            cur.execute(
                "DELETE FROM subject_students WHERE subject_id=%s AND user_id=%s",
                (subject_id, int(student_id)),
            )
            return cur.rowcount > 0

    # -------- Ledger --------
    def create_record_if_absent(self, subject_id: str, record_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # UNIQUE(subject_id, record_date) makes this the only writer that wins.
            cur.execute(
                "INSERT IGNORE INTO attendance_records(subject_id, record_date) VALUES(%s,%s)",
                (subject_id, record_date),
            )
            if cur.rowcount == 0:
                return False
            record_id = int(cur.lastrowid)
            cur.execute(
                """
                INSERT INTO attendance_entries(record_id, user_id, present)
                SELECT %s, user_id, 0 FROM subject_students WHERE subject_id=%s
                """,
                (record_id, subject_id),
            )
            return True

    @staticmethod
    def _load_records(cur, record_rows: List[dict]) -> List[AttendanceRecord]:
        if not record_rows:
            return []
        ids = [int(r["record_id"]) for r in record_rows]
        cur.execute(
            f"""
            SELECT record_id, user_id, present
            FROM attendance_entries
            WHERE record_id IN ({placeholders(len(ids))})
            ORDER BY record_id, user_id
            """,
            tuple(ids),
        )
        entries: Dict[int, List[AttendanceEntry]] = defaultdict(list)
        for e in fetchall(cur):
            entries[int(e["record_id"])].append(AttendanceEntry(student_id=int(e["user_id"]), present=bool(e["present"])))

        return [
            AttendanceRecord(
                record_id=int(r["record_id"]),
                subject_id=r["subject_id"],
                record_date=r["record_date"],
                entries=tuple(entries.get(int(r["record_id"]), ())),
            )
            for r in record_rows
        ]

    def get_record(self, subject_id: str, record_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT record_id, subject_id, record_date FROM attendance_records WHERE subject_id=%s AND record_date=%s",
                (subject_id, record_date),
            )
            row = fetchone(cur)
            if not row:
                return None
            return self._load_records(cur, [row])[0]

    def list_records(self, subject_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, subject_id, record_date
                FROM attendance_records
                WHERE subject_id=%s
                ORDER BY record_date, record_id
                """,
                (subject_id,),
            )
            return self._load_records(cur, fetchall(cur))

    def mark_present(self, record_id: int, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_entries SET present=1 WHERE record_id=%s AND user_id=%s AND present=0",
                (int(record_id), int(student_id)),
            )
            return cur.rowcount > 0

    def set_presence(self, record_id: int, updates: Mapping[int, bool]) -> int:
        matched = 0
        with db_cursor(self._conn_factory) as (_, cur):
            for student_id, present in updates.items():
                cur.execute(
                    "SELECT 1 AS found FROM attendance_entries WHERE record_id=%s AND user_id=%s",
                    (int(record_id), int(student_id)),
                )
                if fetchone(cur) is None:
                    continue
                cur.execute(
                    "UPDATE attendance_entries SET present=%s WHERE record_id=%s AND user_id=%s",
                    (int(bool(present)), int(record_id), int(student_id)),
                )
                matched += 1
        return matched

    def delete_record(self, subject_id: str, record_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_records WHERE subject_id=%s AND record_date=%s",
                (subject_id, record_date),
            )
            return cur.rowcount > 0
