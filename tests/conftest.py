from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

import pytest
from werkzeug.security import generate_password_hash

from src.classroom_attendance.classroom_attendance.container import assemble
from src.classroom_attendance.classroom_attendance.core.enums import Role
from src.classroom_attendance.classroom_attendance.subjects.model import (
    AttendanceEntry,
    AttendanceRecord,
    NewSubject,
    Subject,
)
from src.classroom_attendance.classroom_attendance.users.model import User
from src.classroom_attendance.classroom_attendance.users.tokens import TokenService


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = float(start)

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class InMemoryEphemeralStore:
    """Redis-like store: whole-key TTL, empty hashes/sets vanish, lazy expiry on read."""

    def __init__(self, clock: FakeClock):
        self._clock = clock
        self._data: Dict[str, object] = {}
        self._expires_at: Dict[str, float] = {}

    def _purge(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and self._clock() >= deadline:
            self._data.pop(key, None)
            self._expires_at.pop(key, None)

    def _drop_if_empty(self, key: str) -> None:
        if not self._data.get(key):
            self._data.pop(key, None)
            self._expires_at.pop(key, None)

    # Hashes
    def hset(self, key, field, value):
        self._purge(key)
        self._data.setdefault(key, {})[field] = value

    def hget(self, key, field):
        self._purge(key)
        return self._data.get(key, {}).get(field)

    def hexists(self, key, field):
        self._purge(key)
        return field in self._data.get(key, {})

    def hgetall(self, key):
        self._purge(key)
        return dict(self._data.get(key, {}))

    def hset_with_ttl(self, key, field, value, seconds):
        self.hset(key, field, value)
        self.expire(key, seconds)

    def hdel(self, key, field):
        self._purge(key)
        h = self._data.get(key, {})
        if field not in h:
            return 0
        del h[field]
        self._drop_if_empty(key)
        return 1

    # Sets
    def sadd(self, key, member):
        self._purge(key)
        s = self._data.setdefault(key, set())
        if member in s:
            return 0
        s.add(member)
        return 1

    def smembers(self, key):
        self._purge(key)
        return set(self._data.get(key, set()))

    def srem(self, key, member):
        self._purge(key)
        s = self._data.get(key, set())
        if member not in s:
            return 0
        s.discard(member)
        self._drop_if_empty(key)
        return 1

    # Strings / keys
    def setex(self, key, seconds, value):
        self._data[key] = value
        self._expires_at[key] = self._clock() + seconds

    def get(self, key):
        self._purge(key)
        value = self._data.get(key)
        return value if isinstance(value, str) else None

    def delete(self, key):
        self._expires_at.pop(key, None)
        return 1 if self._data.pop(key, None) is not None else 0

    def expire(self, key, seconds):
        self._purge(key)
        if key not in self._data:
            return False
        self._expires_at[key] = self._clock() + seconds
        return True

    def keys(self, pattern):
        for key in list(self._data):
            self._purge(key)
        return [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]

    def ttl(self, key) -> Optional[float]:
        self._purge(key)
        deadline = self._expires_at.get(key)
        return None if deadline is None else deadline - self._clock()


class InMemoryUsers:
    def __init__(self):
        self._by_id: Dict[int, User] = {}
        self._next_id = 1

    def add(self, *, name: str, email: str, role: Role, password: str = "secret", registration_number=None) -> User:
        user_id = self.create_user(
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            registration_number=registration_number,
        )
        return self._by_id[user_id]

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(user_id)

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[User]:
        for u in self._by_id.values():
            if u.email == email and (role is None or u.role == role):
                return u
        return None

    def get_many(self, user_ids: Sequence[int]) -> Sequence[User]:
        return [self._by_id[i] for i in user_ids if i in self._by_id]

    def create_user(self, *, name, email, password_hash, role, registration_number=None) -> int:
        user_id = self._next_id
        self._next_id += 1
        self._by_id[user_id] = User(
            user_id=user_id,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            registration_number=registration_number,
        )
        return user_id

    def update_profile(self, email, *, name=None, registration_number=None) -> bool:
        user = self.get_by_email(email)
        if not user:
            return False
        changes = {}
        if name is not None:
            changes["name"] = name
        if registration_number is not None:
            changes["registration_number"] = registration_number
        self._by_id[user.user_id] = replace(user, **changes)
        return True

    def set_password_hash(self, email, password_hash) -> bool:
        user = self.get_by_email(email)
        if not user:
            return False
        self._by_id[user.user_id] = replace(user, password_hash=password_hash)
        return True

    def remove(self, email: str) -> None:
        user = self.get_by_email(email)
        if user:
            del self._by_id[user.user_id]


@dataclass
class _Row:
    subject: Subject
    faculty: List[int] = field(default_factory=list)
    students: List[int] = field(default_factory=list)
    archived: bool = False


@dataclass
class _Record:
    record_id: int
    record_date: date
    entries: Dict[int, bool] = field(default_factory=dict)


class InMemorySubjects:
    def __init__(self):
        self._rows: Dict[str, _Row] = {}
        self._records: Dict[str, List[_Record]] = {}
        self._next_record_id = 1

    def _view(self, row: _Row) -> Subject:
        return replace(
            row.subject,
            faculty_ids=tuple(row.faculty),
            student_ids=tuple(row.students),
            is_archived=row.archived,
        )

    def _record_view(self, subject_id: str, r: _Record) -> AttendanceRecord:
        return AttendanceRecord(
            record_id=r.record_id,
            subject_id=subject_id,
            record_date=r.record_date,
            entries=tuple(AttendanceEntry(student_id=sid, present=p) for sid, p in r.entries.items()),
        )

    def get(self, subject_id, *, archived: Optional[bool] = False):
        row = self._rows.get(subject_id)
        if not row or (archived is not None and row.archived != archived):
            return None
        return self._view(row)

    def create(self, subject: NewSubject, *, faculty_id: int) -> bool:
        if subject.subject_id in self._rows:
            return False
        self._rows[subject.subject_id] = _Row(
            subject=Subject(
                subject_id=subject.subject_id,
                subject_code=subject.subject_code,
                subject_name=subject.subject_name,
                department=subject.department,
                section=subject.section,
                programme=subject.programme,
                semester=subject.semester,
            ),
            faculty=[int(faculty_id)],
        )
        self._records[subject.subject_id] = []
        return True

    def list_all(self):
        return [self._view(r) for r in self._rows.values() if not r.archived]

    def list_for_faculty(self, faculty_id, *, archived=False):
        return [self._view(r) for r in self._rows.values() if faculty_id in r.faculty and r.archived == archived]

    def list_for_student(self, student_id):
        return [self._view(r) for r in self._rows.values() if student_id in r.students and not r.archived]

    def set_archived(self, subject_id, archived) -> bool:
        row = self._rows.get(subject_id)
        if not row or row.archived == archived:
            return False
        row.archived = archived
        return True

    def delete(self, subject_id) -> bool:
        self._records.pop(subject_id, None)
        return self._rows.pop(subject_id, None) is not None

    def add_faculty(self, subject_id, faculty_id) -> bool:
        row = self._rows[subject_id]
        if faculty_id in row.faculty:
            return False
        row.faculty.append(faculty_id)
        return True

    def enroll_student(self, subject_id, student_id) -> bool:
        row = self._rows[subject_id]
        if student_id in row.students:
            return False
        row.students.append(student_id)
        for r in self._records[subject_id]:
            r.entries.setdefault(student_id, False)
        return True

    def remove_student(self, subject_id, student_id) -> bool:
        for r in self._records.get(subject_id, []):
            r.entries.pop(student_id, None)
        row = self._rows[subject_id]
        if student_id not in row.students:
            return False
        row.students.remove(student_id)
        return True

    def create_record_if_absent(self, subject_id, record_date) -> bool:
        records = self._records[subject_id]
        if any(r.record_date == record_date for r in records):
            return False
        records.append(
            _Record(
                record_id=self._next_record_id,
                record_date=record_date,
                entries={sid: False for sid in self._rows[subject_id].students},
            )
        )
        self._next_record_id += 1
        records.sort(key=lambda r: r.record_date)
        return True

    def get_record(self, subject_id, record_date):
        for r in self._records.get(subject_id, []):
            if r.record_date == record_date:
                return self._record_view(subject_id, r)
        return None

    def list_records(self, subject_id):
        return [self._record_view(subject_id, r) for r in self._records.get(subject_id, [])]

    def _find_record(self, record_id) -> Optional[_Record]:
        for records in self._records.values():
            for r in records:
                if r.record_id == record_id:
                    return r
        return None

    def mark_present(self, record_id, student_id) -> bool:
        r = self._find_record(record_id)
        if r is None or r.entries.get(student_id) is not False:
            return False
        r.entries[student_id] = True
        return True

    def set_presence(self, record_id, updates: Mapping[int, bool]) -> int:
        r = self._find_record(record_id)
        if r is None:
            return 0
        matched = 0
        for sid, present in updates.items():
            if sid in r.entries:
                r.entries[sid] = bool(present)
                matched += 1
        return matched

    def delete_record(self, subject_id, record_date) -> bool:
        records = self._records.get(subject_id, [])
        kept = [r for r in records if r.record_date != record_date]
        self._records[subject_id] = kept
        return len(kept) != len(records)


class FakeMailer:
    def __init__(self):
        self.sent: List[dict] = []

    def send(self, *, to, subject, body, attachments=()):
        self.sent.append({"to": to, "subject": subject, "body": body, "attachments": list(attachments)})


def _new_subject(subject_id: str = "CS101-A", **overrides) -> NewSubject:
    values = dict(
        subject_id=subject_id,
        subject_code="CS101",
        subject_name="Data Structures",
        department="CSE",
        section="A",
        programme="BTech",
        semester="3",
    )
    values.update(overrides)
    return NewSubject(**values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryEphemeralStore(clock)


@pytest.fixture
def users():
    return InMemoryUsers()


@pytest.fixture
def subjects():
    return InMemorySubjects()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def tokens():
    return TokenService("test-jwt-secret")


@pytest.fixture
def faculty(users):
    return users.add(name="Dr. Rao", email="rao@example.com", role=Role.FACULTY)


@pytest.fixture
def student_a(users):
    return users.add(name="Asha", email="asha@example.com", role=Role.STUDENT, registration_number="2112001")


@pytest.fixture
def student_b(users):
    return users.add(name="Bilal", email="bilal@example.com", role=Role.STUDENT, registration_number="2112002")


@pytest.fixture
def subject(subjects, faculty):
    subjects.create(_new_subject(), faculty_id=faculty.user_id)
    return subjects.get("CS101-A")


@pytest.fixture
def container(store, users, subjects, mailer, tokens):
    return assemble(store=store, users_repo=users, subjects_repo=subjects, mailer=mailer, token_service=tokens)


@pytest.fixture
def make_subject():
    return _new_subject
