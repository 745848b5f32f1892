"""JSON shapes shared by the subject, attendance and report endpoints."""

from __future__ import annotations

from typing import Mapping

from ..users.model import User
from .model import AttendanceRecord


def render_student(user_id: int, users_by_id: Mapping[int, User]) -> dict:
    user = users_by_id.get(user_id)
    return {
        "_id": user_id,
        "name": user.name if user else None,
        "email": user.email if user else None,
        "scholarID": user.registration_number if user else None,
    }


def render_record(record: AttendanceRecord, users_by_id: Mapping[int, User]) -> dict:
    return {
        "date": record.day_key,
        "Students": [
            {**render_student(e.student_id, users_by_id), "present": e.present}
            for e in record.entries
        ],
    }
