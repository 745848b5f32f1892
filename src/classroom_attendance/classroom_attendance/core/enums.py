from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role, stored verbatim in the users table."""

    FACULTY = "Faculty"
    STUDENT = "Student"


class EnrollmentAction(str, Enum):
    """Faculty decision on a staged enrollment request."""

    APPROVE = "approve"
    REJECT = "reject"


class CollaborationAction(str, Enum):
    """Target faculty decision on a staged collaboration request."""

    ACCEPT = "accept"
    REJECT = "reject"
