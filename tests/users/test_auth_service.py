from __future__ import annotations

import jwt
import pytest
from werkzeug.security import check_password_hash

from src.classroom_attendance.classroom_attendance.core.enums import Role
from src.classroom_attendance.classroom_attendance.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.classroom_attendance.classroom_attendance.users.service import AuthService, UserService
from src.classroom_attendance.classroom_attendance.users.tokens import TokenService


@pytest.fixture
def auth(users, tokens):
    return AuthService(users, tokens)


def test_register_and_login(auth, tokens, users):
    auth.register(name="Asha", email="asha@example.com", password="pw-123", role="Student", registration_number="2112001")

    result = auth.authenticate("asha@example.com", "pw-123", "Student")

    assert result.name == "Asha"
    claims = tokens.verify_access(result.access_token)
    assert claims.email == "asha@example.com"
    assert claims.role is Role.STUDENT
    assert check_password_hash(users.get_by_email("asha@example.com").password_hash, "pw-123")


def test_faculty_registration_drops_registration_number(auth, users):
    auth.register(name="Dr. Rao", email="rao@example.com", password="pw", role="Faculty", registration_number="X1")
    assert users.get_by_email("rao@example.com").registration_number is None


def test_register_validation(auth):
    with pytest.raises(ValidationError, match="All fields required"):
        auth.register(name="", email="a@example.com", password="pw", role="Student")
    with pytest.raises(ValidationError, match="Registration number"):
        auth.register(name="A", email="a@example.com", password="pw", role="Student")
    with pytest.raises(ValidationError, match="Invalid role"):
        auth.register(name="A", email="a@example.com", password="pw", role="Admin")


def test_register_duplicate_email(auth, faculty):
    with pytest.raises(ConflictError):
        auth.register(name="Again", email=faculty.email, password="pw", role="Faculty")


def test_login_rejects_wrong_password_or_role(auth, faculty):
    with pytest.raises(AuthenticationError):
        auth.authenticate(faculty.email, "wrong", "Faculty")
    with pytest.raises(AuthenticationError):
        auth.authenticate(faculty.email, "secret", "Student")


def test_refresh_issues_new_access_token(auth, tokens, faculty):
    result = auth.authenticate(faculty.email, "secret", "Faculty")

    access = auth.refresh(result.refresh_token)
    assert tokens.verify_access(access).email == faculty.email


def test_refresh_errors(auth, faculty):
    with pytest.raises(AuthenticationError):
        auth.refresh("")
    with pytest.raises(AuthorizationError):
        auth.refresh("garbage")
    access = auth.authenticate(faculty.email, "secret", "Faculty").access_token
    with pytest.raises(AuthorizationError):
        auth.refresh(access)


def test_tokens_signed_with_other_secret_are_rejected(tokens):
    foreign = TokenService("someone-else").issue_access("rao@example.com", Role.FACULTY)
    with pytest.raises(AuthenticationError):
        tokens.verify_access(foreign)


def test_expired_access_token(tokens):
    expired = jwt.encode(
        {"email": "rao@example.com", "role": "Faculty", "typ": "access", "exp": 1},
        "test-jwt-secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthenticationError, match="expired"):
        tokens.verify_access(expired)


def test_update_user_only_touches_profile_fields(users, student_a):
    service = UserService(users)

    updated = service.update_user(
        student_a.email, {"name": "Asha K", "registration_number": "2112999", "password": "hijack", "role": "Faculty"}
    )

    assert updated.name == "Asha K"
    assert updated.registration_number == "2112999"
    assert updated.role is Role.STUDENT
    assert updated.password_hash == student_a.password_hash


def test_user_lookup_and_reset(users, faculty):
    service = UserService(users)
    assert service.get_user(faculty.email).to_public_dict()["role"] == "Faculty"

    service.reset_password(faculty.email, "n3w")
    assert check_password_hash(users.get_by_email(faculty.email).password_hash, "n3w")

    with pytest.raises(NotFoundError):
        service.get_user("ghost@example.com")
    with pytest.raises(NotFoundError):
        service.reset_password("ghost@example.com", "x")
