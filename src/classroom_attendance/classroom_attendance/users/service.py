from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository
from .tokens import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """What the client stores after login."""

    access_token: str
    refresh_token: str
    name: str


def parse_role(value: str) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError("Invalid role")


class AuthService:
    """Use case: register, login and token refresh."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str,
        registration_number: Optional[str] = None,
    ) -> int:
        if not (name and email and password and role):
            raise ValidationError("All fields required")
        selected = parse_role(role)
        reg_no = (registration_number or "").strip() or None
        if selected == Role.STUDENT and not reg_no:
            raise ValidationError("Registration number is required for students")

        if self._users.get_by_email(email.strip()):
            raise ConflictError("Email already registered")

        user_id = self._users.create_user(
            name=name.strip(),
            email=email.strip(),
            password_hash=generate_password_hash(password),
            role=selected,
            registration_number=reg_no if selected == Role.STUDENT else None,
        )
        logger.info("Registered %s account %s", selected.value, email)
        return user_id

    def authenticate(self, email: str, password: str, role: str) -> LoginResult:
        user = self._users.get_by_email(email or "", role=parse_role(role)) if role else None
        if not user:
            raise AuthenticationError("Invalid credentials")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except Exception:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid credentials")

        return LoginResult(
            access_token=self._tokens.issue_access(user.email, user.role),
            refresh_token=self._tokens.issue_refresh(user.email, user.role),
            name=user.name,
        )

    def refresh(self, refresh_token: str) -> str:
        if not refresh_token:
            raise AuthenticationError("Refresh token required")
        claims = self._tokens.verify_refresh(refresh_token)
        return self._tokens.issue_access(claims.email, claims.role)


class UserService:
    """Use case: read/update profiles and reset passwords."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get_user(self, email: str) -> User:
        user = self._users.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_user(self, email: str, changes: dict) -> User:
        # Email, role and password are not editable through the profile path.
        name = changes.get("name")
        reg_no = changes.get("registration_number")
        if name is not None:
            name = require_non_empty(name, "Name")
        if not self._users.update_profile(email, name=name, registration_number=reg_no):
            raise NotFoundError("User not found")
        return self.get_user(email)

    def reset_password(self, email: str, new_password: str) -> None:
        new_password = require_non_empty(new_password, "New password")
        if not self._users.set_password_hash(email, generate_password_hash(new_password)):
            raise NotFoundError("User not found")
        logger.info("Password reset for %s", email)
