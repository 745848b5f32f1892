from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account (faculty or student).

    Note: Plain data object (no DB access code here).
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    registration_number: Optional[str] = None

    def to_public_dict(self) -> dict:
        return {
            "_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "registration_number": self.registration_number,
            "role": self.role.value,
        }
