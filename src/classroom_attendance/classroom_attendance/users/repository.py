from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[User]:
        raise NotImplementedError

    def get_many(self, user_ids: Sequence[int]) -> Sequence[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        registration_number: Optional[str],
    ) -> int:
        raise NotImplementedError

    def update_profile(self, email: str, *, name: Optional[str] = None, registration_number: Optional[str] = None) -> bool:
        raise NotImplementedError

    def set_password_hash(self, email: str, password_hash: str) -> bool:
        raise NotImplementedError
