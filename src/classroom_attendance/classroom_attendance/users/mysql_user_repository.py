from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, name, email, password_hash, role, registration_number"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        registration_number=row.get("registration_number"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str, *, role: Optional[Role] = None) -> Optional[User]:
        sql = f"SELECT {_COLUMNS} FROM users WHERE email=%s"
        params: list[object] = [email]
        if role is not None:
            sql += " AND role=%s"
            params.append(role.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_many(self, user_ids: Sequence[int]) -> Sequence[User]:
        ids = [int(i) for i in user_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id IN ({placeholders(len(ids))})", tuple(ids))
            return [_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        registration_number: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, registration_number)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (name, email, password_hash, role.value, registration_number),
            )
            return int(cur.lastrowid)

    def update_profile(self, email: str, *, name: Optional[str] = None, registration_number: Optional[str] = None) -> bool:
        sets: list[str] = []
        params: list[object] = []
        if name is not None:
            sets.append("name=%s")
            params.append(name)
        if registration_number is not None:
            sets.append("registration_number=%s")
            params.append(registration_number)
        if not sets:
            return self.get_by_email(email) is not None

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {', '.join(sets)} WHERE email=%s", tuple(params + [email]))
            cur.execute("SELECT 1 AS found FROM users WHERE email=%s", (email,))
            return fetchone(cur) is not None

    def set_password_hash(self, email: str, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE email=%s", (password_hash, email))
            return cur.rowcount > 0
