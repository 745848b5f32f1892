from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import jwt

from ..common.datetime_utils import now_utc
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError

JWT_ALGO = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    email: str
    role: Role


class TokenService:
    """Issue and verify signed access/refresh tokens.

    Both carry ``{email, role}``; they differ only by lifetime and a ``typ``
    claim so a refresh token cannot be replayed as an access token.
    """

    def __init__(self, secret: str, *, access_minutes: int = 15, refresh_days: int = 7):
        self._secret = secret
        self._access_ttl = timedelta(minutes=int(access_minutes))
        self._refresh_ttl = timedelta(days=int(refresh_days))

    def _encode(self, email: str, role: Role, *, typ: str, ttl: timedelta) -> str:
        now = now_utc()
        payload = {
            "email": email,
            "role": role.value,
            "typ": typ,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        # pyjwt returns str in v2+
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGO)

    def issue_access(self, email: str, role: Role) -> str:
        return self._encode(email, role, typ="access", ttl=self._access_ttl)

    def issue_refresh(self, email: str, role: Role) -> str:
        return self._encode(email, role, typ="refresh", ttl=self._refresh_ttl)

    def _decode(self, token: str, *, typ: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[JWT_ALGO])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        if payload.get("typ") != typ:
            raise AuthenticationError("Invalid token")
        try:
            return TokenClaims(email=str(payload["email"]), role=Role(payload["role"]))
        except (KeyError, ValueError):
            raise AuthenticationError("Invalid token")

    def verify_access(self, token: str) -> TokenClaims:
        return self._decode(token, typ="access")

    def verify_refresh(self, token: str) -> TokenClaims:
        """Refresh failures are authorization errors (403), not 401."""
        try:
            return self._decode(token, typ="refresh")
        except AuthenticationError as e:
            raise AuthorizationError(str(e))
