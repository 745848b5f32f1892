from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from ..users.tokens import TokenClaims, TokenService

# Endpoints whose error bodies carry ``success: false`` next to ``error``.
SESSION_ENDPOINTS = frozenset({"start_attendance", "update_location", "stop_attendance", "faculty_location"})


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def bearer_required(tokens: TokenService, *, role: Optional[Role] = None):
    """Require ``Authorization: Bearer <access token>``; claims land on ``g.claims``."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            scheme, _, token = request.headers.get("Authorization", "").partition(" ")
            if scheme.lower() != "bearer" or not token.strip():
                raise AuthenticationError("Missing bearer token")
            claims = tokens.verify_access(token.strip())
            if role is not None and claims.role != role:
                raise AuthorizationError(f"{role.value} access required")
            g.claims = claims
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_claims() -> TokenClaims:
    return g.claims


def ensure_actor(email: Any) -> None:
    """The acting email in a request must be the token holder's."""
    if email and str(email).strip().lower() != current_claims().email.lower():
        raise AuthorizationError("Token does not match the acting user")
