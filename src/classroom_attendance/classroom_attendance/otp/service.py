from __future__ import annotations

import logging
import secrets

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_non_empty
from ..core.constants import (
    OTP_DIGITS,
    OTP_KEY,
    OTP_RESET_TTL_SECONDS,
    OTP_SIGNUP_TTL_SECONDS,
    OTP_VERIFIED_KEY,
    OTP_VERIFIED_TTL_SECONDS,
)
from ..core.exceptions import NotFoundError, ValidationError
from ..ephemeral.store import EphemeralStore
from ..mail.mailer import Mailer
from ..users.repository import UserRepository
from ..users.service import UserService

logger = logging.getLogger(__name__)


def generate_otp(digits: int = OTP_DIGITS) -> str:
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


class OtpService:
    """One-time passcodes for signup verification and password reset.

    Codes are stored hashed under ``otp:{email}`` with a TTL and deleted on
    first successful verification.
    """

    def __init__(self, store: EphemeralStore, users: UserRepository, user_service: UserService, mailer: Mailer):
        self._store = store
        self._users = users
        self._user_service = user_service
        self._mailer = mailer

    def _issue(self, email: str, *, ttl: int, subject: str, body_template: str) -> None:
        otp = generate_otp()
        self._store.setex(OTP_KEY.format(email=email), ttl, generate_password_hash(otp))
        self._mailer.send(to=email, subject=subject, body=body_template.format(otp=otp))
        logger.info("OTP issued for %s (ttl=%ss)", email, ttl)

    def send_otp_first_time(self, email: str) -> None:
        email = require_non_empty(email, "Email")
        if self._users.get_by_email(email):
            raise ValidationError("User already exists!")
        self._issue(
            email,
            ttl=OTP_SIGNUP_TTL_SECONDS,
            subject="OTP Verification",
            body_template="Your OTP for Email Verification is: {otp}\nUse this to proceed.",
        )

    def send_otp(self, email: str) -> None:
        email = require_non_empty(email, "Email")
        if not self._users.get_by_email(email):
            raise NotFoundError("Email not found")
        self._issue(
            email,
            ttl=OTP_RESET_TTL_SECONDS,
            subject="OTP Verification",
            body_template="Your OTP is: {otp}",
        )

    def verify_otp(self, email: str, otp: str) -> None:
        """Consume the code and leave a short-lived marker that unlocks a password reset."""
        key = OTP_KEY.format(email=email)
        stored_hash = self._store.get(key)
        if not stored_hash or not otp or not check_password_hash(stored_hash, str(otp)):
            raise ValidationError("Invalid or expired OTP")
        self._store.delete(key)
        self._store.setex(OTP_VERIFIED_KEY.format(email=email), OTP_VERIFIED_TTL_SECONDS, "1")

    def reset_password(self, email: str, new_password: str) -> None:
        marker = OTP_VERIFIED_KEY.format(email=email)
        if not email or not self._store.get(marker):
            raise ValidationError("OTP verification required")
        self._user_service.reset_password(email, new_password)
        self._store.delete(marker)
