"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

SESSION_TTL_SECONDS = 300
OTP_SIGNUP_TTL_SECONDS = 600
OTP_RESET_TTL_SECONDS = 300
OTP_DIGITS = 4
OTP_VERIFIED_TTL_SECONDS = 600

DEFAULT_ACCESS_TOKEN_MINUTES = 15
DEFAULT_REFRESH_TOKEN_DAYS = 7

# Ephemeral store key layout (shared with existing mobile clients).
ATTENDANCE_KEY = "attendance:{subject_id}"
ENROLLMENT_REQUESTS_KEY = "enrollment_requests:{subject_id}"
FACULTY_REQUEST_KEY = "faculty_request:{email}"
OTP_KEY = "otp:{email}"
OTP_VERIFIED_KEY = "otp_verified:{email}"
