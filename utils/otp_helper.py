"""
OTP generation and verification.
Codes are opaque zero-padded strings; never parse them as integers.
"""
import enum
import hmac
import secrets
from datetime import datetime, timedelta

from flask import current_app

# OTP length and expiry
OTP_LENGTH = 6
OTP_EXPIRY_MINUTES = 10


class OtpStatus(enum.Enum):
    VALID = 'valid'
    EXPIRED = 'expired'
    INVALID = 'invalid'
    NOT_FOUND = 'not_found'


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every expiry column."""
    return datetime.utcnow()


def generate_otp() -> str:
    """Generate a uniformly random 6-digit numeric OTP, left-zero-padded."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def otp_expires_at(now: datetime = None) -> datetime:
    """Return expiry datetime for a new OTP."""
    minutes = current_app.config.get('OTP_EXPIRY_MINUTES', OTP_EXPIRY_MINUTES)
    return (now or utcnow()) + timedelta(minutes=minutes)


def codes_match(submitted: str, stored: str) -> bool:
    return hmac.compare_digest(str(submitted).encode('utf-8'), str(stored).encode('utf-8'))


def check_otp(record, submitted_code: str, now: datetime = None) -> OtpStatus:
    """
    Classify a submitted code against the authoritative record.

    `record` is anything with `code` and `expires_at` (OtpRecord,
    PasswordReset) or None when nothing was issued.
    """
    if record is None:
        return OtpStatus.NOT_FOUND
    if not codes_match(submitted_code, record.code):
        return OtpStatus.INVALID
    if (now or utcnow()) > record.expires_at:
        return OtpStatus.EXPIRED
    return OtpStatus.VALID
