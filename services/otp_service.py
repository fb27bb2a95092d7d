"""
OTP issuance and verification.

Lifecycle of a code: issued (code + expiry) -> verified and consumed,
expired, or superseded by a newer code for the same email/purpose.
Issuance commits the row before mailing, so a mail failure leaves the
code in place and is reported to the caller.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import User
from models.otp import OtpRecord, PasswordReset, PURPOSES, PURPOSE_EMAIL_VERIFICATION
from utils.errors import MissingField, InvalidEmailFormat, UserNotFound, OtpNotFound, OtpExpired, OtpInvalid
from utils.mail import send_password_reset_otp_email, send_verification_otp_email
from utils.otp_helper import OtpStatus, generate_otp, otp_expires_at, check_otp, utcnow
from utils.validators import normalize_email, validate_email

_STATUS_ERRORS = {
    OtpStatus.NOT_FOUND: OtpNotFound,
    OtpStatus.EXPIRED: OtpExpired,
    OtpStatus.INVALID: OtpInvalid,
}


def raise_for_status(status):
    """Turn a non-VALID status into its specific error."""
    if status is not OtpStatus.VALID:
        raise _STATUS_ERRORS[status]()


def issue_otp(email, purpose, now=None):
    """Append a new code for (email, purpose) and return it. Older codes are superseded."""
    if purpose not in PURPOSES:
        raise ValueError(f"Unknown OTP purpose: {purpose}")
    now = now or utcnow()
    OtpRecord.purge_expired(purpose, now)
    otp = generate_otp()
    db.session.add(OtpRecord(
        email=email,
        code=otp,
        purpose=purpose,
        created_at=now,
        expires_at=otp_expires_at(now),
    ))
    db.session.commit()
    current_app.logger.info(f"Issued {purpose} OTP for {email}")
    return otp


def verify_otp(email, submitted_code, purpose, now=None):
    """Check a code against the newest record for (email, purpose)."""
    record = OtpRecord.latest(normalize_email(email), purpose)
    return check_otp(record, (submitted_code or '').strip(), now)


def consume_otps(email, purpose=None):
    """Delete the codes for email (all purposes unless one is given); caller commits."""
    query = OtpRecord.query.filter_by(email=email)
    if purpose:
        query = query.filter_by(purpose=purpose)
    return query.delete(synchronize_session=False)


def issue_reset_otp(email, now=None):
    """
    Store (or overwrite) the single live reset code for an existing account
    and mail it. Returns the code.
    """
    email = normalize_email(email)
    if not email:
        raise MissingField("Email is required.")

    now = now or utcnow()
    PasswordReset.purge_expired(now)
    if not User.query.filter_by(email=email).first():
        raise UserNotFound("No account found with that email.")

    otp = generate_otp()
    expires_at = otp_expires_at(now)
    PasswordReset.upsert(email, otp, expires_at)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request inserted this email's row first; overwrite it.
        db.session.rollback()
        PasswordReset.upsert(email, otp, expires_at)
        db.session.commit()
    current_app.logger.info(f"Issued password reset OTP for {email}")

    send_password_reset_otp_email(email, otp)
    return otp


def verify_reset_code(email, submitted_code, now=None):
    """Check a code against the single-slot reset record, expiry included."""
    record = PasswordReset.get(normalize_email(email))
    return check_otp(record, (submitted_code or '').strip(), now)


def send_email_verification(email, now=None):
    email = normalize_email(email)
    if not email:
        raise MissingField("Email is required.")
    if not validate_email(email):
        raise InvalidEmailFormat()
    otp = issue_otp(email, PURPOSE_EMAIL_VERIFICATION, now)
    send_verification_otp_email(email, otp)
    return otp


def confirm_email_verification(email, submitted_code, now=None):
    """Verify an email_verification code and consume it on success."""
    email = normalize_email(email)
    submitted_code = (submitted_code or '').strip()
    if not email or not submitted_code:
        raise MissingField("Email and OTP are required.")
    raise_for_status(verify_otp(email, submitted_code, PURPOSE_EMAIL_VERIFICATION, now))
    consume_otps(email, PURPOSE_EMAIL_VERIFICATION)
    db.session.commit()
    current_app.logger.info(f"Email verified for {email}")
