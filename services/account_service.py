"""
Account workflows: registration request/finalization, password reset, login.

Each function validates its input, talks to the database and either
returns a result or raises an AuthError subclass for the route to report.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import User
from models.otp import PasswordReset, PURPOSE_REGISTRATION
from services.otp_service import issue_otp, verify_otp, verify_reset_code, consume_otps, raise_for_status
from utils.auth_utils import hash_password, verify_password
from utils.errors import (
    MissingField, InvalidEmailFormat, ValidationFailed, DuplicateEmail, DuplicateNic,
    RegistrationFailed, InvalidOrExpiredOtp, UserNotFound, InvalidCredentials, AccountDisabled,
)
from utils.mail import send_registration_otp_email
from utils.otp_helper import OtpStatus
from utils.validators import (
    normalize_email, validate_email, validate_name, validate_phone, validate_address,
    validate_nic, validate_password,
)

# Self-registration never creates admins; those come from create_admin.py
SELF_REGISTER_TYPES = ('customer', 'provider')


def _field(data, key):
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ''


def _registration_fields(data):
    return {
        'email': normalize_email(data.get('email') if isinstance(data.get('email'), str) else ''),
        'full_name': _field(data, 'fullName'),
        'phone': _field(data, 'phone'),
        'address': _field(data, 'address'),
        'password': data.get('password') if isinstance(data.get('password'), str) else '',
        'nic': _field(data, 'nic'),
        'user_type': _field(data, 'userType') or 'customer',
    }


def _ensure_unique(email, nic):
    if User.query.filter_by(email=email).first():
        raise DuplicateEmail()
    if nic and User.query.filter_by(nic=nic).first():
        raise DuplicateNic()


def request_registration(data, now=None):
    """Validate a sign-up form and mail a registration OTP. Returns the code."""
    fields = _registration_fields(data)
    email = fields['email']

    if not all((email, fields['full_name'], fields['phone'], fields['address'], fields['password'])):
        raise MissingField()
    if not validate_name(fields['full_name']):
        raise ValidationFailed('Full name can only contain letters and spaces.')
    if not validate_email(email):
        raise InvalidEmailFormat(
            'Enter a valid email address (only letters, numbers, periods, underscores before @, and a valid domain)'
        )
    if fields['nic'] and not validate_nic(fields['nic']):
        raise ValidationFailed('NIC must be 12 digits or 9 digits followed by V.')
    if not validate_phone(fields['phone']):
        raise ValidationFailed('Phone number must be exactly 10 digits.')
    if not validate_address(fields['address']):
        raise ValidationFailed('Address must be at least 4 characters.')
    is_valid, pwd_error = validate_password(fields['password'])
    if not is_valid:
        raise ValidationFailed(pwd_error)
    if fields['user_type'] not in SELF_REGISTER_TYPES:
        raise ValidationFailed('User type must be customer or provider.')

    _ensure_unique(email, fields['nic'])

    otp = issue_otp(email, PURPOSE_REGISTRATION, now)
    send_registration_otp_email(email, fields['full_name'], otp)
    return otp


def finalize_registration(data, now=None):
    """Re-verify the registration OTP, create the user and drop the email's codes."""
    fields = _registration_fields(data)
    otp = _field(data, 'otp')
    email = fields['email']

    if not all((email, fields['full_name'], fields['phone'], fields['address'], fields['password'], otp)):
        raise MissingField()
    if fields['user_type'] not in SELF_REGISTER_TYPES:
        raise ValidationFailed('User type must be customer or provider.')

    _ensure_unique(email, fields['nic'])
    raise_for_status(verify_otp(email, otp, PURPOSE_REGISTRATION, now))

    new_user = User(
        name=fields['full_name'],
        email=email,
        password_hash=hash_password(fields['password']),
        phone_number=fields['phone'],
        address=fields['address'],
        nic=fields['nic'] or None,
        user_type=fields['user_type'],
    )
    db.session.add(new_user)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.warning(f"Registration insert rejected for {email}: {str(e.orig)}")
        raise RegistrationFailed('Registration failed. An account with this email or NIC already exists.')
    if new_user.user_id is None:
        raise RegistrationFailed()

    consume_otps(email)
    db.session.commit()
    current_app.logger.info(f"Registered {new_user.user_type} account {email}")
    return new_user


def reset_password(email, otp, new_password, now=None):
    """Replace the password of the account behind a live reset code."""
    email = normalize_email(email)
    otp = (otp or '').strip()

    if not email or not otp or not (new_password or '').strip():
        raise MissingField()
    if not validate_email(email):
        raise InvalidEmailFormat()

    if verify_reset_code(email, otp, now) is not OtpStatus.VALID:
        raise InvalidOrExpiredOtp()

    updated = User.query.filter_by(email=email).update(
        {User.password_hash: hash_password(new_password)}, synchronize_session=False
    )
    if updated == 0:
        db.session.rollback()
        raise UserNotFound()

    PasswordReset.remove(email)
    db.session.commit()
    current_app.logger.info(f"Password reset for {email}")


def authenticate(email, password):
    """
    Return the user for valid credentials.

    Unknown email and wrong password share one error; the disabled check
    runs only after the password is accepted.
    """
    email = normalize_email(email)
    if not email or not password:
        raise MissingField('Email and password are required.')

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(user.password_hash, password):
        raise InvalidCredentials()
    if user.disable_status:
        raise AccountDisabled()
    return user
