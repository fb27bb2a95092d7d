"""
Input validation helpers shared by the auth routes.
"""
import re

EMAIL_RE = re.compile(r'^[a-zA-Z0-9._]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
NAME_RE = re.compile(r'^[A-Za-z ]+$')
PHONE_RE = re.compile(r'^\d{10}$')
NIC_RE = re.compile(r'^(\d{12}|\d{9}[Vv])$')
PASSWORD_RE = re.compile(r'^(?=.*[A-Za-z])(?=.*\d)(?=.*[@$!%*#?&])[A-Za-z\d@$!%*#?&]{8,}$')

PASSWORD_RULE_MSG = (
    'Password must be at least 8 characters and include at least one letter, '
    'one number, and one special character.'
)


def normalize_email(email):
    return (email or '').strip().lower()


def validate_email(email):
    return bool(email) and EMAIL_RE.fullmatch(email) is not None


def validate_name(name):
    return NAME_RE.fullmatch((name or '').strip()) is not None


def validate_phone(phone):
    return PHONE_RE.fullmatch(phone or '') is not None


def validate_address(address):
    return len((address or '').strip()) >= 4


def validate_nic(nic):
    return NIC_RE.fullmatch(nic or '') is not None


def validate_password(password):
    """Return (is_valid, error_message)."""
    if not password or PASSWORD_RE.fullmatch(password) is None:
        return False, PASSWORD_RULE_MSG
    return True, None
