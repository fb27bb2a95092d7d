"""
Authentication utility functions: password hashing and session tokens
"""
import time

import jwt
from jwt.exceptions import PyJWTError
from werkzeug.security import generate_password_hash, check_password_hash
from flask import current_app


def hash_password(password):
    """Salted adaptive hash; method (and cost) comes from PASSWORD_HASH_METHOD."""
    return generate_password_hash(password, method=current_app.config.get('PASSWORD_HASH_METHOD', 'scrypt'))


def verify_password(password_hash, password):
    """Verify password against hash"""
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def issue_session_token(user, now=None):
    """
    Build the HS256 session token for a logged-in user.
    Claims: user_id, email, user_type, iat, exp.
    """
    issued_at = int(now if now is not None else time.time())
    payload = {
        'user_id': user.user_id,
        'email': user.email,
        'user_type': user.user_type,
        'iat': issued_at,
        'exp': issued_at + current_app.config['JWT_EXPIRY_SECONDS'],
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET_KEY'],
        algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256'),
    )


def decode_session_token(token):
    """Return the claims dict of a valid, unexpired token, else None."""
    if not token or not isinstance(token, str):
        return None
    try:
        return jwt.decode(
            token,
            current_app.config['JWT_SECRET_KEY'],
            algorithms=[current_app.config.get('JWT_ALGORITHM', 'HS256')],
        )
    except PyJWTError as e:
        current_app.logger.info(f"Rejected session token: {str(e)}")
        return None
