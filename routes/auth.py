"""
Authentication routes: registration OTP, registration, password reset via OTP,
login/logout with the session cookie, email verification.

Every endpoint answers JSON {"status": "success"|"error", "message": ...}.
Domain errors are raised as AuthError and rendered by the app-level handler.
"""
from flask import request, Blueprint, jsonify, current_app
from flask_login import login_required, current_user

from services import account_service, otp_service
from utils.auth_utils import issue_session_token
from utils.errors import MissingField, OtpNotFound, OtpExpired, OtpInvalid
from utils.otp_helper import OtpStatus
from utils.validators import normalize_email

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

REGISTRATION_OTP_SENT_MSG = "OTP sent"
RESET_OTP_SENT_MSG = "OTP sent to your email."
OTP_VERIFIED_MSG = "OTP verified."
REGISTRATION_SUCCESS_MSG = "Registration successful!"
PASSWORD_CHANGED_MSG = "Password changed successfully."
LOGIN_SUCCESS_MSG = "Login successful."
LOGOUT_MSG = "Logged out"
VERIFICATION_SENT_MSG = "Verification code sent. Check your email."
EMAIL_VERIFIED_MSG = "Email verified successfully."

# verify-reset-otp keeps the three failure modes apart
RESET_VERIFY_ERRORS = {
    OtpStatus.NOT_FOUND: (OtpNotFound, None),
    OtpStatus.EXPIRED: (OtpExpired, None),
    OtpStatus.INVALID: (OtpInvalid, "Incorrect OTP."),
}


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text(data, key):
    value = data.get(key)
    return value if isinstance(value, str) else ''


def _success(message, **extra):
    return jsonify({"status": "success", "message": message, **extra})


@auth_bp.route('/register', methods=['POST'])
def register():
    """Validate the sign-up form and mail a registration OTP."""
    data = _json_body()
    if not data:
        raise MissingField("No data received.")
    account_service.request_registration(data)
    return _success(REGISTRATION_OTP_SENT_MSG)


@auth_bp.route('/verify-otp', methods=['POST'])
def verify_otp():
    """Finish registration with the mailed OTP."""
    data = _json_body()
    if not data:
        raise MissingField("No data received.")
    account_service.finalize_registration(data)
    return _success(REGISTRATION_SUCCESS_MSG)


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    data = _json_body()
    otp_service.issue_reset_otp(_text(data, 'email'))
    return _success(RESET_OTP_SENT_MSG)


@auth_bp.route('/verify-reset-otp', methods=['POST'])
def verify_reset_otp():
    data = _json_body()
    email = normalize_email(_text(data, 'email'))
    code = _text(data, 'code').strip()
    if not email or not code:
        raise MissingField("Email and OTP are required.")

    status = otp_service.verify_reset_code(email, code)
    if status is not OtpStatus.VALID:
        error_cls, message = RESET_VERIFY_ERRORS[status]
        raise error_cls(message)
    return _success(OTP_VERIFIED_MSG)


@auth_bp.route('/reset-password', methods=['POST'])
def reset_password():
    data = _json_body()
    account_service.reset_password(_text(data, 'email'), _text(data, 'otp'), _text(data, 'newPassword'))
    return _success(PASSWORD_CHANGED_MSG)


@auth_bp.route('/login', methods=['POST'])
def login():
    """Check credentials and set the session cookie."""
    data = _json_body()
    user = account_service.authenticate(_text(data, 'email'), _text(data, 'password'))

    token = issue_session_token(user)
    response = _success(LOGIN_SUCCESS_MSG, **user.claims(), user_details=user.details())
    response.set_cookie(
        current_app.config['SESSION_TOKEN_COOKIE'],
        token,
        max_age=current_app.config['JWT_EXPIRY_SECONDS'],
        path='/',
        secure=current_app.config.get('SESSION_COOKIE_SECURE', False),
        httponly=True,
        samesite=current_app.config.get('SESSION_COOKIE_SAMESITE', 'Lax'),
    )
    current_app.logger.info(f"Login for {user.email}")
    return response


@auth_bp.route('/logout', methods=['POST'])
def logout():
    response = _success(LOGOUT_MSG)
    response.delete_cookie(
        current_app.config['SESSION_TOKEN_COOKIE'],
        path='/',
        secure=current_app.config.get('SESSION_COOKIE_SECURE', False),
        httponly=True,
        samesite=current_app.config.get('SESSION_COOKIE_SAMESITE', 'Lax'),
    )
    return response


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    """Safe fields of the user behind the session cookie."""
    return jsonify({
        "status": "success",
        "user_id": current_user.user_id,
        "email": current_user.email,
        "user_type": current_user.user_type,
        "name": current_user.name,
    })


# ---------- Email verification (OTP) ----------

@auth_bp.route('/send-verification-otp', methods=['POST'])
def send_verification_otp():
    data = _json_body()
    otp_service.send_email_verification(_text(data, 'email'))
    return _success(VERIFICATION_SENT_MSG)


@auth_bp.route('/verify-email-otp', methods=['POST'])
def verify_email_otp():
    data = _json_body()
    otp_service.confirm_email_verification(
        _text(data, 'email'),
        _text(data, 'otp'),
    )
    return _success(EMAIL_VERIFIED_MSG)
