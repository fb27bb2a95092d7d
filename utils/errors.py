"""
Error taxonomy for the auth endpoints.

Domain errors are reported as HTTP 200 with {"status": "error"}; callers
branch on the status field. Only database failures use a 500.
"""


class AuthError(Exception):
    """Base class; subclasses set a default message and status code."""
    message = "Something went wrong. Please try again later."
    status_code = 200

    def __init__(self, message=None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self):
        return {"status": "error", "message": self.message}


class MissingField(AuthError):
    message = "All fields are required."


class InvalidEmailFormat(AuthError):
    message = "Please provide a valid email address."


class ValidationFailed(AuthError):
    message = "Invalid input."


class OtpNotFound(AuthError):
    message = "No OTP found for this email. Please request a new OTP."


class OtpExpired(AuthError):
    message = "OTP has expired. Please request a new OTP."


class OtpInvalid(AuthError):
    message = "Invalid OTP. Please check and try again."


class InvalidOrExpiredOtp(AuthError):
    message = "Invalid or expired OTP."


class UserNotFound(AuthError):
    message = "Password reset failed. User may not exist."


class DuplicateEmail(AuthError):
    message = "An account with this email already exists."


class DuplicateNic(AuthError):
    message = "An account with this NIC already exists."


class RegistrationFailed(AuthError):
    message = "Registration failed."


class InvalidCredentials(AuthError):
    message = "Invalid email or password."


class AccountDisabled(AuthError):
    message = "Your account has been disabled. Please contact support."


class MailTransportError(AuthError):
    message = "Unable to send verification code. Please try again later."


class DatabaseError(AuthError):
    message = "A database error occurred. Please try again later."
    status_code = 500


class Unauthorized(AuthError):
    message = "Unauthorized"
    status_code = 401
