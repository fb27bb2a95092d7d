"""
Email utility functions
"""
from flask_mail import Mail, Message
from flask import current_app
from markupsafe import escape

from utils.errors import MailTransportError

mail = Mail()

BRAND_NAME = "Home Management System"


def _ensure_mail_configured():
    # Check if mail is properly initialized
    if "mail" not in current_app.extensions:
        raise RuntimeError("Mail extension not initialized. Check app configuration.")

    # Check if mail server is configured
    if not current_app.config.get('MAIL_SERVER'):
        raise RuntimeError("MAIL_SERVER not configured. Please set MAIL_SERVER environment variable.")

    if not current_app.config.get('MAIL_USERNAME'):
        raise RuntimeError("MAIL_USERNAME not configured. Please set MAIL_USERNAME environment variable.")


def send_email(subject, recipients, body, html=None):
    """
    Send an email, reporting any configuration or SMTP failure as MailTransportError.

    Args:
        subject: Email subject
        recipients: List of recipient email addresses
        body: Plain text body
        html: HTML body (optional)
    """
    try:
        _ensure_mail_configured()
        msg = Message(
            subject=subject,
            recipients=recipients,
            body=body,
            html=html,
        )
        mail.send(msg)
    except Exception as e:
        current_app.logger.error(f"SMTP error sending email to {', '.join(recipients)}: {str(e)}", exc_info=True)
        error = MailTransportError()
        if current_app.config.get('DEBUG'):
            error = MailTransportError(f"Mail Error: {str(e)}")
        raise error from e


def send_registration_otp_email(email, full_name, otp):
    minutes = current_app.config.get('OTP_EXPIRY_MINUTES', 10)
    subject = "Your OTP for Registration"
    body = (
        f"Hello {full_name},\n\n"
        f"Thank you for registering. Your verification code is: {otp}. "
        f"It expires in {minutes} minutes. Do not share this code."
    )
    html = _otp_email_html(
        greeting=f"Hello, <strong>{escape(full_name)}</strong>",
        intro="Thank you for registering. Use the code below to verify your email:",
        otp=otp,
        minutes=minutes,
    )
    send_email(subject, [email], body, html)


def send_password_reset_otp_email(email, otp):
    minutes = current_app.config.get('OTP_EXPIRY_MINUTES', 10)
    subject = "Your Password Reset Code"
    body = (
        f"Use the code {otp} to reset your password. "
        f"It expires in {minutes} minutes. If you did not request this, please ignore this email."
    )
    html = _otp_email_html(
        greeting="Hello,",
        intro="Use the code below to reset your password:",
        otp=otp,
        minutes=minutes,
    )
    send_email(subject, [email], body, html)


def send_verification_otp_email(email, otp):
    """Subject: "Verify Your Email Address"."""
    minutes = current_app.config.get('OTP_EXPIRY_MINUTES', 10)
    subject = "Verify Your Email Address"
    body = f"Your verification code is: {otp}. It expires in {minutes} minutes. Do not share this code."
    html = _otp_email_html(
        greeting="Hello,",
        intro="Use the code below to verify your email:",
        otp=otp,
        minutes=minutes,
    )
    send_email(subject, [email], body, html)


def _otp_email_html(greeting, intro, otp, minutes) -> str:
    """Clean HTML template for OTP emails."""
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"><title>{BRAND_NAME}</title></head>
    <body style="font-family: Arial, sans-serif; max-width: 420px; margin: 0 auto; padding: 24px;">
        <h2 style="color: #2a4365;">{BRAND_NAME}</h2>
        <p>{greeting}</p>
        <p>{intro}</p>
        <p style="font-size: 28px; font-weight: bold; letter-spacing: 2px; color: #2a4365;">{otp}</p>
        <p style="color: #555;">This code will expire in {minutes} minutes.</p>
        <hr style="border: none; border-top: 1px solid #eee; margin: 24px 0;">
        <p style="font-size: 12px; color: #999;">If you did not request this, please ignore this email.</p>
    </body>
    </html>
    """
