from datetime import timedelta

import pytest

from models import db
from models.otp import OtpRecord, PURPOSE_EMAIL_VERIFICATION, PURPOSE_REGISTRATION
from models.user import User
from services import account_service, otp_service
from utils.auth_utils import verify_password
from utils.errors import (
    DuplicateEmail, DuplicateNic, InvalidEmailFormat, MailTransportError, MissingField,
    OtpExpired, OtpInvalid, OtpNotFound, RegistrationFailed,
)
from utils.mail import mail
from utils.otp_helper import utcnow
from utils.validators import PASSWORD_RULE_MSG


def registration_payload(**overrides):
    data = {
        "email": "alice@example.com",
        "fullName": "Alice Smith",
        "phone": "0771234567",
        "address": "12 Lake Road",
        "password": "Secret@123",
        "nic": "200012345678",
    }
    data.update(overrides)
    return data


def post(client, path, payload):
    response = client.post(path, json=payload)
    assert response.status_code == 200
    return response.get_json()


def test_register_mails_a_registration_code(client, fixed_otp):
    fixed_otp("123456")
    with mail.record_messages() as outbox:
        body = post(client, "/auth/register", registration_payload(email="Alice@Example.com"))

    assert body == {"status": "success", "message": "OTP sent"}
    assert len(outbox) == 1
    assert outbox[0].recipients == ["alice@example.com"]
    assert "123456" in outbox[0].body
    assert "Alice Smith" in outbox[0].html

    row = OtpRecord.latest("alice@example.com", PURPOSE_REGISTRATION)
    assert row.code == "123456"
    assert row.expires_at - row.created_at == timedelta(minutes=10)


def test_register_without_body(client):
    body = post(client, "/auth/register", None)
    assert body == {"status": "error", "message": "No data received."}


@pytest.mark.parametrize("overrides,message", [
    ({"phone": ""}, MissingField.message),
    ({"fullName": "Alice 2"}, "Full name can only contain letters and spaces."),
    ({"phone": "12345"}, "Phone number must be exactly 10 digits."),
    ({"address": "abc"}, "Address must be at least 4 characters."),
    ({"nic": "12345"}, "NIC must be 12 digits or 9 digits followed by V."),
    ({"password": "password"}, PASSWORD_RULE_MSG),
    ({"userType": "admin"}, "User type must be customer or provider."),
])
def test_register_rejects_bad_fields(client, overrides, message):
    with mail.record_messages() as outbox:
        body = post(client, "/auth/register", registration_payload(**overrides))

    assert body == {"status": "error", "message": message}
    assert outbox == []
    assert OtpRecord.query.count() == 0


def test_register_rejects_malformed_email(app):
    with pytest.raises(InvalidEmailFormat):
        account_service.request_registration(registration_payload(email="alice@example"))


def test_register_rejects_taken_email_and_nic(client, make_user):
    make_user(email="alice@example.com")
    make_user(email="carol@example.com", nic="200012345678")

    body = post(client, "/auth/register", registration_payload())
    assert body["message"] == DuplicateEmail.message

    body = post(client, "/auth/register", registration_payload(email="dave@example.com"))
    assert body["message"] == DuplicateNic.message


def test_registration_completes_once(client, fixed_otp):
    fixed_otp("123456")
    post(client, "/auth/register", registration_payload())

    body = post(client, "/auth/verify-otp", registration_payload(otp="123456"))
    assert body == {"status": "success", "message": "Registration successful!"}

    user = User.query.filter_by(email="alice@example.com").one()
    assert user.user_type == "customer"
    assert user.nic == "200012345678"
    assert user.password_hash != "Secret@123"
    assert verify_password(user.password_hash, "Secret@123")
    assert OtpRecord.query.filter_by(email="alice@example.com").count() == 0

    body = post(client, "/auth/verify-otp", registration_payload(otp="123456"))
    assert body["status"] == "error"
    assert body["message"] == DuplicateEmail.message
    assert User.query.count() == 1


def test_provider_registration_without_nic(client, fixed_otp):
    fixed_otp("654321")
    payload = registration_payload(userType="provider", nic="")
    post(client, "/auth/register", payload)

    body = post(client, "/auth/verify-otp", dict(payload, otp="654321"))
    assert body["status"] == "success"

    user = User.query.filter_by(email="alice@example.com").one()
    assert user.user_type == "provider"
    assert user.nic is None


def test_wrong_code_reports_mismatch_and_creates_nothing(client, fixed_otp):
    fixed_otp("123456")
    post(client, "/auth/register", registration_payload())

    body = post(client, "/auth/verify-otp", registration_payload(otp="999999"))
    assert body == {"status": "error", "message": OtpInvalid.message}
    assert body["message"] != MissingField.message
    assert User.query.count() == 0


def test_finalize_without_issued_code(client):
    body = post(client, "/auth/verify-otp", registration_payload(otp="123456"))
    assert body["message"] == OtpNotFound.message


def test_finalize_with_missing_field(client):
    payload = registration_payload(otp="123456")
    del payload["address"]
    body = post(client, "/auth/verify-otp", payload)
    assert body["message"] == MissingField.message


def test_finalize_with_expired_code(client, fixed_otp):
    fixed_otp("123456")
    post(client, "/auth/register", registration_payload())
    row = OtpRecord.latest("alice@example.com", PURPOSE_REGISTRATION)
    row.expires_at = utcnow() - timedelta(seconds=1)
    db.session.commit()

    body = post(client, "/auth/verify-otp", registration_payload(otp="123456"))
    assert body["message"] == OtpExpired.message
    assert User.query.count() == 0


def test_expiry_is_checked_against_issue_time(app, fixed_otp):
    fixed_otp("123456")
    issued = utcnow()
    otp_service.issue_otp("alice@example.com", PURPOSE_REGISTRATION, now=issued)

    with pytest.raises(OtpExpired):
        account_service.finalize_registration(
            registration_payload(otp="123456"), now=issued + timedelta(minutes=11)
        )

    user = account_service.finalize_registration(
        registration_payload(otp="123456"), now=issued + timedelta(minutes=9)
    )
    assert user.user_id is not None


def test_newest_code_supersedes_older_ones(client, fixed_otp):
    fixed_otp("111111", "222222")
    post(client, "/auth/register", registration_payload())
    post(client, "/auth/register", registration_payload())
    assert OtpRecord.query.filter_by(email="alice@example.com").count() == 2

    body = post(client, "/auth/verify-otp", registration_payload(otp="111111"))
    assert body["message"] == OtpInvalid.message

    body = post(client, "/auth/verify-otp", registration_payload(otp="222222"))
    assert body["status"] == "success"


def test_codes_for_other_purposes_do_not_count(client, fixed_otp):
    fixed_otp("123456")
    post(client, "/auth/send-verification-otp", {"email": "alice@example.com"})

    body = post(client, "/auth/verify-otp", registration_payload(otp="123456"))
    assert body["message"] == OtpNotFound.message


def test_mail_failure_is_reported_but_code_is_kept(client, fixed_otp, failing_mail):
    fixed_otp("123456")
    body = post(client, "/auth/register", registration_payload())

    assert body == {"status": "error", "message": MailTransportError.message}
    assert OtpRecord.latest("alice@example.com", PURPOSE_REGISTRATION).code == "123456"


def test_issuing_purges_expired_codes_of_that_purpose(app):
    start = utcnow() - timedelta(minutes=30)
    otp_service.issue_otp("bob@example.com", PURPOSE_REGISTRATION, now=start)
    otp_service.issue_otp("bob@example.com", PURPOSE_EMAIL_VERIFICATION, now=start)

    otp_service.issue_otp("alice@example.com", PURPOSE_REGISTRATION)

    assert OtpRecord.latest("bob@example.com", PURPOSE_REGISTRATION) is None
    assert OtpRecord.latest("bob@example.com", PURPOSE_EMAIL_VERIFICATION) is not None
    assert OtpRecord.latest("alice@example.com", PURPOSE_REGISTRATION) is not None


def test_insert_losing_a_race_reports_registration_failed(app, make_user, fixed_otp, monkeypatch):
    fixed_otp("123456")
    otp_service.issue_otp("alice@example.com", PURPOSE_REGISTRATION)
    # The uniqueness check passed before a concurrent request created the account
    monkeypatch.setattr(account_service, "_ensure_unique", lambda email, nic: None)
    make_user(email="alice@example.com")

    with pytest.raises(RegistrationFailed):
        account_service.finalize_registration(registration_payload(otp="123456"))

    assert User.query.filter_by(email="alice@example.com").count() == 1
    assert OtpRecord.latest("alice@example.com", PURPOSE_REGISTRATION).code == "123456"
