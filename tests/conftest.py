import os

# config.Config and the module-level app in app.py read this at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest

from app import create_app
from config import Config
from models import db
from models.user import User
from services import otp_service
from utils.auth_utils import hash_password


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret-key-0123456789abcdef"
    JWT_SECRET_KEY = "testing-jwt-secret-0123456789abcdef"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    MAIL_SERVER = "localhost"
    MAIL_USERNAME = "noreply@homeservices.test"
    MAIL_DEFAULT_SENDER = "noreply@homeservices.test"
    MAIL_SUPPRESS_SEND = True
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    CORS_ORIGINS = ["http://localhost:5173"]


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(email="alice@example.com", password="Secret@123", name="Alice Smith",
                   user_type="customer", disabled=False, nic=None):
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            phone_number="0771234567",
            address="12 Lake Road",
            nic=nic,
            user_type=user_type,
            disable_status=disabled,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def fixed_otp(monkeypatch):
    """Queue the codes the next issuances will hand out."""
    codes = []

    def _queue(*values):
        codes.extend(values)
        monkeypatch.setattr(otp_service, "generate_otp", lambda: codes.pop(0))
    return _queue


@pytest.fixture
def failing_mail(monkeypatch):
    from smtplib import SMTPException
    from utils.mail import mail

    def boom(message):
        raise SMTPException("connection refused")
    monkeypatch.setattr(mail, "send", boom)
