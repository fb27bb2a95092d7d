"""
Configuration for the home services auth API.
Production (Railway/Render): uses DATABASE_URL only; fails if missing.
Local: DATABASE_URL or DB_* fallback.
"""
import os
from urllib.parse import quote_plus


def _is_production():
    """True when running on Railway, Render, or explicit production."""
    return (
        os.environ.get("RENDER") == "true"
        or os.environ.get("RAILWAY_ENVIRONMENT") is not None
        or os.environ.get("FLASK_ENV") == "production"
    )


def _env_flag(name, default="false"):
    return os.environ.get(name, default).lower() in ("true", "on", "1")


def _normalize_database_url(url):
    """Convert postgres:// to postgresql+psycopg2:// for SQLAlchemy/psycopg2."""
    if not url:
        return url
    url = url.strip()
    if url.startswith("postgres://"):
        return "postgresql+psycopg2://" + url[11:]
    if url.startswith("postgresql://") and "psycopg2" not in url:
        return "postgresql+psycopg2://" + url[13:]
    return url


def _get_database_uri():
    """Database URI: production = DATABASE_URL only; local = DATABASE_URL or DB_*."""
    url = os.environ.get("DATABASE_URL")
    if _is_production():
        if not url or not url.strip():
            raise RuntimeError(
                "DATABASE_URL is required in production (Railway/Render). "
                "Set it in your service environment variables."
            )
        return _normalize_database_url(url)

    if url and url.strip():
        return _normalize_database_url(url)

    host = os.environ.get("DB_HOST", "localhost")
    port = os.environ.get("DB_PORT", "5432")
    name = os.environ.get("DB_NAME", "homeservices")
    user = os.environ.get("DB_USER", "homeservices")
    password = os.environ.get("DB_PASSWORD", "")
    if password:
        password = quote_plus(password)
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"


def _cors_origins():
    raw = os.environ.get("CORS_ORIGINS", "http://localhost:5173")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key-change-in-production"

    SQLALCHEMY_DATABASE_URI = _get_database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT") or 587)
    MAIL_USE_TLS = _env_flag("MAIL_USE_TLS", "true")
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER") or os.environ.get("MAIL_USERNAME") or "noreply@homeservices.local"

    CORS_ORIGINS = _cors_origins()

    # OTP codes (registration, password reset, email verification)
    OTP_EXPIRY_MINUTES = int(os.environ.get("OTP_EXPIRY_MINUTES") or 10)

    # Adaptive hash understood by werkzeug.security, e.g. "scrypt" or "pbkdf2:sha256:600000"
    PASSWORD_HASH_METHOD = os.environ.get("PASSWORD_HASH_METHOD") or "scrypt"

    # Session token (JWT in the HTTP-only "token" cookie)
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY") or SECRET_KEY
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRY_SECONDS = int(os.environ.get("JWT_EXPIRY_SECONDS") or 60 * 60)
    SESSION_TOKEN_COOKIE = "token"
    SESSION_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE")
    SESSION_COOKIE_SAMESITE = "Lax"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
