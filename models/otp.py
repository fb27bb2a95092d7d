"""
One-time code models (PostgreSQL-compatible).

OtpRecord is append-only and purpose-tagged: the newest row for an
(email, purpose) pair is the only one that counts, older rows are ignored.
PasswordReset holds at most one live code per email; a new request
overwrites the previous code and expiry.
"""
from models import db
from datetime import datetime

PURPOSE_REGISTRATION = 'registration'
PURPOSE_PASSWORD_RESET = 'password_reset'
PURPOSE_EMAIL_VERIFICATION = 'email_verification'

PURPOSES = (PURPOSE_REGISTRATION, PURPOSE_PASSWORD_RESET, PURPOSE_EMAIL_VERIFICATION)


class OtpRecord(db.Model):
    __tablename__ = 'otp'
    __table_args__ = (
        db.Index('idx_email_purpose', 'email', 'purpose'),
    )

    otp_id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(100), nullable=False)
    code = db.Column('otp_code', db.String(10), nullable=False)
    purpose = db.Column(db.String(32), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    expires_at = db.Column('expired_at', db.DateTime, nullable=False, index=True)

    @classmethod
    def latest(cls, email, purpose):
        """Most recently issued record for (email, purpose), or None."""
        return (
            cls.query.filter_by(email=email, purpose=purpose)
            .order_by(cls.created_at.desc(), cls.otp_id.desc())
            .first()
        )

    @classmethod
    def purge_expired(cls, purpose, now):
        return cls.query.filter(cls.purpose == purpose, cls.expires_at < now).delete(synchronize_session=False)

    def __repr__(self):
        return f'<OtpRecord {self.email} {self.purpose}>'


class PasswordReset(db.Model):
    __tablename__ = 'password_reset'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(100), unique=True, nullable=False)
    code = db.Column(db.String(100), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)

    @classmethod
    def get(cls, email):
        return cls.query.filter_by(email=email).first()

    @classmethod
    def upsert(cls, email, code, expires_at):
        """Replace the live code for email; caller commits."""
        row = cls.get(email)
        if row:
            row.code = code
            row.expires_at = expires_at
        else:
            row = cls(email=email, code=code, expires_at=expires_at)
            db.session.add(row)
        return row

    @classmethod
    def remove(cls, email):
        return cls.query.filter_by(email=email).delete(synchronize_session=False)

    @classmethod
    def purge_expired(cls, now):
        return cls.query.filter(cls.expires_at < now).delete(synchronize_session=False)

    def __repr__(self):
        return f'<PasswordReset {self.email}>'
