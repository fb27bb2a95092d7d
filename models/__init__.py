"""
Models package for the home services auth API
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Import all models here to ensure they're registered
from models.user import User
from models.otp import OtpRecord, PasswordReset

__all__ = [
    'db',
    'User',
    'OtpRecord',
    'PasswordReset',
]
