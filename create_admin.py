"""
Script to create or reset an admin user
Run: python create_admin.py admin@example.com "Admin Name"
     (prompts for the password; re-enables the account if it was disabled)
"""
import sys
import getpass

from app import create_app
from models import db
from models.user import User
from utils.auth_utils import hash_password
from utils.validators import normalize_email, validate_email, validate_password


def create_admin(email, name, password):
    """Create admin user, or reset password of an existing one. Returns the user."""
    email = normalize_email(email)
    admin = User.query.filter_by(email=email).first()

    if admin:
        admin.password_hash = hash_password(password)
        admin.user_type = 'admin'
        admin.disable_status = False
        if name:
            admin.name = name
    else:
        admin = User(
            name=name or email.split('@')[0],
            email=email,
            password_hash=hash_password(password),
            user_type='admin',
            disable_status=False,
        )
        db.session.add(admin)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return admin


def main():
    if len(sys.argv) < 2:
        print("Usage: python create_admin.py <email> [name]")
        return 1

    email = sys.argv[1]
    name = sys.argv[2] if len(sys.argv) >= 3 else ''
    if not validate_email(normalize_email(email)):
        print("[ERROR] Invalid email address.")
        return 1

    password = getpass.getpass("Enter password for admin: ")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        print("Passwords do not match. Aborted.")
        return 1
    is_valid, pwd_error = validate_password(password)
    if not is_valid:
        print(f"[ERROR] {pwd_error}")
        return 1

    app = create_app()
    with app.app_context():
        admin = create_admin(email, name, password)
        print("[SUCCESS] Admin ready.")
        print("  Email:", admin.email)
        print("  Name: ", admin.name)
    return 0


if __name__ == '__main__':
    sys.exit(main())
