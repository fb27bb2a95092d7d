"""
User model definition
"""
from models import db
from datetime import datetime
from flask_login import UserMixin

USER_TYPES = ('customer', 'provider', 'admin')


class User(UserMixin, db.Model):
    """Customer, provider and admin accounts"""
    __tablename__ = 'users'

    user_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column('password', db.String(255), nullable=False)
    phone_number = db.Column(db.String(15))
    address = db.Column(db.Text)
    nic = db.Column('NIC', db.String(15), unique=True, nullable=True)
    user_type = db.Column(db.String(20), nullable=False, default='customer')
    disable_status = db.Column(db.Boolean, nullable=False, default=False)  # managed by admin tooling
    registered_date = db.Column(db.DateTime, default=datetime.utcnow)

    def get_id(self):
        return str(self.user_id)

    @property
    def is_active(self):
        return not self.disable_status

    def claims(self):
        """Identity handed to session issuance."""
        return {
            'user_id': self.user_id,
            'name': self.name,
            'email': self.email,
            'user_type': self.user_type,
        }

    def details(self):
        """Profile block returned by login, shaped per role."""
        if self.user_type == 'admin':
            return {'fullName': self.name, 'email': self.email}
        if self.user_type in ('customer', 'provider'):
            return {
                'fullName': self.name,
                'address': self.address,
                'phone': self.phone_number,
                'email': self.email,
                'joined': self.registered_date.strftime('%Y-%m-%d') if self.registered_date else '',
                'nic': self.nic or '',
            }
        return None

    def __repr__(self):
        return f'<User {self.email}>'
