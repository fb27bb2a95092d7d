"""
Routes package for the home services auth API
"""
# Export blueprints for registration in app.py
from routes.auth import auth_bp

__all__ = [
    'auth_bp',
]
