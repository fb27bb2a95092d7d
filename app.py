"""
Main Flask application entry point for the home services auth API
"""
import logging
import os

from flask import Flask, jsonify, request, current_app
from flask_cors import CORS
from flask_login import LoginManager
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from models import db
from models.user import User
from utils.auth_utils import decode_session_token
from utils.errors import AuthError, DatabaseError, Unauthorized
from utils.mail import mail

# Initialize login manager (no DB access at import time)
login_manager = LoginManager()


@login_manager.request_loader
def load_user_from_request(req):
    """Resolve the session cookie into a user (runs in request context)."""
    token = req.cookies.get(current_app.config['SESSION_TOKEN_COOKIE'])
    claims = decode_session_token(token)
    if not claims or 'user_id' not in claims:
        return None
    user = db.session.get(User, int(claims['user_id']))
    if not user or user.disable_status:
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    if request.cookies.get(current_app.config['SESSION_TOKEN_COOKIE']):
        error = Unauthorized("Invalid or expired token")
    else:
        error = Unauthorized()
    return jsonify(error.to_dict()), error.status_code


def create_app(config_class=Config):
    """Application factory pattern. DB init runs inside app_context; non-fatal on failure."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO))

    db.init_app(app)
    login_manager.init_app(app)
    mail.init_app(app)
    CORS(
        app,
        origins=app.config['CORS_ORIGINS'],
        supports_credentials=True,
        allow_headers=['Content-Type'],
    )

    @app.errorhandler(AuthError)
    def handle_auth_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        app.logger.error(f"Database error on {request.path}: {str(e)}", exc_info=True)
        error = DatabaseError()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(500)
    def handle_500_error(e):
        return jsonify({"status": "error", "message": "Internal server error. Please try again later."}), 500

    # Create tables only inside app context; do not crash if DB temporarily unavailable
    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            app.logger.warning("Database init skipped (non-fatal): %s", e)

    from routes import auth_bp
    app.register_blueprint(auth_bp)

    return app


# WSGI entry point (Railway/Render): gunicorn app:app
app = create_app()
application = app

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "false").lower() in ("true", "1"))
