"""
Gunicorn config: bind to 0.0.0.0 and PORT for Railway/Render.
Run: gunicorn -c gunicorn_config.py app:app
"""
import os

bind = "0.0.0.0:{}".format(os.environ.get("PORT", "8080"))
workers = int(os.environ.get("WEB_CONCURRENCY", "2"))
threads = 2
# OTP mail is sent inside the request; leave room for a slow SMTP server
timeout = 60
accesslog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
