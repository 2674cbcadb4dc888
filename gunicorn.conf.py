"""Gunicorn settings for ``gunicorn main:app``."""

import os

bind = f"0.0.0.0:{os.environ.get('PORT', '3000')}"
worker_class = "gthread"
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))
threads = int(os.environ.get("GUNICORN_THREADS", "8"))
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
