"""
Gunicorn configuration for the accountability bot.

Tuned for Railway / Render single-instance containers.
Env vars that override defaults:
  PORT     — TCP port to bind (Railway sets this automatically)
  WORKERS  — number of worker processes (default: 1)

Run with:  gunicorn app.main:app -c gunicorn.conf.py
"""
import os

# Bind to the port Railway/Render injects via $PORT
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# The deadline store, duplicate suppressor and scheduler live in process
# memory. More than one worker means duplicate check-ins and lost writes.
workers = int(os.environ.get("WORKERS", "1"))

# Each worker runs Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Slack retries an event after 3 s, but replies are sent from background
# tasks, so requests themselves stay short.
timeout = 120

# stdout only (Railway / Render capture it automatically).
loglevel = "info"
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

# Graceful restart: let in-flight replies finish before the worker exits.
graceful_timeout = 30
