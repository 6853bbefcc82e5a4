"""Gunicorn configuration for production deployment."""

import os

# Server socket
bind = os.environ.get('GUNICORN_BIND', '0.0.0.0:8000')

# One process: SQLite takes a single writer, and the mail worker thread
# and the store deadline live in that process. Concurrency comes from threads.
workers = 1
threads = int(os.environ.get('GUNICORN_THREADS', 8))
worker_class = 'gthread'

# Store calls give up after STORE_TIMEOUT_SECONDS, well inside this
timeout = 30
graceful_timeout = 10
keepalive = 5

# Logging
accesslog = '-'
errorlog = '-'
loglevel = os.environ.get('GUNICORN_LOG_LEVEL', 'info')

# Process naming
proc_name = 'laptop_rental'

# The app is built in the worker so the mail thread is not lost across fork
preload_app = False

# Security
limit_request_line = 4094
limit_request_fields = 50
limit_request_field_size = 4094
