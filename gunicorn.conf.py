"""Gunicorn settings for the SDG portal API (uvicorn workers)."""
import multiprocessing
import os

wsgi_app = "sdg_portal.main:app"
chdir = "backend"
bind = os.getenv("BIND", "0.0.0.0:8000")
worker_class = "uvicorn.workers.UvicornWorker"

# Each worker owns a DB pool of DB_POOL_SIZE + DB_MAX_OVERFLOW connections and
# a CSV import fans out up to IMPORT_SUBMIT_CONCURRENCY of them at once.
workers = int(os.getenv("WEB_CONCURRENCY", min(multiprocessing.cpu_count() * 2 + 1, 8)))

# Large uploads create one row per line before responding.
timeout = int(os.getenv("GUNICORN_TIMEOUT", 120))
graceful_timeout = 30
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
