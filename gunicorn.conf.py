"""
Gunicorn configuration for production deployment of the Skipped Tests Tracker.

Runs a single Uvicorn worker by default: the daily fetch scheduler lives in
the application process and every worker would start its own copy, all
sharing one checkout directory.
"""
import os

# Server Socket
bind = f"{os.getenv('HOST', '0.0.0.0')}:{os.getenv('PORT', '3000')}"
backlog = 2048

# Worker Processes
workers = int(os.getenv('GUNICORN_WORKERS', '1'))
worker_class = 'uvicorn.workers.UvicornWorker'
worker_connections = 1000
timeout = int(os.getenv('GUNICORN_TIMEOUT', '600'))  # A fetch-now request clones or fetches the repository
graceful_timeout = 30
keepalive = 5

# Process Naming
proc_name = 'skipped-tests-tracker'

# Logging
accesslog = os.getenv('GUNICORN_ACCESS_LOG', '-')  # '-' means stdout
errorlog = os.getenv('GUNICORN_ERROR_LOG', '-')   # '-' means stderr
loglevel = os.getenv('GUNICORN_LOG_LEVEL', 'info')
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Server Mechanics
daemon = False  # systemd or the container runtime supervises the process
pidfile = None

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

reload = os.getenv('GUNICORN_RELOAD', 'false').lower() == 'true'


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("Starting Skipped Tests Tracker")
    if workers > 1:
        server.log.warning(
            f"{workers} workers configured: each runs its own daily fetch scheduler. "
            "Set AUTO_FETCH_ENABLED=false on all but one deployment or use GUNICORN_WORKERS=1."
        )


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    server.log.info(f"Worker spawned (pid: {worker.pid})")
