"""Gunicorn production configuration.

A single worker process: each worker starts its own deadline scheduler in
the app lifespan, and the single-flight sweep lock is per process.
"""

bind = "0.0.0.0:8000"
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
timeout = 120
graceful_timeout = 30
keepalive = 5
preload_app = False
accesslog = "-"
errorlog = "-"
loglevel = "info"
