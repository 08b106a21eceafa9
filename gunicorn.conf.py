# gunicorn.conf.py
import os

bind = f"0.0.0.0:{os.getenv('PORT', '3000')}"
# verificatietaken draaien in-process: elke worker beheert zijn eigen taken
workers = int(os.getenv("WEB_CONCURRENCY", "2"))
worker_class = "uvicorn.workers.UvicornWorker"
wsgi_app = "certiai.main:app"
preload_app = False
# ruim boven de 30s classifier-timeout
timeout = 120
graceful_timeout = 45
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
