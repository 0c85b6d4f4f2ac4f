# see http://docs.gunicorn.org/en/latest/configure.html#configuration-file
#
#   gunicorn -c bulletin/asgi_config.py bulletin.asgi:application

from os import getenv

bind = "0.0.0.0:8000"
workers = int(getenv("ASGI_NUM_WORKERS", 4))
accesslog = "-"
errorlog = "-"
loglevel = getenv("LOGLEVEL", "info")

# Views on the login and publish paths are coroutines, so run them on an event loop.
worker_class = getenv("GUNICORN_WORKER_CLASS", "uvicorn_worker.UvicornWorker")
worker_tmp_dir = "/dev/shm"

keepalive = int(getenv("ASGI_KEEP_ALIVE", 60))
timeout = int(getenv("ASGI_TIMEOUT", 30))
graceful_timeout = int(getenv("ASGI_GRACEFUL_TIMEOUT", 10))
max_requests = int(getenv("ASGI_MAX_REQUESTS", 2000))
max_requests_jitter = int(getenv("ASGI_MAX_REQUESTS_JITTER", 30))


# Called just after a worker has been forked.
def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)
