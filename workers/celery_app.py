# =============================================================================
# workers/celery_app.py - Celery Application
# =============================================================================
# The worker process that runs the subscription maintenance jobs. Beat is
# embedded in the worker so a single process covers both scheduling and
# execution.
#
# Usage:
#   celery -A workers.celery_app worker --beat --loglevel=info
#   start-worker
# =============================================================================

import logging
from urllib.parse import urlsplit

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun, worker_ready

from app.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def redacted_broker(url: str) -> str:
    """Broker URL with any credentials stripped, for log lines."""
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{parts.scheme}://{host}{parts.path}"


def create_celery_app() -> Celery:
    """
    Build the Celery app bound to settings.REDIS_URL.

    Broker, backend, routing and the beat schedule all come from
    workers.config.CeleryConfig.
    """
    app = Celery("billetera_worker", include=["workers.tasks"])
    app.config_from_object("workers.config:CeleryConfig")

    logger.info(f"Celery app ready, broker {redacted_broker(settings.REDIS_URL)}")
    return app


celery_app = create_celery_app()


@celery_app.task(bind=True, name="workers.healthcheck")
def healthcheck(self):
    """Round-trip check for a running worker; returns "OK"."""
    return "OK"


# =============================================================================
# Signals
# =============================================================================

@worker_ready.connect
def worker_ready_handler(sender=None, **extra):
    schedule = celery_app.conf.beat_schedule or {}
    logger.info(f"Worker ready with {len(schedule)} scheduled jobs: {', '.join(sorted(schedule))}")


@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, **extra):
    logger.info(f"Running {task.name} [{task_id}]")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, retval=None, state=None, **extra):
    logger.info(f"{task.name} [{task_id}] finished as {state}: {retval}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **extra):
    logger.error(f"{sender.name} [{task_id}] failed: {exception}")


def main():
    """Entry point for the start-worker script."""
    celery_app.worker_main(["worker", "--beat", "--loglevel=info", "-Q", "default,maintenance"])


if __name__ == "__main__":
    celery_app.start()
