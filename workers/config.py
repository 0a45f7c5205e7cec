# =============================================================================
# workers/config.py - Celery Worker Configuration
# =============================================================================
# Broker, routing and beat schedule for the maintenance worker. Applied with
# app.config_from_object("workers.config:CeleryConfig").
#
# Every scheduled job is idempotent: it only moves rows whose deadline has
# already passed, so a missed or doubled run is harmless.
# =============================================================================

from celery.schedules import crontab

from app.config import settings

MAINTENANCE_TASKS = (
    "workers.tasks.expire_invitations",
    "workers.tasks.expire_trials",
    "workers.tasks.expire_paid_subscriptions",
)


class CeleryConfig:
    """Celery settings for the billetera worker."""

    # -------------------------------------------------------------------------
    # Broker (Redis)
    # -------------------------------------------------------------------------

    broker_url = settings.REDIS_URL
    result_backend = settings.REDIS_URL
    broker_connection_retry_on_startup = True

    # Maintenance results are only useful for a day of debugging
    result_expires = 86400

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    task_acks_late = True
    worker_prefetch_multiplier = 1

    # A sweep over the subscription tables should finish well within a minute
    task_time_limit = 120
    task_soft_time_limit = 90

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    task_default_queue = "default"
    task_queues = {
        "default": {"exchange": "default", "routing_key": "default"},
        "maintenance": {"exchange": "maintenance", "routing_key": "maintenance"},
    }
    task_routes = {name: {"queue": "maintenance"} for name in MAINTENANCE_TASKS}

    # self.retry() picks these up for every task
    task_annotations = {
        "*": {"max_retries": 5, "default_retry_delay": 30},
    }

    # -------------------------------------------------------------------------
    # Beat schedule (UTC)
    # -------------------------------------------------------------------------

    timezone = "UTC"
    enable_utc = True

    beat_schedule = {
        "expire-invitations": {
            "task": "workers.tasks.expire_invitations",
            "schedule": crontab(minute=0),
        },
        "expire-trials": {
            "task": "workers.tasks.expire_trials",
            "schedule": crontab(minute=15),
        },
        "expire-paid-subscriptions": {
            "task": "workers.tasks.expire_paid_subscriptions",
            "schedule": crontab(hour=3, minute=30),
        },
    }
