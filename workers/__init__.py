# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and the periodic
# maintenance tasks that expire invitations, trials and paid subscriptions.
#
# Components:
# - celery_app.py: Celery application configuration
# - tasks.py: Task definitions
# - config.py: Worker-specific settings and beat schedule
#
# Usage:
#   # Start worker with embedded beat
#   celery -A workers.celery_app worker --beat --loglevel=info
#
#   # Or use the console script
#   start-worker
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
