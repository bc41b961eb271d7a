"""
Celery Application Configuration
================================

Celery beat is the external scheduler for maintenance runs. Each run is a
single synchronous task; the worker only exists so runs happen on time
without a crontab on the host.

Running:
--------
Worker:
    celery -A sitesync.celery_app worker --loglevel=info -Q maintenance

Beat (schedules daily / weekly / monthly runs):
    celery -A sitesync.celery_app beat --loglevel=info

Production Considerations:
--------------------------
- Run a single worker with concurrency 1: runs against the same site
  checkout must not overlap
- Monitor the report directory rather than task results, which expire
"""

import logging
from celery import Celery
from celery.schedules import crontab
from celery.signals import worker_process_init, worker_process_shutdown
from sitesync.config import settings

logger = logging.getLogger(__name__)

# =============================================================================
# Celery Application Instance
# =============================================================================

celery_app = Celery(
    "sitesync",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "sitesync.tasks.maintenance_tasks",
    ],
)

# =============================================================================
# Celery Configuration
# =============================================================================

celery_app.conf.update(
    # --- Serialization ---
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # --- Result Backend ---
    result_expires=86400,  # Reports are the durable record; results are only for monitoring

    # --- Task Reliability ---
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    task_time_limit=3600,
    task_soft_time_limit=3000,

    # --- Worker Settings ---
    worker_prefetch_multiplier=1,  # One run at a time
    worker_max_tasks_per_child=100,

    # --- Broker Connection ---
    broker_connection_retry_on_startup=True,
    broker_connection_retry=True,
    broker_connection_max_retries=10,
)

celery_app.conf.task_routes = {
    "sitesync.tasks.maintenance_tasks.*": {"queue": "maintenance"},
}

# =============================================================================
# Celery Beat Schedule
# =============================================================================
# Profiles are supersets, so only one of them runs on a given day.

celery_app.conf.beat_schedule = {
    # Every day except Sunday and the 1st of the month, 2 AM UTC
    "daily-maintenance": {
        "task": "sitesync.tasks.maintenance_tasks.run_maintenance",
        "schedule": crontab(hour=2, minute=0, day_of_week="1-6", day_of_month="2-31"),
        "kwargs": {"schedule": "daily"},
    },
    # Sundays, except when Sunday is the 1st
    "weekly-maintenance": {
        "task": "sitesync.tasks.maintenance_tasks.run_maintenance",
        "schedule": crontab(hour=2, minute=0, day_of_week=0, day_of_month="2-31"),
        "kwargs": {"schedule": "weekly"},
    },
    "monthly-maintenance": {
        "task": "sitesync.tasks.maintenance_tasks.run_maintenance",
        "schedule": crontab(hour=2, minute=0, day_of_month=1),
        "kwargs": {"schedule": "monthly"},
    },
}


@worker_process_init.connect
def init_worker(**kwargs):
    logger.info("Celery worker process starting...")


@worker_process_shutdown.connect
def shutdown_worker(**kwargs):
    logger.info("Celery worker process shutting down...")


if __name__ == "__main__":
    celery_app.start()
