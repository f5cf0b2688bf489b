"""Celery worker configuration."""

from celery import Celery

from vidgen_engine.config import settings
from vidgen_engine.logging import setup_logging

# Setup logging before anything else
setup_logging()

# Create Celery app
celery_app = Celery(
    "vidgen_engine",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=1800,  # a full autonomous run plus composition polling
    task_soft_time_limit=1740,
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "queue.process_next": {"queue": "render"},
        "queue.reap_expired_leases": {"queue": "default"},
        "api_keys.expire_lapsed": {"queue": "default"},
        "scenes.generate_clip": {"queue": "render"},
        "webhooks.sweep": {"queue": "webhooks"},
    },
    # Beat scheduler
    beat_schedule={
        # One render job per tick; run more workers for more throughput
        "process-render-queue": {
            "task": "queue.process_next",
            "schedule": settings.queue_worker_interval_seconds,
            "options": {"queue": "render"},
        },
        "sweep-webhooks-minutely": {
            "task": "webhooks.sweep",
            "schedule": 60.0,
            "options": {"queue": "webhooks"},
        },
        "reap-expired-leases-minutely": {
            "task": "queue.reap_expired_leases",
            "schedule": 60.0,
            "options": {"queue": "default"},
        },
        "expire-api-keys-hourly": {
            "task": "api_keys.expire_lapsed",
            "schedule": 3600.0,
            "options": {"queue": "default"},
        },
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["vidgen_engine.jobs"])
