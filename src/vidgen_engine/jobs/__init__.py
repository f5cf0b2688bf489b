"""Celery job definitions."""

from vidgen_engine.jobs.tasks import (
    expire_api_keys_task,
    generate_scene_clip_task,
    process_next_task,
    reap_expired_leases_task,
    sweep_webhooks_task,
)

__all__ = [
    "expire_api_keys_task",
    "generate_scene_clip_task",
    "process_next_task",
    "reap_expired_leases_task",
    "sweep_webhooks_task",
]
