"""Celery task definitions.

Tasks are thin: each opens a session, builds the service it needs and runs
one unit of work. Expected outcomes come back as result dicts; anything
unexpected propagates so Celery records the failure.
"""

from typing import Any
from uuid import UUID

from vidgen_engine.db.session import get_session_context
from vidgen_engine.domain.enums import SceneStatus
from vidgen_engine.logging import get_logger
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.services.api_keys import ApiKeyService
from vidgen_engine.services.providers import get_video_gen_provider
from vidgen_engine.services.queue_worker import build_queue_worker
from vidgen_engine.services.scene_clips import SceneClipService
from vidgen_engine.services.webhooks import WebhookDispatcher
from vidgen_engine.utils import run_async
from vidgen_engine.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="queue.process_next")
def process_next_task(self: Any) -> dict[str, Any]:
    """Claim and run at most one render job."""
    with get_session_context() as session:
        worker = build_queue_worker(session)
        result = run_async(worker.process_next())

    if result.status != "idle":
        logger.info(
            "queue_task_finished",
            task_id=self.request.id,
            status=result.status,
            job_id=result.job_id,
        )
    return result.to_dict()


@celery_app.task(bind=True, name="queue.reap_expired_leases")
def reap_expired_leases_task(self: Any) -> dict[str, Any]:  # noqa: ARG001
    """Fail jobs whose last lease lapsed and notify their webhooks."""
    with get_session_context() as session:
        worker = build_queue_worker(session)
        reaped = run_async(worker.reap_expired())
    return {"success": True, "reaped": [str(job_id) for job_id in reaped]}


@celery_app.task(bind=True, name="webhooks.sweep")
def sweep_webhooks_task(self: Any, limit: int | None = None) -> dict[str, Any]:  # noqa: ARG001
    """Retry failed webhook deliveries whose backoff has elapsed."""
    with get_session_context() as session:
        result = run_async(WebhookDispatcher(session).sweep(limit))
    return {
        "success": True,
        "claimed": result.claimed,
        "delivered": result.delivered,
        "failed": result.failed,
    }


@celery_app.task(bind=True, name="api_keys.expire_lapsed")
def expire_api_keys_task(self: Any) -> dict[str, Any]:  # noqa: ARG001
    """Mark API keys past their expiry as expired."""
    with get_session_context() as session:
        expired = ApiKeyService(session).expire_lapsed()
    return {"success": True, "expired": expired}


@celery_app.task(bind=True, name="scenes.generate_clip")
def generate_scene_clip_task(self: Any, scene_id: str) -> dict[str, Any]:
    """Generate one scene clip after an on-demand retry.

    When this was the last outstanding scene of a failed project, a fresh
    render job is queued so the video gets composed.
    """
    scene_uuid = UUID(scene_id)
    logger.info("scene_clip_task_started", task_id=self.request.id, scene_id=scene_id)

    with get_session_context() as session:
        clips = SceneClipService(session, get_video_gen_provider())
        outcome = run_async(clips.generate(scene_uuid))
        if outcome is None:
            return {"success": False, "scene_id": scene_id, "error": "Scene is not pending"}

        job = None
        if outcome == SceneStatus.COMPLETED:
            scene = clips.scenes.get(scene_uuid)
            job = clips.requeue_if_ready(
                scene.project_id, RenderQueue(session), WebhookDispatcher(session)
            )

    return {
        "success": outcome == SceneStatus.COMPLETED,
        "scene_id": scene_id,
        "status": str(outcome),
        "requeued_job_id": str(job.id) if job else None,
    }
