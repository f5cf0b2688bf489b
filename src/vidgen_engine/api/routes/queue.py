"""Internal queue processing endpoints.

Called by an external scheduler with the shared worker secret. Each POST
processes at most one render job.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from vidgen_engine.api.deps import QueueSecretDep, QueueWorkerDep, SessionDep
from vidgen_engine.logging import get_logger
from vidgen_engine.repositories.render_queue import RenderQueue

router = APIRouter(prefix="/queue", tags=["Queue"], dependencies=[QueueSecretDep])
logger = get_logger(__name__)


class QueueProcessResponse(BaseModel):
    success: bool
    status: str
    job_id: str | None = None
    project_id: str | None = None
    output_url: str | None = None
    processing_seconds: float | None = None
    error: str | None = None


class QueueStatsResponse(BaseModel):
    total: int
    pending: int
    processing: int
    completed: int
    failed: int


@router.post(
    "/process",
    response_model=QueueProcessResponse,
    summary="Process one render job",
    description="Claims and runs the next eligible render job. Returns status idle when none is due.",
)
async def process_queue(worker: QueueWorkerDep) -> dict[str, Any]:
    result = await worker.process_next()
    logger.info("queue_process_invoked", status=result.status, job_id=result.job_id)
    return result.to_dict()


@router.get(
    "/process",
    response_model=QueueStatsResponse,
    summary="Queue statistics",
)
async def queue_stats(session: SessionDep) -> QueueStatsResponse:
    stats = RenderQueue(session).stats()
    return QueueStatsResponse(
        total=stats.total,
        pending=stats.pending,
        processing=stats.processing,
        completed=stats.completed,
        failed=stats.failed,
    )
