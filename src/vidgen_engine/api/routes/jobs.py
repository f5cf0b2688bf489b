"""Render job endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query
from pydantic import BaseModel

from vidgen_engine.api.deps import PrincipalDep, SessionDep
from vidgen_engine.db.models import ProjectModel, RenderJobModel
from vidgen_engine.domain.enums import RenderJobStatus
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.services.job_retry import retry_render_job

router = APIRouter(prefix="/jobs", tags=["Jobs"])


class ProjectSummary(BaseModel):
    """Project fields embedded in a job response."""

    id: UUID
    title: str
    status: str
    mode: str
    style_template: str
    video_url: str | None = None
    error_message: str | None = None


class RenderJobResponse(BaseModel):
    """A render job and the project it renders."""

    id: UUID
    project_id: UUID
    status: str
    priority: int
    attempts: int
    max_attempts: int
    aspect_ratio: str
    burn_subtitles: bool
    output_url: str | None = None
    error_message: str | None = None
    processing_seconds: float | None = None
    next_retry_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    project: ProjectSummary | None = None


class RenderJobListResponse(BaseModel):
    jobs: list[RenderJobResponse]
    count: int


def to_response(job: RenderJobModel, project: ProjectModel | None = None) -> RenderJobResponse:
    return RenderJobResponse(
        id=job.id,
        project_id=job.project_id,
        status=job.status,
        priority=job.priority,
        attempts=job.attempts,
        max_attempts=job.max_attempts,
        aspect_ratio=job.aspect_ratio,
        burn_subtitles=job.burn_subtitles,
        output_url=job.output_url,
        error_message=job.error_message,
        processing_seconds=job.processing_seconds,
        next_retry_at=job.next_retry_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
        created_at=job.created_at,
        project=ProjectSummary(
            id=project.id,
            title=project.title,
            status=project.status,
            mode=project.mode,
            style_template=project.style_template,
            video_url=project.video_url,
            error_message=project.error_message,
        )
        if project is not None
        else None,
    )


@router.get(
    "",
    response_model=RenderJobListResponse,
    summary="List render jobs",
    description="Most recent render jobs of the caller, optionally filtered by status.",
)
async def list_jobs(
    principal: PrincipalDep,
    session: SessionDep,
    status: RenderJobStatus | None = Query(default=None, description="Filter by status"),
    limit: int = Query(default=20, ge=1, le=100),
) -> RenderJobListResponse:
    jobs = RenderQueue(session).list_for_owner(principal.owner_id, status=status, limit=limit)
    return RenderJobListResponse(jobs=[to_response(j) for j in jobs], count=len(jobs))


@router.get(
    "/{job_id}",
    response_model=RenderJobResponse,
    summary="Get render job",
    description="A render job with a summary of its project. Unknown and foreign jobs are 404.",
)
async def get_job(job_id: UUID, principal: PrincipalDep, session: SessionDep) -> RenderJobResponse:
    job = RenderQueue(session).get_for_owner(job_id, principal.owner_id)
    project = ProjectRepository(session).get(job.project_id)
    return to_response(job, project)


@router.post(
    "/{job_id}/retry",
    response_model=RenderJobResponse,
    summary="Retry a failed render job",
    description=(
        "Makes a failed job claimable again. Exhausted jobs are rejected with 409 "
        "unless reset_attempts is set, which restores a full attempt budget. A failed "
        "project is reopened as draft and its webhook gets a new queued delivery."
    ),
)
async def retry_job(
    job_id: UUID,
    principal: PrincipalDep,
    session: SessionDep,
    reset_attempts: bool = Query(default=False),
) -> RenderJobResponse:
    job, project = retry_render_job(
        session, job_id, reset_attempts=reset_attempts, owner_id=principal.owner_id
    )
    return to_response(job, project)
