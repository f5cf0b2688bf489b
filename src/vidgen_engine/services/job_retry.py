"""Operator-initiated render job retries, shared by the API and the CLI."""

from uuid import UUID

from sqlalchemy.orm import Session

from vidgen_engine.db.models import ProjectModel, RenderJobModel
from vidgen_engine.domain.enums import ProjectStatus
from vidgen_engine.logging import get_logger
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.services.webhooks import WebhookDispatcher
from vidgen_engine.utils.clock import Clock, utc_now

logger = get_logger(__name__)


def retry_render_job(
    session: Session,
    job_id: UUID,
    *,
    reset_attempts: bool = False,
    owner_id: UUID | None = None,
    clock: Clock = utc_now,
) -> tuple[RenderJobModel, ProjectModel]:
    """Make a failed job claimable again and reopen its project.

    A project that had already been reported ``failed`` goes back to
    ``draft`` and, when it has a webhook URL, gets a fresh ``queued``
    delivery for the next outcome to be staged on. Everything commits
    together.

    Raises:
        NotFoundError: Unknown job, or one not owned by ``owner_id``.
        InvalidStateError: The job is not failed.
        QueueExhaustedError: No attempts left and ``reset_attempts`` is false.
    """
    queue = RenderQueue(session, clock=clock)
    if reset_attempts:
        job = queue.reset(job_id, owner_id=owner_id, commit=False)
    else:
        job = queue.retry(job_id, owner_id=owner_id, commit=False)

    projects = ProjectRepository(session)
    reopened = projects.transition(
        job.project_id, ProjectStatus.FAILED, ProjectStatus.DRAFT, error_message=None
    )
    project = projects.get(job.project_id)
    if reopened:
        WebhookDispatcher(session, clock=clock).schedule_for_project(project, job)
    session.commit()

    logger.info(
        "render_job_retry_accepted",
        job_id=str(job_id),
        reset_attempts=reset_attempts,
        project_reopened=reopened,
    )
    return job, project
