"""Queue worker: one claimed job per invocation.

Invoked by Celery beat, the internal HTTP endpoint or the CLI. Each call
claims at most one render job, runs the director on it and settles the job.
The queue outcome, the project status and the staged webhook deliveries commit
in one transaction; sending happens afterwards. A repeated or stale completion
is rejected by the queue and stages nothing.
"""

import time
from dataclasses import asdict, dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from vidgen_engine.db.models import RenderJobModel, WebhookDeliveryModel
from vidgen_engine.domain.enums import ProjectStatus, WebhookEventStatus
from vidgen_engine.domain.errors import LeaseLostError, ProviderError, VidGenError
from vidgen_engine.logging import bind_job_context, clear_job_context, get_logger
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import FailOutcome, RenderQueue
from vidgen_engine.services.composition import Composer
from vidgen_engine.services.content_analysis import ContentAnalyzer
from vidgen_engine.services.director import Director
from vidgen_engine.services.narration import Narrator
from vidgen_engine.services.providers import (
    get_llm_provider,
    get_renderer_provider,
    get_video_gen_provider,
    get_voiceover_provider,
)
from vidgen_engine.services.scene_clips import SceneClipService
from vidgen_engine.services.storage import StorageService
from vidgen_engine.services.webhooks import WebhookDispatcher, build_payload
from vidgen_engine.utils.clock import Clock, utc_now

logger = get_logger(__name__)


@dataclass
class WorkerResult:
    """Outcome of one worker invocation."""

    status: str  # idle, completed, retry_scheduled, failed, lease_lost
    job_id: str | None = None
    project_id: str | None = None
    output_url: str | None = None
    processing_seconds: float | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.status in ("idle", "completed")

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, **asdict(self)}


class QueueWorker:
    """Claims, runs and settles render jobs."""

    def __init__(
        self,
        session: Session,
        queue: RenderQueue,
        director: Director,
        webhooks: WebhookDispatcher,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self.session = session
        self.queue = queue
        self.director = director
        self.webhooks = webhooks
        self.clock = clock
        self.projects = ProjectRepository(session)

    async def process_next(self) -> WorkerResult:
        job = self.queue.claim_next()
        if job is None:
            return WorkerResult(status="idle")

        bind_job_context(job_id=str(job.id), project_id=str(job.project_id))
        try:
            return await self._run(job)
        finally:
            clear_job_context()

    async def _run(self, job: RenderJobModel) -> WorkerResult:
        project = self.projects.get(job.project_id)
        if project.status != ProjectStatus.PROCESSING:
            self.projects.set_status(project, ProjectStatus.PROCESSING)
            self.session.commit()

        started = time.monotonic()
        try:
            composed = await self.director.run(job)
        except LeaseLostError as e:
            logger.warning("render_job_abandoned", reason=str(e))
            return WorkerResult(status="lease_lost", job_id=str(job.id), error=str(e))
        except ProviderError as e:
            return await self._fail(job, str(e), retryable=e.queue_retryable)
        except VidGenError as e:
            return await self._fail(job, str(e), retryable=False)
        except Exception as e:
            # Settle the claim before letting Celery see the crash
            logger.exception("render_job_crashed", error=str(e))
            self.session.rollback()
            await self._fail(job, f"Unexpected error: {e}", retryable=True)
            raise

        processing_seconds = time.monotonic() - started
        if not self.queue.complete(
            job.id,
            composed.output_url,
            processing_seconds,
            generation=job.lease_generation,
            commit=False,
        ):
            self.session.commit()
            return WorkerResult(status="lease_lost", job_id=str(job.id))

        project = self.projects.get(job.project_id)
        self.projects.mark_completed(project, composed.output_url)
        settled = self.queue.get(job.id)
        staged = self.webhooks.stage_outcome(
            project.id,
            build_payload(project, settled, WebhookEventStatus.COMPLETED, self.clock()),
        )
        self.session.commit()

        await self.webhooks.send_all(staged)
        return WorkerResult(
            status="completed",
            job_id=str(job.id),
            project_id=str(project.id),
            output_url=composed.output_url,
            processing_seconds=round(processing_seconds, 3),
        )

    async def _fail(self, job: RenderJobModel, message: str, *, retryable: bool) -> WorkerResult:
        outcome = self.queue.fail(
            job.id,
            message,
            retryable=retryable,
            generation=job.lease_generation,
            commit=False,
        )
        if outcome != FailOutcome.EXHAUSTED:
            self.session.commit()

        if outcome == FailOutcome.NOT_HELD:
            return WorkerResult(status="lease_lost", job_id=str(job.id), error=message)

        if outcome == FailOutcome.RETRY_SCHEDULED:
            return WorkerResult(
                status="retry_scheduled",
                job_id=str(job.id),
                project_id=str(job.project_id),
                error=message,
            )

        staged = self._stage_terminal_failure(job.id, job.project_id, message)
        self.session.commit()
        await self.webhooks.send_all(staged)
        return WorkerResult(
            status="failed",
            job_id=str(job.id),
            project_id=str(job.project_id),
            error=message,
        )

    def _stage_terminal_failure(
        self, job_id: UUID, project_id: UUID, message: str
    ) -> list[WebhookDeliveryModel]:
        """Fail the project and stage its ``failed`` notifications. Flushes only."""
        project = self.projects.get(project_id)
        self.projects.set_status(project, ProjectStatus.FAILED, error_message=message[:2000])
        settled = self.queue.get(job_id)
        return self.webhooks.stage_outcome(
            project.id,
            build_payload(project, settled, WebhookEventStatus.FAILED, self.clock()),
        )

    async def reap_expired(self) -> list[UUID]:
        """Terminally fail jobs whose final lease lapsed and notify their webhooks."""
        reaped = self.queue.reap_expired(commit=False)
        staged: list[WebhookDeliveryModel] = []
        for job_id in reaped:
            job = self.queue.get(job_id)
            if job is None:
                continue
            staged.extend(
                self._stage_terminal_failure(
                    job_id, job.project_id, job.error_message or "Worker lease expired"
                )
            )
        self.session.commit()

        await self.webhooks.send_all(staged)
        return reaped


def build_queue_worker(session: Session, *, clock: Clock = utc_now) -> QueueWorker:
    """Wire a worker with providers chosen by configuration."""
    queue = RenderQueue(session, clock=clock)
    storage = StorageService()
    webhooks = WebhookDispatcher(session, clock=clock)
    director = Director(
        session,
        queue,
        analyzer=ContentAnalyzer(get_llm_provider()),
        narrator=Narrator(get_voiceover_provider(), storage),
        clips=SceneClipService(session, get_video_gen_provider(), clock=clock),
        composer=Composer(get_renderer_provider(), storage),
    )
    return QueueWorker(session, queue, director, webhooks, clock=clock)
