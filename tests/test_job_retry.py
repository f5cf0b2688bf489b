"""Tests for operator retries of failed render jobs."""

import json
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.orm import Session

from tests.helpers import FrozenClock, WebhookReceiver, submit
from vidgen_engine.domain.enums import ProjectStatus, RenderJobStatus, WebhookDeliveryStatus
from vidgen_engine.domain.errors import NotFoundError, QueueExhaustedError, VidGenError
from vidgen_engine.domain.models import ComposedVideo
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.repositories.webhooks import WebhookRepository
from vidgen_engine.services.director import Director
from vidgen_engine.services.job_retry import retry_render_job
from vidgen_engine.services.queue_worker import QueueWorker
from vidgen_engine.services.webhooks import WebhookDispatcher

HOOK_URL = "https://hooks.test/vidgen"


def make_worker(
    session: Session,
    queue: RenderQueue,
    clock: FrozenClock,
    receiver: WebhookReceiver,
    director: AsyncMock,
) -> QueueWorker:
    webhooks = WebhookDispatcher(session, clock=clock, transport=receiver.transport())
    return QueueWorker(session, queue, director, webhooks, clock=clock)


def failing_director() -> AsyncMock:
    director = AsyncMock(spec=Director)
    director.run.side_effect = VidGenError("storyboard rejected")
    return director


def succeeding_director() -> AsyncMock:
    director = AsyncMock(spec=Director)
    director.run.return_value = ComposedVideo(
        output_url="http://media.test/final/second-try.mp4", processing_seconds=2.0
    )
    return director


@pytest.fixture
def receiver() -> WebhookReceiver:
    return WebhookReceiver()


@pytest_asyncio.fixture
async def failed_receipt(session, owner_id, clock, render_queue, receiver):
    """A webhook-enabled submission whose only job failed terminally."""
    receipt = submit(session, owner_id, clock=clock, webhook_url=HOOK_URL)
    worker = make_worker(session, render_queue, clock, receiver, failing_director())
    assert (await worker.process_next()).status == "failed"
    return receipt


class TestRetryRenderJob:
    @pytest.mark.asyncio
    async def test_reset_reopens_project_and_schedules_queued_delivery(
        self,
        session: Session,
        clock: FrozenClock,
        failed_receipt,
        receiver: WebhookReceiver,
    ) -> None:
        assert [json.loads(r.content)["status"] for r in receiver.requests] == ["failed"]

        job, project = retry_render_job(session, failed_receipt.job_id, reset_attempts=True, clock=clock)

        assert job.status == RenderJobStatus.PENDING
        assert job.attempts == 0
        assert project.status == ProjectStatus.DRAFT
        assert project.error_message is None

        pending = WebhookRepository(session).pending_for_project(project.id)
        assert len(pending) == 1
        assert pending[0].id != failed_receipt.webhook_delivery_id
        assert pending[0].payload["status"] == "queued"
        assert pending[0].payload["job_id"] == str(job.id)

    @pytest.mark.asyncio
    async def test_rerun_after_reset_sends_completion(
        self,
        session: Session,
        clock: FrozenClock,
        render_queue: RenderQueue,
        failed_receipt,
        receiver: WebhookReceiver,
    ) -> None:
        retry_render_job(session, failed_receipt.job_id, reset_attempts=True, clock=clock)
        worker = make_worker(session, render_queue, clock, receiver, succeeding_director())

        result = await worker.process_next()

        assert result.status == "completed"
        statuses = [json.loads(r.content)["status"] for r in receiver.requests]
        assert statuses == ["failed", "completed"]
        assert json.loads(receiver.requests[1].content)["video_url"] == (
            "http://media.test/final/second-try.mp4"
        )
        assert ProjectRepository(session).get(failed_receipt.project_id).status == ProjectStatus.COMPLETED
        first = WebhookRepository(session).get_delivery(failed_receipt.webhook_delivery_id)
        assert first.status == WebhookDeliveryStatus.SUCCESS
        assert first.payload["status"] == "failed"

    @pytest.mark.asyncio
    async def test_exhausted_job_without_reset_is_rejected(
        self, session: Session, clock: FrozenClock, failed_receipt
    ) -> None:
        with pytest.raises(QueueExhaustedError):
            retry_render_job(session, failed_receipt.job_id, clock=clock)

        project = ProjectRepository(session).get(failed_receipt.project_id)
        assert project.status == ProjectStatus.FAILED
        assert WebhookRepository(session).pending_for_project(project.id) == []

    def test_retry_with_attempts_left_keeps_project_as_is(
        self,
        session: Session,
        owner_id: UUID,
        clock: FrozenClock,
        render_queue: RenderQueue,
    ) -> None:
        receipt = submit(session, owner_id, clock=clock, webhook_url=HOOK_URL)
        render_queue.claim_next()
        render_queue.fail(receipt.job_id, "renderer timeout", retryable=True)

        job, project = retry_render_job(session, receipt.job_id, clock=clock)

        assert job.status == RenderJobStatus.FAILED
        assert project.status == ProjectStatus.DRAFT
        # Only the delivery from submission, still waiting for an outcome
        pending = WebhookRepository(session).pending_for_project(project.id)
        assert [d.id for d in pending] == [receipt.webhook_delivery_id]

    @pytest.mark.asyncio
    async def test_foreign_owner_is_not_found(
        self, session: Session, clock: FrozenClock, failed_receipt
    ) -> None:
        with pytest.raises(NotFoundError):
            retry_render_job(
                session, failed_receipt.job_id, reset_attempts=True, owner_id=uuid4(), clock=clock
            )
