"""Durable, priority-ordered render job queue.

Claiming is one ``UPDATE ... WHERE id = (SELECT ... FOR UPDATE SKIP LOCKED)``
statement, so concurrent workers never block on each other and never claim the
same row twice. Every claim grants a time-bounded lease tagged with a
monotonically increasing generation; ``complete``/``fail``/``renew_lease`` are
fenced on that generation so a worker whose lease was taken over cannot
overwrite the new holder's outcome.

State machine::

    pending -> processing -> completed
                          -> failed (retryable, next_retry_at set) -> processing ...
                          -> failed (terminal, next_retry_at null)
    processing (lease expired, attempts < max) -> processing   (reclaimed)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, and_, func, or_, select, update
from sqlalchemy.orm import Session, aliased

from vidgen_engine.config import settings
from vidgen_engine.db.models import RenderJobModel
from vidgen_engine.domain.enums import RenderJobStatus
from vidgen_engine.domain.errors import InvalidStateError, NotFoundError, QueueExhaustedError
from vidgen_engine.logging import get_logger
from vidgen_engine.utils.clock import Clock, utc_now

logger = get_logger(__name__)

MAX_ERROR_LENGTH = 2000


class FailOutcome(StrEnum):
    """What ``RenderQueue.fail`` did with the job."""

    RETRY_SCHEDULED = "retry_scheduled"
    EXHAUSTED = "exhausted"
    NOT_HELD = "not_held"


@dataclass(frozen=True)
class QueueStats:
    """Job counts per status."""

    total: int
    pending: int
    processing: int
    completed: int
    failed: int


class RenderQueue:
    """Render job store scoped to one session.

    Queue transitions (claim, complete, fail, renew, reap) commit immediately:
    each is a complete step of the queue protocol and must not hold row locks
    beyond the statement that takes them. Settling transitions take
    ``commit=False`` so the worker can record the project outcome and its
    webhook deliveries in the same transaction.
    """

    def __init__(
        self,
        session: Session,
        *,
        clock: Clock = utc_now,
        backoff_seconds: int | None = None,
        lease_seconds: int | None = None,
        max_attempts: int | None = None,
    ) -> None:
        self.session = session
        self.clock = clock
        self.backoff = timedelta(
            seconds=backoff_seconds
            if backoff_seconds is not None
            else settings.render_retry_backoff_seconds
        )
        self.lease = timedelta(
            seconds=lease_seconds if lease_seconds is not None else settings.render_lease_seconds
        )
        self.max_attempts = (
            max_attempts if max_attempts is not None else settings.render_job_max_attempts
        )

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(
        self,
        project_id: UUID,
        owner_id: UUID,
        *,
        priority: int = 0,
        aspect_ratio: str = "16:9",
        burn_subtitles: bool = True,
        commit: bool = True,
    ) -> RenderJobModel:
        """Insert a pending job with zero attempts."""
        job = RenderJobModel(
            project_id=project_id,
            owner_id=owner_id,
            priority=priority,
            status=RenderJobStatus.PENDING,
            attempts=0,
            max_attempts=self.max_attempts,
            aspect_ratio=aspect_ratio,
            burn_subtitles=burn_subtitles,
            lease_generation=0,
            created_at=self.clock(),
        )
        self.session.add(job)
        self.session.flush()
        if commit:
            self.session.commit()

        logger.info(
            "render_job_enqueued",
            job_id=str(job.id),
            project_id=str(project_id),
            priority=priority,
        )
        return job

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    @staticmethod
    def _eligible(job: Any, now: datetime) -> ColumnElement[bool]:
        return or_(
            job.status == RenderJobStatus.PENDING,
            and_(
                job.status == RenderJobStatus.FAILED,
                job.attempts < job.max_attempts,
                or_(job.next_retry_at.is_(None), job.next_retry_at <= now),
            ),
            # Reclaim work from a worker that crashed or stalled past its lease
            and_(
                job.status == RenderJobStatus.PROCESSING,
                job.lease_expires_at.is_not(None),
                job.lease_expires_at <= now,
                job.attempts < job.max_attempts,
            ),
        )

    def claim_next(self) -> RenderJobModel | None:
        """Atomically claim the highest-priority eligible job.

        Returns:
            The claimed job (status=processing, attempts incremented, fresh
            lease) or None when nothing is eligible.
        """
        now = self.clock()
        candidate = aliased(RenderJobModel)
        next_id = (
            select(candidate.id)
            .where(self._eligible(candidate, now))
            .order_by(candidate.priority.desc(), candidate.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        stmt = (
            update(RenderJobModel)
            .where(RenderJobModel.id == next_id)
            .values(
                status=RenderJobStatus.PROCESSING,
                attempts=RenderJobModel.attempts + 1,
                started_at=now,
                next_retry_at=None,
                lease_expires_at=now + self.lease,
                lease_generation=RenderJobModel.lease_generation + 1,
            )
            .returning(RenderJobModel.id)
            .execution_options(synchronize_session=False)
        )
        job_id = self.session.execute(stmt).scalar_one_or_none()
        self.session.commit()

        if job_id is None:
            logger.debug("render_queue_empty")
            return None

        job = self._get_scoped(job_id, None)
        logger.info(
            "render_job_claimed",
            job_id=str(job_id),
            attempts=job.attempts,
            lease_generation=job.lease_generation,
        )
        return job

    def renew_lease(self, job_id: UUID, generation: int) -> bool:
        """Extend a live lease. False means the lease was lost."""
        now = self.clock()
        result = self.session.execute(
            update(RenderJobModel)
            .where(
                RenderJobModel.id == job_id,
                RenderJobModel.status == RenderJobStatus.PROCESSING,
                RenderJobModel.lease_generation == generation,
            )
            .values(lease_expires_at=now + self.lease)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        renewed = result.rowcount == 1
        if not renewed:
            logger.warning("render_job_lease_lost", job_id=str(job_id), generation=generation)
        return renewed

    def complete(
        self,
        job_id: UUID,
        output_url: str,
        processing_seconds: float,
        *,
        generation: int | None = None,
        commit: bool = True,
    ) -> bool:
        """Mark a processing job completed.

        Only the first call for a claim takes effect; repeated calls return
        False and change nothing.
        """
        now = self.clock()
        conditions = [
            RenderJobModel.id == job_id,
            RenderJobModel.status == RenderJobStatus.PROCESSING,
        ]
        if generation is not None:
            conditions.append(RenderJobModel.lease_generation == generation)

        result = self.session.execute(
            update(RenderJobModel)
            .where(*conditions)
            .values(
                status=RenderJobStatus.COMPLETED,
                output_url=output_url,
                processing_seconds=processing_seconds,
                completed_at=now,
                next_retry_at=None,
                lease_expires_at=None,
                error_message=None,
            )
            .execution_options(synchronize_session=False)
        )
        if commit:
            self.session.commit()

        if result.rowcount != 1:
            logger.warning("render_job_complete_ignored", job_id=str(job_id))
            return False

        logger.info(
            "render_job_completed",
            job_id=str(job_id),
            output_url=output_url,
            processing_seconds=round(processing_seconds, 2),
        )
        return True

    def fail(
        self,
        job_id: UUID,
        message: str,
        *,
        retryable: bool = True,
        generation: int | None = None,
        commit: bool = True,
    ) -> FailOutcome:
        """Mark a processing job failed.

        A retryable failure with attempts left schedules the next attempt at
        ``now + backoff * attempts``. Anything else is terminal: next_retry_at
        stays null and the job is never eligible again.
        """
        job = self.session.get(RenderJobModel, job_id, populate_existing=True)
        if (
            job is None
            or job.status != RenderJobStatus.PROCESSING
            or (generation is not None and job.lease_generation != generation)
        ):
            logger.warning("render_job_fail_ignored", job_id=str(job_id))
            return FailOutcome.NOT_HELD

        now = self.clock()
        if retryable and job.attempts < job.max_attempts:
            outcome = FailOutcome.RETRY_SCHEDULED
            next_retry_at = now + self.backoff * job.attempts
            max_attempts = job.max_attempts
            completed_at = None
        else:
            outcome = FailOutcome.EXHAUSTED
            next_retry_at = None
            # Non-retryable: cap the budget at the attempts already spent
            max_attempts = job.attempts if not retryable else job.max_attempts
            completed_at = now

        result = self.session.execute(
            update(RenderJobModel)
            .where(
                RenderJobModel.id == job_id,
                RenderJobModel.status == RenderJobStatus.PROCESSING,
                RenderJobModel.lease_generation == job.lease_generation,
            )
            .values(
                status=RenderJobStatus.FAILED,
                error_message=message[:MAX_ERROR_LENGTH],
                next_retry_at=next_retry_at,
                max_attempts=max_attempts,
                lease_expires_at=None,
                completed_at=completed_at,
            )
            .execution_options(synchronize_session=False)
        )
        if commit:
            self.session.commit()

        if result.rowcount != 1:
            logger.warning("render_job_fail_ignored", job_id=str(job_id))
            return FailOutcome.NOT_HELD

        logger.info(
            "render_job_failed",
            job_id=str(job_id),
            outcome=outcome,
            attempts=job.attempts,
            max_attempts=max_attempts,
            next_retry_at=next_retry_at.isoformat() if next_retry_at else None,
            error=message[:200],
        )
        return outcome

    def reap_expired(self, *, commit: bool = True) -> list[UUID]:
        """Terminally fail processing jobs whose lease lapsed on their final attempt.

        Jobs with attempts left need no reaping; ``claim_next`` picks them up.
        """
        now = self.clock()
        result = self.session.execute(
            update(RenderJobModel)
            .where(
                RenderJobModel.status == RenderJobStatus.PROCESSING,
                RenderJobModel.lease_expires_at.is_not(None),
                RenderJobModel.lease_expires_at <= now,
                RenderJobModel.attempts >= RenderJobModel.max_attempts,
            )
            .values(
                status=RenderJobStatus.FAILED,
                error_message="Worker lease expired on the final attempt",
                next_retry_at=None,
                lease_expires_at=None,
                completed_at=now,
            )
            .returning(RenderJobModel.id)
            .execution_options(synchronize_session=False)
        )
        reaped = list(result.scalars().all())
        if commit:
            self.session.commit()

        if reaped:
            logger.warning("render_jobs_reaped", count=len(reaped))
        return reaped

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def retry(
        self, job_id: UUID, owner_id: UUID | None = None, *, commit: bool = True
    ) -> RenderJobModel:
        """Make a failed job with attempts left eligible immediately.

        Raises:
            QueueExhaustedError: The job has no attempts left.
            InvalidStateError: The job is not failed.
        """
        job = self._get_scoped(job_id, owner_id)
        if job.status != RenderJobStatus.FAILED:
            raise InvalidStateError(f"Render job {job_id} is {job.status}, not failed")
        if job.attempts >= job.max_attempts:
            raise QueueExhaustedError(job.id, job.attempts, job.max_attempts)

        job.next_retry_at = self.clock()
        self.session.flush()
        if commit:
            self.session.commit()
        logger.info("render_job_retry_requested", job_id=str(job_id))
        return job

    def reset(
        self, job_id: UUID, owner_id: UUID | None = None, *, commit: bool = True
    ) -> RenderJobModel:
        """Return a failed job to pending with a fresh attempt budget."""
        job = self._get_scoped(job_id, owner_id)
        if job.status != RenderJobStatus.FAILED:
            raise InvalidStateError(f"Render job {job_id} is {job.status}, not failed")

        job.status = RenderJobStatus.PENDING
        job.attempts = 0
        job.max_attempts = self.max_attempts
        job.next_retry_at = None
        job.error_message = None
        job.completed_at = None
        self.session.flush()
        if commit:
            self.session.commit()
        logger.info("render_job_reset", job_id=str(job_id))
        return job

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, job_id: UUID) -> RenderJobModel | None:
        return self.session.get(RenderJobModel, job_id, populate_existing=True)

    def get_for_owner(self, job_id: UUID, owner_id: UUID) -> RenderJobModel:
        """Fetch a job owned by ``owner_id``; absent and unowned look the same."""
        return self._get_scoped(job_id, owner_id)

    def _get_scoped(self, job_id: UUID, owner_id: UUID | None) -> RenderJobModel:
        job = self.session.get(RenderJobModel, job_id, populate_existing=True)
        if job is None or (owner_id is not None and job.owner_id != owner_id):
            raise NotFoundError("Render job", job_id)
        return job

    def list_for_owner(
        self,
        owner_id: UUID,
        status: RenderJobStatus | None = None,
        limit: int = 20,
    ) -> list[RenderJobModel]:
        stmt = select(RenderJobModel).where(RenderJobModel.owner_id == owner_id)
        if status is not None:
            stmt = stmt.where(RenderJobModel.status == status)
        stmt = stmt.order_by(RenderJobModel.created_at.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars().all())

    def stats(self) -> QueueStats:
        rows = self.session.execute(
            select(RenderJobModel.status, func.count()).group_by(RenderJobModel.status)
        ).all()
        counts = {status: count for status, count in rows}
        return QueueStats(
            total=sum(counts.values()),
            pending=counts.get(RenderJobStatus.PENDING, 0),
            processing=counts.get(RenderJobStatus.PROCESSING, 0),
            completed=counts.get(RenderJobStatus.COMPLETED, 0),
            failed=counts.get(RenderJobStatus.FAILED, 0),
        )
