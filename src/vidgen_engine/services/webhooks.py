"""Outbound webhook delivery.

Deliveries are rows first and HTTP calls second: a delivery is scheduled in
the same transaction as the work it reports on, and only then sent. Outcome
deliveries are staged as ``retrying`` with ``next_retry_at`` one visibility
window out, so a process that dies between commit and send still leaves a row
the periodic sweep will pick up. A failed send leaves the row ``failed`` with
``next_retry_at`` set, and the sweep retries it until it succeeds or runs out
of attempts. Receivers must
therefore tolerate duplicates; ``X-Webhook-Id`` is stable across retries.
"""

import hashlib
import hmac
import json
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from vidgen_engine.config import settings
from vidgen_engine.db.models import ProjectModel, RenderJobModel, WebhookDeliveryModel
from vidgen_engine.domain.enums import WebhookEventStatus
from vidgen_engine.logging import get_logger
from vidgen_engine.repositories.webhooks import WebhookRepository
from vidgen_engine.utils.clock import Clock, utc_now

logger = get_logger(__name__)

USER_AGENT = "VidGen-Worker/1.0"
SIGNATURE_HEADER = "X-Webhook-Signature"
TIMESTAMP_HEADER = "X-Webhook-Timestamp"
ID_HEADER = "X-Webhook-Id"


def generate_secret() -> str:
    return f"whsec_{secrets.token_urlsafe(32)}"


def sign_payload(secret: str, timestamp: int, body: str) -> str:
    """HMAC-SHA256 over ``"{timestamp}.{body}"``, formatted for the signature header."""
    digest = hmac.new(secret.encode(), f"{timestamp}.{body}".encode(), hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_signature(secret: str, timestamp: int, body: str, signature: str) -> bool:
    return hmac.compare_digest(sign_payload(secret, timestamp, body), signature)


def serialize_payload(payload: dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def build_payload(
    project: ProjectModel,
    job: RenderJobModel | None,
    status: WebhookEventStatus,
    now: datetime,
) -> dict[str, Any]:
    """The body posted to webhook receivers."""
    return {
        "job_id": str(job.id) if job else None,
        "project_id": str(project.id),
        "status": str(status),
        "video_url": project.video_url if status == WebhookEventStatus.COMPLETED else None,
        "aspect_ratio": job.aspect_ratio if job else project.aspect_ratio,
        "processing_time_seconds": job.processing_seconds if job else None,
        "error": project.error_message if status == WebhookEventStatus.FAILED else None,
        "timestamp": now.isoformat(),
    }


@dataclass
class SweepResult:
    claimed: int = 0
    delivered: int = 0
    failed: int = 0


class WebhookDispatcher:
    """Schedules, signs and sends webhook deliveries for one session."""

    def __init__(
        self,
        session: Session,
        *,
        clock: Clock = utc_now,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout_seconds: float | None = None,
        backoff_seconds: int | None = None,
        max_attempts: int | None = None,
        default_secret: str | None = None,
    ) -> None:
        self.session = session
        self.repo = WebhookRepository(session)
        self.clock = clock
        self._transport = transport
        self.timeout = timeout_seconds if timeout_seconds is not None else settings.webhook_timeout_seconds
        self.backoff = timedelta(
            seconds=backoff_seconds
            if backoff_seconds is not None
            else settings.render_retry_backoff_seconds
        )
        self.max_attempts = max_attempts if max_attempts is not None else settings.webhook_max_attempts
        self.default_secret = default_secret or settings.webhook_signing_secret

    @property
    def visibility(self) -> timedelta:
        """How long a staged or claimed delivery is left to its sender before the sweep takes it."""
        return timedelta(seconds=max(60.0, self.timeout * 3))

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def schedule(
        self,
        owner_id: UUID,
        project_id: UUID,
        url: str,
        payload: dict[str, Any],
    ) -> WebhookDeliveryModel:
        """Create a pending delivery. Flushes only; the caller commits."""
        subscription = self.repo.find_subscription(owner_id, url)
        delivery = self.repo.add_delivery(
            project_id=project_id,
            url=url,
            payload=payload,
            max_attempts=self.max_attempts,
            subscription_id=subscription.id if subscription else None,
        )
        logger.info(
            "webhook_delivery_scheduled",
            delivery_id=str(delivery.id),
            project_id=str(project_id),
            subscribed=subscription is not None,
        )
        return delivery

    def schedule_for_project(
        self, project: ProjectModel, job: RenderJobModel
    ) -> WebhookDeliveryModel | None:
        """Schedule the ``queued`` notification for a project that has a webhook URL."""
        if not project.webhook_url:
            return None
        payload = build_payload(project, job, WebhookEventStatus.QUEUED, self.clock())
        return self.schedule(project.owner_id, project.id, project.webhook_url, payload)

    def stage_outcome(
        self, project_id: UUID, payload: dict[str, Any]
    ) -> list[WebhookDeliveryModel]:
        """Stamp every pending delivery of a project with its final ``payload``.

        Flushes only; commit together with the outcome being reported, then
        pass the result to ``send_all``.
        """
        due_at = self.clock() + self.visibility
        staged = self.repo.pending_for_project(project_id)
        for delivery in staged:
            self.repo.stage(delivery, payload, due_at)
        if staged:
            logger.info(
                "webhook_outcome_staged",
                project_id=str(project_id),
                status=payload.get("status"),
                count=len(staged),
            )
        return staged

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def _secret_for(self, delivery: WebhookDeliveryModel) -> str:
        if delivery.subscription_id is not None:
            subscription = self.repo.get_subscription(delivery.subscription_id)
            if subscription is not None and subscription.active:
                return subscription.secret
        return self.default_secret

    def build_headers(self, delivery: WebhookDeliveryModel, body: str, timestamp: int) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
            ID_HEADER: str(delivery.id),
            TIMESTAMP_HEADER: str(timestamp),
            SIGNATURE_HEADER: sign_payload(self._secret_for(delivery), timestamp, body),
        }

    async def deliver(self, delivery: WebhookDeliveryModel) -> bool:
        """Send one delivery and record the attempt.

        Never raises for receiver-side problems: non-2xx responses, timeouts
        and connection errors are all recorded as a failed attempt.
        """
        now = self.clock()
        body = serialize_payload(delivery.payload)
        headers = self.build_headers(delivery, body, int(now.timestamp()))

        response_code: int | None = None
        response_body: str | None = None
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(delivery.url, content=body, headers=headers)
            response_code = response.status_code
            response_body = response.text
            succeeded = response.is_success
        except httpx.HTTPError as e:
            succeeded = False
            response_body = f"{type(e).__name__}: {e}"

        self.repo.record_attempt(
            delivery,
            succeeded=succeeded,
            response_code=response_code,
            response_body=response_body,
            now=self.clock(),
            backoff=self.backoff,
        )
        self.session.commit()

        if succeeded:
            logger.info(
                "webhook_delivered",
                delivery_id=str(delivery.id),
                response_code=response_code,
                attempts=delivery.attempts,
            )
        else:
            logger.warning(
                "webhook_delivery_failed",
                delivery_id=str(delivery.id),
                response_code=response_code,
                attempts=delivery.attempts,
                max_attempts=delivery.max_attempts,
                next_retry_at=delivery.next_retry_at.isoformat() if delivery.next_retry_at else None,
            )
        return succeeded

    async def send_all(self, deliveries: list[WebhookDeliveryModel]) -> list[bool]:
        return [await self.deliver(delivery) for delivery in deliveries]

    async def sweep(self, limit: int | None = None) -> SweepResult:
        """Retry failed deliveries whose backoff has elapsed."""
        batch = limit if limit is not None else settings.webhook_sweep_batch_size
        claimed = self.repo.claim_due_retries(self.clock(), batch, self.visibility)

        result = SweepResult(claimed=len(claimed))
        for delivery in claimed:
            if await self.deliver(delivery):
                result.delivered += 1
            else:
                result.failed += 1

        if claimed:
            logger.info(
                "webhook_sweep_completed",
                claimed=result.claimed,
                delivered=result.delivered,
                failed=result.failed,
            )
        return result
