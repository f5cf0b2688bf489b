"""Webhook subscription and delivery persistence."""

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session, aliased

from vidgen_engine.db.models import WebhookDeliveryModel, WebhookSubscriptionModel
from vidgen_engine.domain.enums import WebhookDeliveryStatus
from vidgen_engine.domain.errors import NotFoundError

MAX_RESPONSE_BODY = 2000


class WebhookRepository:
    """Read/write access to webhook tables. Callers own the transaction."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # Subscriptions

    def find_subscription(self, owner_id: UUID, url: str) -> WebhookSubscriptionModel | None:
        stmt = select(WebhookSubscriptionModel).where(
            WebhookSubscriptionModel.owner_id == owner_id,
            WebhookSubscriptionModel.url == url,
            WebhookSubscriptionModel.active.is_(True),
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_subscription(self, subscription_id: UUID) -> WebhookSubscriptionModel | None:
        return self.session.get(WebhookSubscriptionModel, subscription_id)

    def upsert_subscription(self, owner_id: UUID, url: str, secret: str) -> WebhookSubscriptionModel:
        """Register ``url`` for ``owner_id``, reactivating and re-keying an old registration."""
        stmt = select(WebhookSubscriptionModel).where(
            WebhookSubscriptionModel.owner_id == owner_id,
            WebhookSubscriptionModel.url == url,
        )
        subscription = self.session.execute(stmt).scalar_one_or_none()
        if subscription is None:
            subscription = WebhookSubscriptionModel(owner_id=owner_id, url=url, secret=secret)
            self.session.add(subscription)
        else:
            subscription.secret = secret
            subscription.active = True
        self.session.flush()
        return subscription

    def list_subscriptions(self, owner_id: UUID) -> list[WebhookSubscriptionModel]:
        stmt = (
            select(WebhookSubscriptionModel)
            .where(WebhookSubscriptionModel.owner_id == owner_id)
            .order_by(WebhookSubscriptionModel.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def deactivate_subscription(self, subscription_id: UUID, owner_id: UUID) -> None:
        subscription = self.session.get(WebhookSubscriptionModel, subscription_id)
        if subscription is None or subscription.owner_id != owner_id:
            raise NotFoundError("Webhook subscription", subscription_id)
        subscription.active = False
        self.session.flush()

    # Deliveries

    def add_delivery(
        self,
        project_id: UUID,
        url: str,
        payload: dict[str, Any],
        max_attempts: int,
        subscription_id: UUID | None = None,
    ) -> WebhookDeliveryModel:
        delivery = WebhookDeliveryModel(
            project_id=project_id,
            subscription_id=subscription_id,
            url=url,
            status=WebhookDeliveryStatus.PENDING,
            payload=payload,
            attempts=0,
            max_attempts=max_attempts,
        )
        self.session.add(delivery)
        self.session.flush()
        return delivery

    def get_delivery(self, delivery_id: UUID) -> WebhookDeliveryModel | None:
        return self.session.get(WebhookDeliveryModel, delivery_id, populate_existing=True)

    def pending_for_project(self, project_id: UUID) -> list[WebhookDeliveryModel]:
        stmt = (
            select(WebhookDeliveryModel)
            .where(
                WebhookDeliveryModel.project_id == project_id,
                WebhookDeliveryModel.status == WebhookDeliveryStatus.PENDING,
            )
            .order_by(WebhookDeliveryModel.created_at)
            .execution_options(populate_existing=True)
        )
        return list(self.session.execute(stmt).scalars().all())

    def stage(
        self,
        delivery: WebhookDeliveryModel,
        payload: dict[str, Any],
        due_at: datetime,
    ) -> None:
        """Attach the final payload and hand the row to the retry sweep.

        The row becomes claimable at ``due_at`` unless an attempt records an
        outcome first.
        """
        delivery.payload = payload
        delivery.status = WebhookDeliveryStatus.RETRYING
        delivery.next_retry_at = due_at
        self.session.flush()

    def claim_due_retries(
        self,
        now: datetime,
        limit: int,
        visibility_timeout: timedelta,
    ) -> list[WebhookDeliveryModel]:
        """Move due failed/retrying deliveries to ``retrying`` and return them.

        Rows are locked with SKIP LOCKED so overlapping sweeps split the work.
        ``next_retry_at`` is pushed out by ``visibility_timeout`` so a sweep
        that dies mid-flight leaves its rows to be picked up later.
        """
        candidate = aliased(WebhookDeliveryModel)
        candidate_ids = (
            select(candidate.id)
            .where(
                candidate.status.in_(
                    [WebhookDeliveryStatus.FAILED, WebhookDeliveryStatus.RETRYING]
                ),
                candidate.attempts < candidate.max_attempts,
                or_(
                    candidate.next_retry_at.is_(None),
                    candidate.next_retry_at <= now,
                ),
            )
            .order_by(candidate.next_retry_at)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        result = self.session.execute(
            update(WebhookDeliveryModel)
            .where(WebhookDeliveryModel.id.in_(candidate_ids))
            .values(
                status=WebhookDeliveryStatus.RETRYING,
                next_retry_at=now + visibility_timeout,
            )
            .returning(WebhookDeliveryModel.id)
            .execution_options(synchronize_session=False)
        )
        claimed_ids = list(result.scalars().all())
        self.session.commit()
        if not claimed_ids:
            return []

        stmt = (
            select(WebhookDeliveryModel)
            .where(WebhookDeliveryModel.id.in_(claimed_ids))
            .execution_options(populate_existing=True)
        )
        return list(self.session.execute(stmt).scalars().all())

    def record_attempt(
        self,
        delivery: WebhookDeliveryModel,
        *,
        succeeded: bool,
        response_code: int | None,
        response_body: str | None,
        now: datetime,
        backoff: timedelta,
    ) -> None:
        """Store one attempt's outcome and schedule the next try if any remain."""
        delivery.attempts += 1
        delivery.last_attempt_at = now
        delivery.response_code = response_code
        delivery.response_body = response_body[:MAX_RESPONSE_BODY] if response_body else None

        if succeeded:
            delivery.status = WebhookDeliveryStatus.SUCCESS
            delivery.delivered_at = now
            delivery.next_retry_at = None
        else:
            delivery.status = WebhookDeliveryStatus.FAILED
            if delivery.attempts < delivery.max_attempts:
                delivery.next_retry_at = now + backoff * delivery.attempts
            else:
                delivery.next_retry_at = None
        self.session.flush()
