"""Webhook subscription endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from vidgen_engine.api.deps import PrincipalDep, SessionDep
from vidgen_engine.domain.errors import ValidationError
from vidgen_engine.logging import get_logger
from vidgen_engine.repositories.webhooks import WebhookRepository
from vidgen_engine.services.webhooks import generate_secret

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
logger = get_logger(__name__)


class WebhookCreateRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)


class WebhookSubscriptionResponse(BaseModel):
    """A registered webhook endpoint. The secret is only returned on registration."""

    id: UUID
    url: str
    active: bool
    created_at: datetime | None = None
    secret: str | None = None


class WebhookListResponse(BaseModel):
    webhooks: list[WebhookSubscriptionResponse]
    count: int


@router.post(
    "",
    response_model=WebhookSubscriptionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a webhook",
    description=(
        "Registers a URL and returns the secret used to sign its deliveries. "
        "Registering the same URL again issues a new secret."
    ),
)
async def create_webhook(
    body: WebhookCreateRequest,
    principal: PrincipalDep,
    session: SessionDep,
) -> WebhookSubscriptionResponse:
    if not body.url.startswith(("http://", "https://")):
        raise ValidationError("Webhook URL must be http(s)", field="url")

    secret = generate_secret()
    subscription = WebhookRepository(session).upsert_subscription(principal.owner_id, body.url, secret)
    session.commit()

    logger.info("webhook_registered", subscription_id=str(subscription.id))
    return WebhookSubscriptionResponse(
        id=subscription.id,
        url=subscription.url,
        active=subscription.active,
        created_at=subscription.created_at,
        secret=secret,
    )


@router.get(
    "",
    response_model=WebhookListResponse,
    summary="List webhooks",
)
async def list_webhooks(principal: PrincipalDep, session: SessionDep) -> WebhookListResponse:
    subscriptions = WebhookRepository(session).list_subscriptions(principal.owner_id)
    return WebhookListResponse(
        webhooks=[
            WebhookSubscriptionResponse(
                id=s.id, url=s.url, active=s.active, created_at=s.created_at
            )
            for s in subscriptions
        ],
        count=len(subscriptions),
    )


@router.delete(
    "/{subscription_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate a webhook",
    description="Later deliveries to the URL are signed with the default secret.",
)
async def delete_webhook(subscription_id: UUID, principal: PrincipalDep, session: SessionDep) -> None:
    WebhookRepository(session).deactivate_subscription(subscription_id, principal.owner_id)
    session.commit()
    logger.info("webhook_deactivated", subscription_id=str(subscription_id))
