"""Database layer."""

from vidgen_engine.db.models import (
    ApiKeyModel,
    Base,
    ProjectModel,
    RenderJobModel,
    SceneModel,
    WebhookDeliveryModel,
    WebhookSubscriptionModel,
)
from vidgen_engine.db.session import (
    get_session,
    get_session_context,
    get_session_factory,
    init_db,
    session_scope,
)

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "get_session_factory",
    "init_db",
    "session_scope",
    # Models
    "ApiKeyModel",
    "ProjectModel",
    "RenderJobModel",
    "SceneModel",
    "WebhookDeliveryModel",
    "WebhookSubscriptionModel",
]
