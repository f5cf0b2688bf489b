"""FastAPI dependencies."""

import secrets
from collections.abc import Callable
from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import BackgroundTasks, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vidgen_engine.config import settings
from vidgen_engine.db.session import SessionFactory, get_session, get_session_factory, session_scope
from vidgen_engine.domain.errors import AuthError
from vidgen_engine.domain.models import ApiPrincipal
from vidgen_engine.logging import get_logger
from vidgen_engine.services.api_keys import ApiKeyService
from vidgen_engine.services.queue_worker import QueueWorker, build_queue_worker
from vidgen_engine.services.rate_limit import RateLimiter, build_rate_limiter

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]
SessionFactoryDep = Annotated[SessionFactory, Depends(get_session_factory)]
BearerDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def touch_api_key(factory: SessionFactory, key_id: UUID) -> None:
    """Record last use of a key in its own session, after the response."""
    try:
        with session_scope(factory) as session:
            ApiKeyService(session).touch(key_id)
    except SQLAlchemyError as e:
        logger.warning("api_key_touch_failed", key_id=str(key_id), error=str(e))


def get_current_principal(
    background_tasks: BackgroundTasks,
    session: SessionDep,
    factory: SessionFactoryDep,
    credentials: BearerDep,
) -> ApiPrincipal:
    """Authenticate the bearer API key."""
    raw_key = credentials.credentials if credentials else None
    principal = ApiKeyService(session).validate(raw_key)
    background_tasks.add_task(touch_api_key, factory, principal.key_id)
    return principal


@lru_cache
def get_rate_limiter() -> RateLimiter:
    return build_rate_limiter()


RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter)]


def get_rate_limited_principal(
    principal: Annotated[ApiPrincipal, Depends(get_current_principal)],
    limiter: RateLimiterDep,
) -> ApiPrincipal:
    limiter.enforce(str(principal.key_id), principal.rate_limit_per_minute)
    return principal


PrincipalDep = Annotated[ApiPrincipal, Depends(get_rate_limited_principal)]


def require_queue_secret(credentials: BearerDep) -> None:
    """Guard for internal endpoints called by the scheduler."""
    expected = settings.queue_worker_secret
    provided = credentials.credentials if credentials else ""
    if not expected or not secrets.compare_digest(provided.encode(), expected.encode()):
        raise AuthError()


QueueSecretDep = Depends(require_queue_secret)


def get_queue_worker(session: SessionDep) -> QueueWorker:
    return build_queue_worker(session)


QueueWorkerDep = Annotated[QueueWorker, Depends(get_queue_worker)]


def get_scene_dispatcher() -> Callable[[str], None]:
    """Hands a scene id to the Celery clip task."""
    from vidgen_engine.jobs.tasks import generate_scene_clip_task

    def dispatch(scene_id: str) -> None:
        generate_scene_clip_task.delay(scene_id)

    return dispatch


SceneDispatcherDep = Annotated[Callable[[str], None], Depends(get_scene_dispatcher)]
