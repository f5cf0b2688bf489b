"""Health check endpoints."""

import redis
from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from vidgen_engine.config import settings
from vidgen_engine.db.session import engine
from vidgen_engine.logging import get_logger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    providers: dict[str, str]


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    database: bool
    redis: bool


def check_database() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error("database_health_check_failed", error=str(e))
        return False


def check_redis() -> bool:
    try:
        client = redis.Redis.from_url(settings.redis_url, socket_timeout=2.0)
        client.ping()
        return True
    except redis.RedisError as e:
        logger.error("redis_health_check_failed", error=str(e))
        return False


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint that verifies the API is running.",
)
async def health_check() -> HealthResponse:
    """Is the API up, and which providers is it configured with?"""
    from vidgen_engine import __version__

    return HealthResponse(
        status="healthy",
        version=__version__,
        providers={
            "llm": settings.llm_provider,
            "voiceover": settings.voiceover_provider,
            "video_gen": settings.video_gen_provider,
            "renderer": settings.renderer_provider,
        },
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Verifies the database and Redis are reachable.",
)
async def readiness_check() -> ReadinessResponse:
    database_ok = check_database()
    redis_ok = check_redis()
    return ReadinessResponse(ready=database_ok and redis_ok, database=database_ok, redis=redis_ok)


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Simple liveness probe for Kubernetes.",
)
async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe - is the process alive?"""
    return {"status": "alive"}
