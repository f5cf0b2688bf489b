"""Video generation submission endpoint."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from vidgen_engine.api.deps import PrincipalDep, SessionDep
from vidgen_engine.logging import get_logger
from vidgen_engine.services.submission import (
    MAX_PROMPT_LENGTH,
    AssetInput,
    SubmissionService,
    build_generation_request,
)

router = APIRouter(tags=["Generate"])
logger = get_logger(__name__)


class AssetPayload(BaseModel):
    """A pre-rendered asset to stitch instead of generating scenes."""

    type: str = Field(..., description="video, image or audio")
    url: str = Field(..., min_length=1)


class GenerateRequest(BaseModel):
    """Request to generate one video."""

    prompt: str = Field(..., max_length=MAX_PROMPT_LENGTH, description="What the video is about")
    template: str | None = Field(
        default=None,
        description="Style template; recommended from the prompt when omitted",
    )
    aspect_ratio: str | None = Field(default="16:9", description="16:9, 9:16 or 1:1")
    burn_subtitles: bool = True
    webhook_url: str | None = None
    duration_seconds: int = Field(default=30, description="Target length, 5 to 300 seconds")
    voice_id: str | None = None
    assets: list[AssetPayload] | None = None


class GenerateResponse(BaseModel):
    """Response when a generation is queued."""

    job_id: UUID | None = None
    project_id: UUID
    status: str
    message: str
    webhook_delivery_id: UUID | None = None
    estimated_completion_time: datetime


@router.post(
    "/generate",
    response_model=GenerateResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a video generation",
    description=(
        "Creates a project and queues its render job. Supplying assets stitches them "
        "into a video; otherwise the full pipeline generates every scene."
    ),
)
async def generate_video(
    body: GenerateRequest,
    principal: PrincipalDep,
    session: SessionDep,
) -> GenerateResponse:
    request = build_generation_request(
        body.prompt,
        template=body.template,
        aspect_ratio=body.aspect_ratio,
        burn_subtitles=body.burn_subtitles,
        webhook_url=body.webhook_url,
        duration_seconds=body.duration_seconds,
        voice_id=body.voice_id,
        assets=[AssetInput(type=a.type, url=a.url) for a in body.assets or []],
    )
    receipt = SubmissionService(session).submit(principal, request)

    return GenerateResponse(
        job_id=receipt.job_id,
        project_id=receipt.project_id,
        status=receipt.status,
        message=receipt.message,
        webhook_delivery_id=receipt.webhook_delivery_id,
        estimated_completion_time=receipt.estimated_completion_time,
    )
