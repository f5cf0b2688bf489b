"""Project and scene endpoints."""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel

from vidgen_engine.api.deps import PrincipalDep, SceneDispatcherDep, SessionDep
from vidgen_engine.db.models import SceneModel
from vidgen_engine.logging import get_logger
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.scenes import SceneRepository
from vidgen_engine.services.providers import get_video_gen_provider
from vidgen_engine.services.scene_clips import SceneClipService

router = APIRouter(prefix="/projects", tags=["Projects"])
logger = get_logger(__name__)


class SceneResponse(BaseModel):
    """One scene of a project."""

    id: UUID
    scene_index: int
    status: str
    media_type: str
    prompt: str
    narration_text: str | None = None
    duration_seconds: float | None = None
    clip_url: str | None = None
    error_message: str | None = None
    attempts: int


class ProjectResponse(BaseModel):
    """A project with its scenes."""

    id: UUID
    title: str
    status: str
    mode: str
    style_template: str
    aspect_ratio: str
    duration_seconds: int
    subtitle_config: dict[str, Any] | None = None
    voice_id: str | None = None
    narration_url: str | None = None
    video_url: str | None = None
    error_message: str | None = None
    created_at: datetime | None = None
    scenes: list[SceneResponse]


class SceneRetryResponse(BaseModel):
    """Response when a scene is sent back for generation."""

    project_id: UUID
    scene_index: int
    status: str
    message: str


def scene_response(scene: SceneModel) -> SceneResponse:
    return SceneResponse(
        id=scene.id,
        scene_index=scene.scene_index,
        status=scene.status,
        media_type=scene.media_type,
        prompt=scene.prompt,
        narration_text=scene.narration_text,
        duration_seconds=scene.duration_seconds,
        clip_url=scene.clip_url,
        error_message=scene.error_message,
        attempts=scene.attempts,
    )


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get project",
    description="A project and its scenes. Unknown and foreign projects are 404.",
)
async def get_project(
    project_id: UUID,
    principal: PrincipalDep,
    session: SessionDep,
) -> ProjectResponse:
    project = ProjectRepository(session).get_for_owner(project_id, principal.owner_id)
    scenes = SceneRepository(session).list_for_project(project.id)

    return ProjectResponse(
        id=project.id,
        title=project.title,
        status=project.status,
        mode=project.mode,
        style_template=project.style_template,
        aspect_ratio=project.aspect_ratio,
        duration_seconds=project.duration_seconds,
        subtitle_config=project.subtitle_config,
        voice_id=project.voice_id,
        narration_url=project.narration_url,
        video_url=project.video_url,
        error_message=project.error_message,
        created_at=project.created_at,
        scenes=[scene_response(s) for s in scenes],
    )


@router.post(
    "/{project_id}/scenes/{scene_index}/retry",
    response_model=SceneRetryResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Retry a failed scene",
    description=(
        "Moves a failed scene back to pending and dispatches its clip generation. "
        "Once every scene of a failed project is completed, a new render job is queued."
    ),
)
async def retry_scene(
    project_id: UUID,
    scene_index: int,
    principal: PrincipalDep,
    session: SessionDep,
    dispatch: SceneDispatcherDep,
) -> SceneRetryResponse:
    clips = SceneClipService(session, get_video_gen_provider())
    scene = clips.request_retry(project_id, scene_index, owner_id=principal.owner_id)
    dispatch(str(scene.id))

    logger.info("scene_retry_dispatched", project_id=str(project_id), scene_index=scene_index)
    return SceneRetryResponse(
        project_id=project_id,
        scene_index=scene_index,
        status=scene.status,
        message="Scene clip generation dispatched",
    )
