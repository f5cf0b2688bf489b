"""Generation request intake."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.orm import Session

from vidgen_engine.config import settings
from vidgen_engine.db.models import ProjectModel
from vidgen_engine.domain.enums import AspectRatio, AssetType, ProjectStatus, WebhookEventStatus
from vidgen_engine.domain.errors import ValidationError
from vidgen_engine.domain.models import (
    ApiPrincipal,
    AssetStitchMode,
    AutonomousMode,
    GenerationRequest,
    SubmissionReceipt,
    SubmittedAsset,
)
from vidgen_engine.logging import get_logger
from vidgen_engine.presets.templates import DEFAULT_TEMPLATE, TEMPLATES, get_template
from vidgen_engine.repositories.projects import ProjectRepository
from vidgen_engine.repositories.render_queue import RenderQueue
from vidgen_engine.repositories.scenes import SceneRepository
from vidgen_engine.services.content_analysis import detect_context, recommend_template
from vidgen_engine.services.webhooks import WebhookDispatcher, build_payload
from vidgen_engine.utils.clock import Clock, utc_now

logger = get_logger(__name__)

MIN_DURATION_SECONDS = 5
MAX_DURATION_SECONDS = 300
MAX_PROMPT_LENGTH = 5000


@dataclass(frozen=True)
class AssetInput:
    """Raw asset as received over the API."""

    type: str
    url: str


def normalize_aspect_ratio(value: str | None) -> AspectRatio:
    """Unknown or missing ratios fall back to 16:9."""
    try:
        return AspectRatio(value) if value else AspectRatio.LANDSCAPE
    except ValueError:
        logger.info("aspect_ratio_fallback", requested=value)
        return AspectRatio.LANDSCAPE


def build_generation_request(
    prompt: str | None,
    *,
    template: str | None = None,
    aspect_ratio: str | None = None,
    burn_subtitles: bool = True,
    webhook_url: str | None = None,
    duration_seconds: int = 30,
    voice_id: str | None = None,
    assets: Sequence[AssetInput] | None = None,
) -> GenerationRequest:
    """Validate raw input and pick the orchestration mode.

    Supplying any assets selects asset-stitch mode; otherwise the request is
    autonomous.

    Raises:
        ValidationError: Empty prompt, duration out of range or bad assets.
    """
    prompt = (prompt or "").strip()
    if not prompt:
        raise ValidationError("Prompt is required", field="prompt")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValidationError(
            f"Prompt must not exceed {MAX_PROMPT_LENGTH} characters", field="prompt"
        )
    if not MIN_DURATION_SECONDS <= duration_seconds <= MAX_DURATION_SECONDS:
        raise ValidationError(
            f"Duration must be between {MIN_DURATION_SECONDS} and {MAX_DURATION_SECONDS} seconds",
            field="duration_seconds",
        )
    if webhook_url is not None and not webhook_url.startswith(("http://", "https://")):
        raise ValidationError("Webhook URL must be http(s)", field="webhook_url")

    if template and template.lower() not in TEMPLATES:
        logger.info("template_fallback", requested=template)

    mode: AssetStitchMode | AutonomousMode
    if assets:
        parsed = []
        for asset in assets:
            try:
                asset_type = AssetType(asset.type)
            except ValueError as e:
                raise ValidationError(f"Unknown asset type: {asset.type}", field="assets") from e
            if not asset.url:
                raise ValidationError("Asset URL is required", field="assets")
            parsed.append(SubmittedAsset(type=asset_type, url=asset.url))
        mode = AssetStitchMode(assets=tuple(parsed))
        if not mode.visual_assets:
            raise ValidationError("At least one video or image asset is required", field="assets")
        template_name = get_template(template).name
    else:
        mode = AutonomousMode(voice_id=voice_id)
        if template:
            template_name = get_template(template).name
        else:
            template_name = recommend_template(*detect_context(prompt))

    return GenerationRequest(
        prompt=prompt,
        mode=mode,
        template=template_name or DEFAULT_TEMPLATE,
        aspect_ratio=normalize_aspect_ratio(aspect_ratio),
        burn_subtitles=burn_subtitles,
        duration_seconds=duration_seconds,
        webhook_url=webhook_url,
    )


class SubmissionService:
    """Creates the project, its render job and the initial webhook delivery."""

    def __init__(self, session: Session, *, clock: Clock = utc_now) -> None:
        self.session = session
        self.clock = clock
        self.projects = ProjectRepository(session)
        self.scenes = SceneRepository(session)
        self.queue = RenderQueue(session, clock=clock)
        self.webhooks = WebhookDispatcher(session, clock=clock)

    def submit(self, principal: ApiPrincipal, request: GenerationRequest) -> SubmissionReceipt:
        """Persist a generation request in one transaction."""
        now = self.clock()
        mode = request.mode

        if isinstance(mode, AssetStitchMode):
            title = f"Uploaded Assets: {request.prompt[:50]}..."
            voice_id = None
        else:
            title = request.prompt[:60]
            voice_id = mode.voice_id

        template = get_template(request.template)
        project = self.projects.add(
            ProjectModel(
                owner_id=principal.owner_id,
                title=title,
                script_content=request.prompt,
                style_template=template.name,
                mode=str(mode.kind),
                duration_seconds=request.duration_seconds,
                aspect_ratio=str(request.aspect_ratio),
                subtitle_config={
                    "burn_subtitles": request.burn_subtitles,
                    "style": template.subtitle_style,
                },
                voice_id=voice_id,
                webhook_url=request.webhook_url,
                status=ProjectStatus.DRAFT,
            )
        )

        if isinstance(mode, AssetStitchMode):
            self.scenes.add_supplied(project.id, mode.visual_assets)
            if mode.soundtrack is not None:
                project.narration_url = mode.soundtrack.url

        job = self.queue.enqueue(
            project.id,
            principal.owner_id,
            priority=settings.render_job_priority,
            aspect_ratio=str(request.aspect_ratio),
            burn_subtitles=request.burn_subtitles,
            commit=False,
        )

        delivery_id = None
        if request.webhook_url:
            delivery = self.webhooks.schedule(
                principal.owner_id,
                project.id,
                request.webhook_url,
                build_payload(project, job, WebhookEventStatus.QUEUED, now),
            )
            delivery_id = delivery.id

        self.session.commit()

        logger.info(
            "generation_submitted",
            project_id=str(project.id),
            job_id=str(job.id),
            mode=str(mode.kind),
            template=template.name,
            aspect_ratio=str(request.aspect_ratio),
        )

        return SubmissionReceipt(
            project_id=project.id,
            job_id=job.id,
            status="queued",
            message=(
                "Assets queued for composition"
                if isinstance(mode, AssetStitchMode)
                else "Video generation queued"
            ),
            estimated_completion_time=now + timedelta(seconds=settings.estimated_completion_seconds),
            webhook_delivery_id=delivery_id,
        )
