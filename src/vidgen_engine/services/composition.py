"""Recipe construction and final render."""

import hashlib
import json
import time
from collections.abc import Sequence
from uuid import UUID

from vidgen_engine.adapters.renderer.base import RendererProvider
from vidgen_engine.domain.enums import AspectRatio, PipelineStage
from vidgen_engine.domain.errors import ProviderError
from vidgen_engine.domain.models import ComposedVideo, CompositionRecipe, RecipeClip
from vidgen_engine.logging import get_logger
from vidgen_engine.presets.subtitles import get_subtitle_style
from vidgen_engine.presets.templates import get_template
from vidgen_engine.services.storage import StorageService
from vidgen_engine.services.subtitles import build_cues

logger = get_logger(__name__)

DIMENSIONS: dict[str, tuple[int, int]] = {
    AspectRatio.LANDSCAPE: (1920, 1080),
    AspectRatio.PORTRAIT: (1080, 1920),
    AspectRatio.SQUARE: (1080, 1080),
}


def dimensions_for(aspect_ratio: str) -> tuple[int, int]:
    return DIMENSIONS.get(aspect_ratio, DIMENSIONS[AspectRatio.LANDSCAPE])


def fingerprint(recipe: CompositionRecipe) -> str:
    canonical = json.dumps(recipe.canonical(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()


def build_recipe(
    project_id: UUID,
    clips: Sequence[RecipeClip],
    *,
    aspect_ratio: str,
    style_template: str,
    burn_subtitles: bool,
    audio_url: str | None = None,
    narration_script: str | None = None,
    narration_duration_seconds: float | None = None,
) -> CompositionRecipe:
    """Build a deterministic composition recipe.

    Clips are ordered by scene index. Subtitles are only produced when
    burn-in is requested and the narration has a measured duration to time
    the cues against.
    """
    ordered = sorted(clips, key=lambda c: c.scene_index)
    width, height = dimensions_for(aspect_ratio)
    template = get_template(style_template)

    subtitles = []
    subtitle_style = None
    if burn_subtitles and narration_script and narration_duration_seconds:
        subtitles = build_cues(narration_script, narration_duration_seconds)
        subtitle_style = get_subtitle_style(template.subtitle_style).to_dict()

    recipe = CompositionRecipe(
        project_id=project_id,
        clips=list(ordered),
        aspect_ratio=aspect_ratio if aspect_ratio in DIMENSIONS else AspectRatio.LANDSCAPE.value,
        width=width,
        height=height,
        style_template=template.name,
        audio_url=audio_url,
        subtitles=subtitles,
        subtitle_style=subtitle_style,
    )
    recipe.fingerprint = fingerprint(recipe)
    return recipe


class Composer:
    """Runs the renderer on a recipe and publishes the artifact."""

    def __init__(self, renderer: RendererProvider, storage: StorageService) -> None:
        self.renderer = renderer
        self.storage = storage

    async def compose(self, job_id: UUID, recipe: CompositionRecipe) -> ComposedVideo:
        """Render ``recipe`` for ``job_id``.

        Raises:
            ProviderError: The renderer reported a failure.
        """
        if not recipe.clips:
            raise ProviderError(PipelineStage.COMPOSITION, "Nothing to compose: no clips")

        logger.info(
            "composition_started",
            job_id=str(job_id),
            clip_count=len(recipe.clips),
            burn_subtitles=recipe.burn_subtitles,
            fingerprint=recipe.fingerprint,
            renderer=self.renderer.name,
        )

        started = time.monotonic()
        result = await self.renderer.render(recipe)
        if not result.success:
            raise ProviderError(
                PipelineStage.COMPOSITION,
                result.error_message or "Renderer failed without a message",
                provider=self.renderer.name,
            )

        try:
            stored = self.storage.publish_render(job_id, result)
        except (OSError, ValueError) as e:
            raise ProviderError(
                PipelineStage.COMPOSITION, f"Could not publish render: {e}", provider=self.renderer.name
            ) from e
        processing_seconds = time.monotonic() - started

        logger.info(
            "composition_completed",
            job_id=str(job_id),
            output_url=stored.url,
            processing_seconds=round(processing_seconds, 2),
        )
        return ComposedVideo(
            output_url=stored.url,
            processing_seconds=processing_seconds,
            duration_seconds=result.duration_seconds,
            recipe_fingerprint=recipe.fingerprint,
        )
