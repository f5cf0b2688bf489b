"""Stub renderer provider for testing."""

import tempfile
from pathlib import Path

from vidgen_engine.adapters.renderer.base import RendererProvider, RenderResult, clip_duration
from vidgen_engine.domain.models import CompositionRecipe
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)


class StubRendererProvider(RendererProvider):
    """Writes a small placeholder file instead of encoding video."""

    def __init__(self, output_dir: Path | None = None) -> None:
        self.output_dir = output_dir or Path(tempfile.gettempdir()) / "vidgen_engine"

    @property
    def name(self) -> str:
        return "stub"

    async def render(self, recipe: CompositionRecipe) -> RenderResult:
        logger.info(
            "stub_render_started",
            clip_count=len(recipe.clips),
            resolution=f"{recipe.width}x{recipe.height}",
            fingerprint=recipe.fingerprint,
        )

        if not recipe.clips:
            return RenderResult(success=False, error_message="Recipe has no clips")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f"{recipe.fingerprint or recipe.project_id}.{recipe.output_format}"
        output_path.write_bytes(b"STUB_RENDERED_" + recipe.fingerprint.encode())

        duration = round(sum(clip_duration(c.duration_seconds) for c in recipe.clips), 2)
        file_size = output_path.stat().st_size

        logger.info("stub_render_completed", output_path=str(output_path), file_size=file_size)

        return RenderResult(
            success=True,
            output_path=output_path,
            file_size_bytes=file_size,
            duration_seconds=duration,
            metadata={"provider": self.name, "resolution": f"{recipe.width}x{recipe.height}"},
        )
