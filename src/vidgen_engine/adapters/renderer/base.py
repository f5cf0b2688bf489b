"""Base interface for composition (final render) providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vidgen_engine.domain.models import CompositionRecipe

DEFAULT_CLIP_SECONDS = 5.0


def clip_duration(duration_seconds: float | None) -> float:
    """Duration used for a clip whose length is unknown (e.g. an uploaded image)."""
    return duration_seconds if duration_seconds and duration_seconds > 0 else DEFAULT_CLIP_SECONDS


@dataclass
class RenderResult:
    """Result from rendering a composition recipe.

    Cloud renderers set ``output_url``; local renderers set ``output_path``
    and leave publishing to the storage service.
    """

    success: bool
    output_url: str | None = None
    output_path: Path | None = None
    file_size_bytes: int | None = None
    duration_seconds: float | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class RendererProvider(ABC):
    """Abstract base class for composition providers.

    Implementations:
    - CreatomateProvider: Cloud rendering via the Creatomate API
    - StubRendererProvider: Writes a placeholder file for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def render(self, recipe: CompositionRecipe) -> RenderResult:
        """Render the final video described by ``recipe``.

        Args:
            recipe: Ordered clips, audio, subtitles and output geometry

        Returns:
            RenderResult with an output location or error information
        """
        ...

    async def health_check(self) -> bool:
        """Check if the renderer is available and healthy."""
        return True
