"""Base interface for per-scene clip generation providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class VideoGenRequest:
    """Request for one scene clip."""

    prompt: str
    duration_seconds: float = 5.0
    aspect_ratio: str = "16:9"
    negative_prompt: str | None = None
    motion_strength: int | None = None  # 1-4, provider-interpreted
    options: dict[str, Any] | None = None


@dataclass
class VideoGenResult:
    """Result from clip generation.

    Hosted providers return ``video_url``; ``video_data`` is only set by
    providers that hand back raw bytes.
    """

    success: bool
    video_url: str | None = None
    video_data: bytes | None = None
    duration_seconds: float | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class VideoGenProvider(ABC):
    """Abstract base class for clip generation providers.

    Implementations:
    - KlingProvider: Kling text-to-video via fal.ai
    - StubVideoGenProvider: Returns fake clip URLs for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def generate(self, request: VideoGenRequest) -> VideoGenResult:
        """Generate a clip for one scene.

        Args:
            request: Prompt and clip parameters

        Returns:
            VideoGenResult with a clip URL or error information
        """
        ...

    async def check_status(self, job_id: str) -> dict[str, Any]:
        """Check the status of an async generation job."""
        return {"job_id": job_id, "status": "unknown"}

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy."""
        return True
