"""Stub clip generation provider for testing."""

import asyncio
import hashlib
from typing import Any

from vidgen_engine.adapters.video_gen.base import (
    VideoGenProvider,
    VideoGenRequest,
    VideoGenResult,
)
from vidgen_engine.logging import get_logger

logger = get_logger(__name__)


class StubVideoGenProvider(VideoGenProvider):
    """Stub provider that hands back a stable fake URL per prompt."""

    def __init__(self, delay_seconds: float = 0.5, base_url: str = "https://stub.vidgen.local/clips") -> None:
        self.delay_seconds = delay_seconds
        self.base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "stub"

    async def generate(self, request: VideoGenRequest) -> VideoGenResult:
        logger.info(
            "stub_video_generation_started",
            prompt=request.prompt[:100],
            duration=request.duration_seconds,
        )

        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        digest = hashlib.sha256(
            f"{request.prompt}|{request.aspect_ratio}|{request.duration_seconds}".encode()
        ).hexdigest()[:16]
        video_url = f"{self.base_url}/{digest}.mp4"

        logger.info("stub_video_generation_completed", video_url=video_url)

        return VideoGenResult(
            success=True,
            video_url=video_url,
            duration_seconds=float(request.duration_seconds),
            metadata={"provider": self.name, "job_id": digest},
        )

    async def check_status(self, job_id: str) -> dict[str, Any]:
        return {"job_id": job_id, "status": "completed", "progress": 100}
